from pydantic import BaseModel


class HealthResponse(BaseModel):
    """Response model for the health check endpoint."""

    status: str


class IPLookupResponse(BaseModel):
    """Response model for IP geolocation lookup."""

    provider_used: str
    ip: str
    country: str | None = None
    country_code: str | None = None
    continent: str | None = None
    region: str | None = None
    city: str | None = None
    postal_code: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    timezone: str | None = None
    isp: str | None = None
    asn: str | None = None
    hostname: str | None = None
    is_proxy: bool | None = None


class ProviderInfo(BaseModel):
    identifier: str
    requires_api_key: bool
    supports_target: bool


class ProvidersResponse(BaseModel):
    """Built-in providers in default fallback order."""

    providers: list[ProviderInfo]
