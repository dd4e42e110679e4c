from datetime import timedelta
from ipaddress import ip_address

from pydantic import BaseModel, Field, field_validator, model_validator

from public_ip.transport import validate_proxy_url


def _validate_ip_literal(value: str | None) -> str | None:
    """Validate that value is either empty/None or a valid IP address (IPv4 or IPv6).

    - None or blank string -> treated as None (look up the caller's own IP, no error).
    - Non-blank -> must be a valid IP literal, otherwise a validation error is raised.
    """
    if value is None:
        return None

    value_str = str(value).strip()
    if not value_str:
        return None

    try:
        ip_address(value_str)
    except ValueError as exc:
        raise ValueError("ip must be a valid IPv4 or IPv6 address") from exc

    return value_str


class LookupOptions(BaseModel):
    """Options for a single lookup.

    Anything left as None falls back to the configured Settings.
    """

    provider: str | None = Field(
        default=None,
        description="Use only this provider, skipping fallback.",
        examples=["ipwho.is"],
    )
    providers: list[str] | None = Field(
        default=None,
        min_length=1,
        description="Restrict fallback to these providers. They are tried in registry order.",
    )
    target: str | None = Field(
        default=None,
        description="IPv4 or IPv6 address to look up instead of the caller's own address.",
        examples=["8.8.8.8", "2001:4860:4860::8888"],
    )
    timeout: float | None = Field(default=None, gt=0, description="Timeout in seconds for each provider attempt.")
    use_cache: bool = True
    refresh_cache: bool = Field(default=False, description="Skip the cached entry but still store the new result.")
    cache_ttl: timedelta | None = Field(
        default=None,
        ge=timedelta(0),
        description="Maximum age of a cached entry that may be served. Zero disables reuse.",
    )
    proxy: str | None = Field(default=None, description="Proxy URL every provider request must go through.")
    api_keys: dict[str, str] = Field(default_factory=dict)

    @field_validator("target", mode="before")
    @classmethod
    def _validate_target(cls, value: str | None) -> str | None:
        return _validate_ip_literal(value)

    @field_validator("proxy", mode="before")
    @classmethod
    def _validate_proxy(cls, value: str | None) -> str | None:
        return validate_proxy_url(value)

    @model_validator(mode="after")
    def _check_provider_selection(self) -> "LookupOptions":
        if self.provider is not None and self.providers is not None:
            raise ValueError("provider and providers are mutually exclusive")
        return self


class IPLookupRequest(BaseModel):
    """Request model for IP geolocation lookup via query parameters.

    If `ip` is provided, the service will look up that explicit IP address.
    If `ip` is omitted or null, the service reports its own public IP address.

    The optional `provider` parameter pins the lookup to one upstream provider.
    If omitted, providers are tried in the default fallback order.
    """

    ip: str | None = Field(
        default=None,
        description="IPv4 or IPv6 address to look up. If omitted, the service's own public IP is used.",
        examples=["8.8.8.8", "2001:4860:4860::8888"],
    )
    provider: str | None = Field(
        default=None,
        description="Upstream provider to use for the lookup. Defaults to fallback across all providers.",
        examples=["ipapi.co", "ip-api.com"],
    )
    refresh: bool = Field(default=False, description="Ignore the cached result and query a provider.")

    @field_validator("ip", mode="before")
    @classmethod
    def _validate_ip(cls, value: str | None) -> str | None:
        return _validate_ip_literal(value)
