from datetime import datetime, timedelta
from ipaddress import ip_address
from typing import Any

from pydantic import AwareDatetime, BaseModel, ConfigDict, field_validator


class CanonicalResponse(BaseModel):
    """Normalized IP and geolocation data returned by any provider.

    Providers disclose different subsets of fields, so everything except `ip`
    and `provider_used` is optional. Instances are immutable and are shared
    between the caller and the cache.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

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
    provider_used: str

    @field_validator("ip", mode="before")
    @classmethod
    def _validate_ip(cls, value: Any) -> str:
        """Accept only IPv4/IPv6 literals, normalized to their canonical text form."""
        return str(ip_address(str(value).strip()))

    @field_validator(
        "country",
        "country_code",
        "continent",
        "region",
        "city",
        "postal_code",
        "timezone",
        "isp",
        "asn",
        "hostname",
        mode="before",
    )
    @classmethod
    def _blank_to_none(cls, value: Any) -> str | None:
        if value is None:
            return None
        value_str = str(value).strip()
        return value_str or None

    @field_validator("latitude", "longitude", mode="before")
    @classmethod
    def _coerce_lat_lon(cls, value: Any) -> float | None:
        """Allow latitude/longitude to be provided as strings, numbers, or null.

        Providers may return these fields as strings; this validator normalizes them
        into floats while gracefully handling missing or invalid values.
        """
        if value is None or isinstance(value, bool):
            return None
        try:
            # For general GPS and mapping, 5-6 decimal places (e.g., 34.052235)
            return round(float(value), 6)
        except (TypeError, ValueError):
            return None


class CacheEntry(BaseModel):
    """The last successful lookup, as persisted by the cache store."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    response: CanonicalResponse
    fetched_at: AwareDatetime
    ttl: timedelta

    def is_fresh(self, now: datetime, max_age: timedelta | None = None) -> bool:
        """Whether the entry may still be served at `now`.

        The effective lifetime is the shorter of the TTL it was written with and
        the caller's `max_age`. Entries stamped in the future count as stale.
        """
        lifetime = self.ttl if max_age is None else min(self.ttl, max_age)
        age = now - self.fetched_at
        return timedelta(0) <= age < lifetime
