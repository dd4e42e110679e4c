from typing import Any

from public_ip.models.common import CanonicalResponse
from public_ip.providers.base import ProviderDescriptor, build_response, parse_json, provider_error

IDENTIFIER = "ipapi.co"


def _handle_provider_error(data: dict[str, Any]) -> None:
    """Normalize provider-specific error payloads into parse errors.

    ipapi.co embeds error information in the JSON body, sometimes with HTTP 200.
    Examples:
        { "error": true, "reason": "Invalid IP Address", "ip": "..." }
        { "error": true, "reason": "Reserved IP Address", "ip": "127.0.0.1", "reserved": true }
        { "error": true, "reason": "RateLimited", "message": "..." }
        { "error": true, "reason": "Quota exceeded", "message": "..." }
    """
    if not data.get("error"):
        return

    reason = str(data.get("reason") or data.get("message") or "Unknown error from ipapi.co")
    lower_reason = reason.lower()

    if "ratelimited" in lower_reason or "quota" in lower_reason:
        raise provider_error(IDENTIFIER, f"IP provider rate limit or quota exceeded: {reason}")

    raise provider_error(IDENTIFIER, reason)


def parse_response(body: bytes) -> CanonicalResponse:
    """Map ipapi.co's response into the canonical schema.

    Latitude/longitude are passed through as-is; CanonicalResponse coerces them
    into floats.
    """
    data = parse_json(IDENTIFIER, body)
    _handle_provider_error(data)

    return build_response(
        IDENTIFIER,
        ip=data.get("ip"),
        country=data.get("country_name"),
        country_code=data.get("country_code") or data.get("country"),
        continent=data.get("continent_code"),
        region=data.get("region"),
        city=data.get("city"),
        postal_code=data.get("postal"),
        latitude=data.get("latitude"),
        longitude=data.get("longitude"),
        timezone=data.get("timezone"),
        # ipapi.co exposes organisation/ISP information via the "org" field.
        isp=data.get("org"),
        asn=data.get("asn"),
    )


DESCRIPTOR = ProviderDescriptor(
    identifier=IDENTIFIER,
    endpoint="https://ipapi.co/json/",
    target_endpoint="https://ipapi.co/{ip}/json/",
    api_key_param="key",
    response_parser=parse_response,
)
