from typing import Any

from public_ip.models.common import CanonicalResponse
from public_ip.providers.base import ProviderDescriptor, build_response, parse_json, provider_error, split_asn

IDENTIFIER = "ip-api.com"


def _handle_provider_status(data: dict[str, Any]) -> None:
    """ip-api.com reports `status` as "success" or "fail" with a `message`."""
    status_value = str(data.get("status") or "").lower()

    if status_value == "success":
        return

    # status is "fail" or unknown
    message = str(data.get("message") or "Unknown error from ip-api.com")

    if "quota" in message.lower() or "limit" in message.lower():
        raise provider_error(IDENTIFIER, f"IP provider rate limit or quota exceeded: {message}")

    raise provider_error(IDENTIFIER, message)


def parse_response(body: bytes) -> CanonicalResponse:
    """Map ip-api.com's response into the canonical schema."""
    data = parse_json(IDENTIFIER, body)
    _handle_provider_status(data)

    asn, as_org = split_asn(data.get("as"))

    return build_response(
        IDENTIFIER,
        ip=data.get("query"),
        country=data.get("country"),
        country_code=data.get("countryCode"),
        continent=data.get("continent"),
        region=data.get("regionName") or data.get("region"),
        city=data.get("city"),
        postal_code=data.get("zip"),
        latitude=data.get("lat"),
        longitude=data.get("lon"),
        timezone=data.get("timezone"),
        isp=data.get("isp") or data.get("org") or as_org,
        asn=asn,
        hostname=data.get("reverse"),
        is_proxy=data.get("proxy"),
    )


DESCRIPTOR = ProviderDescriptor(
    identifier=IDENTIFIER,
    # The free tier is only served over plain HTTP.
    endpoint="http://ip-api.com/json/",
    target_endpoint="http://ip-api.com/json/{ip}",
    response_parser=parse_response,
)
