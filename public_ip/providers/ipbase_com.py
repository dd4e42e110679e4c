from public_ip.models.common import CanonicalResponse
from public_ip.providers.base import ProviderDescriptor, build_response, dig, format_asn, parse_json, provider_error

IDENTIFIER = "ipbase.com"


def parse_response(body: bytes) -> CanonicalResponse:
    """Map ipbase.com's v2 response into the canonical schema.

    Everything lives under a top-level "data" object; errors carry only a "message".
    """
    payload = parse_json(IDENTIFIER, body)
    data = payload.get("data")
    if not isinstance(data, dict):
        raise provider_error(IDENTIFIER, payload.get("message"))

    location = data.get("location") or {}

    return build_response(
        IDENTIFIER,
        ip=data.get("ip"),
        country=dig(location, "country", "name"),
        country_code=dig(location, "country", "alpha2"),
        continent=dig(location, "continent", "name"),
        region=dig(location, "region", "name"),
        city=dig(location, "city", "name"),
        postal_code=location.get("zip"),
        latitude=location.get("latitude"),
        longitude=location.get("longitude"),
        timezone=dig(data, "timezone", "id"),
        isp=dig(data, "connection", "isp") or dig(data, "connection", "organization"),
        asn=format_asn(dig(data, "connection", "asn")),
        hostname=data.get("hostname"),
        is_proxy=dig(data, "security", "is_proxy"),
    )


DESCRIPTOR = ProviderDescriptor(
    identifier=IDENTIFIER,
    endpoint="https://api.ipbase.com/v2/info",
    target_endpoint="https://api.ipbase.com/v2/info?ip={ip}",
    api_key_param="apikey",
    response_parser=parse_response,
)
