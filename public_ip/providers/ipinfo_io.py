from public_ip.models.common import CanonicalResponse
from public_ip.providers.base import ProviderDescriptor, build_response, dig, parse_json, provider_error, split_asn

IDENTIFIER = "ipinfo.io"


def parse_response(body: bytes) -> CanonicalResponse:
    """Map ipinfo.io's response into the canonical schema.

    ipinfo.io reports coordinates as a single "lat,lon" string and only the
    ISO country code. Reserved addresses are flagged with `"bogon": true`.
    """
    data = parse_json(IDENTIFIER, body)
    if "error" in data:
        raise provider_error(IDENTIFIER, dig(data, "error", "message") or dig(data, "error", "title"))
    if data.get("bogon"):
        raise provider_error(IDENTIFIER, f"Bogon IP address: {data.get('ip')}")

    latitude = longitude = None
    if data.get("loc"):
        latitude, _, longitude = str(data["loc"]).partition(",")

    asn, org = split_asn(data.get("org"))

    return build_response(
        IDENTIFIER,
        ip=data.get("ip"),
        country_code=data.get("country"),
        region=data.get("region"),
        city=data.get("city"),
        postal_code=data.get("postal"),
        latitude=latitude,
        longitude=longitude,
        timezone=data.get("timezone"),
        isp=org,
        asn=asn,
        hostname=data.get("hostname"),
    )


DESCRIPTOR = ProviderDescriptor(
    identifier=IDENTIFIER,
    endpoint="https://ipinfo.io/json",
    target_endpoint="https://ipinfo.io/{ip}/json",
    api_key_param="token",
    response_parser=parse_response,
)
