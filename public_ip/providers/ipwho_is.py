from public_ip.models.common import CanonicalResponse
from public_ip.providers.base import ProviderDescriptor, build_response, dig, format_asn, parse_json, provider_error

IDENTIFIER = "ipwho.is"


def parse_response(body: bytes) -> CanonicalResponse:
    """Map ipwho.is's response into the canonical schema.

    Failures come back with HTTP 200 as `{"success": false, "message": "..."}`.
    """
    data = parse_json(IDENTIFIER, body)
    if data.get("success") is False:
        raise provider_error(IDENTIFIER, data.get("message"))

    return build_response(
        IDENTIFIER,
        ip=data.get("ip"),
        country=data.get("country"),
        country_code=data.get("country_code"),
        continent=data.get("continent"),
        region=data.get("region"),
        city=data.get("city"),
        postal_code=data.get("postal"),
        latitude=data.get("latitude"),
        longitude=data.get("longitude"),
        timezone=dig(data, "timezone", "id"),
        isp=dig(data, "connection", "isp") or dig(data, "connection", "org"),
        asn=format_asn(dig(data, "connection", "asn")),
    )


DESCRIPTOR = ProviderDescriptor(
    identifier=IDENTIFIER,
    endpoint="https://ipwho.is/",
    target_endpoint="https://ipwho.is/{ip}",
    response_parser=parse_response,
)
