from public_ip.models.common import CanonicalResponse
from public_ip.providers.base import ProviderDescriptor, build_response, dig, parse_json, provider_error

IDENTIFIER = "ipdata.co"


def parse_response(body: bytes) -> CanonicalResponse:
    """Map ipdata.co's response into the canonical schema.

    Time zone, ASN and threat data are nested objects; errors carry only a "message".
    """
    data = parse_json(IDENTIFIER, body)
    if "ip" not in data and data.get("message"):
        raise provider_error(IDENTIFIER, data.get("message"))

    return build_response(
        IDENTIFIER,
        ip=data.get("ip"),
        country=data.get("country_name"),
        country_code=data.get("country_code"),
        continent=data.get("continent_name"),
        region=data.get("region"),
        city=data.get("city"),
        postal_code=data.get("postal"),
        latitude=data.get("latitude"),
        longitude=data.get("longitude"),
        timezone=dig(data, "time_zone", "name"),
        isp=dig(data, "asn", "name") or dig(data, "carrier", "name"),
        asn=dig(data, "asn", "asn"),
        is_proxy=dig(data, "threat", "is_proxy"),
    )


DESCRIPTOR = ProviderDescriptor(
    identifier=IDENTIFIER,
    endpoint="https://api.ipdata.co/",
    target_endpoint="https://api.ipdata.co/{ip}",
    requires_api_key=True,
    api_key_param="api-key",
    response_parser=parse_response,
)
