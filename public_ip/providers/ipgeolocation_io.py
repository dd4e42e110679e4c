from public_ip.models.common import CanonicalResponse
from public_ip.providers.base import ProviderDescriptor, build_response, dig, parse_json, provider_error

IDENTIFIER = "ipgeolocation.io"


def parse_response(body: bytes) -> CanonicalResponse:
    """Map ipgeolocation.io's response into the canonical schema.

    Coordinates arrive as strings; CanonicalResponse coerces them.
    """
    data = parse_json(IDENTIFIER, body)
    if "ip" not in data and data.get("message"):
        raise provider_error(IDENTIFIER, data.get("message"))

    return build_response(
        IDENTIFIER,
        ip=data.get("ip"),
        country=data.get("country_name"),
        country_code=data.get("country_code2"),
        continent=data.get("continent_name"),
        region=data.get("state_prov"),
        city=data.get("city"),
        postal_code=data.get("zipcode"),
        latitude=data.get("latitude"),
        longitude=data.get("longitude"),
        timezone=dig(data, "time_zone", "name"),
        isp=data.get("isp") or data.get("organization"),
    )


DESCRIPTOR = ProviderDescriptor(
    identifier=IDENTIFIER,
    endpoint="https://api.ipgeolocation.io/ipgeo",
    target_endpoint="https://api.ipgeolocation.io/ipgeo?ip={ip}",
    requires_api_key=True,
    api_key_param="apiKey",
    response_parser=parse_response,
)
