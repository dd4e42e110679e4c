from public_ip.models.common import CanonicalResponse
from public_ip.providers.base import ProviderDescriptor, build_response, parse_json

IDENTIFIER = "freeipapi.com"


def parse_response(body: bytes) -> CanonicalResponse:
    data = parse_json(IDENTIFIER, body)

    time_zones = data.get("timeZones")
    timezone = time_zones[0] if isinstance(time_zones, list) and time_zones else data.get("timeZone")

    return build_response(
        IDENTIFIER,
        ip=data.get("ipAddress"),
        country=data.get("countryName"),
        country_code=data.get("countryCode"),
        continent=data.get("continent"),
        region=data.get("regionName"),
        city=data.get("cityName"),
        postal_code=data.get("zipCode"),
        latitude=data.get("latitude"),
        longitude=data.get("longitude"),
        timezone=timezone,
        is_proxy=data.get("isProxy"),
    )


DESCRIPTOR = ProviderDescriptor(
    identifier=IDENTIFIER,
    endpoint="https://freeipapi.com/api/json",
    target_endpoint="https://freeipapi.com/api/json/{ip}",
    response_parser=parse_response,
)
