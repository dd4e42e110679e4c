from public_ip.models.common import CanonicalResponse
from public_ip.providers.base import ProviderDescriptor, build_response, format_asn, parse_json

IDENTIFIER = "ipleak.net"


def parse_response(body: bytes) -> CanonicalResponse:
    data = parse_json(IDENTIFIER, body)

    return build_response(
        IDENTIFIER,
        ip=data.get("ip"),
        country=data.get("country_name"),
        country_code=data.get("country_code"),
        continent=data.get("continent_name"),
        region=data.get("region_name"),
        city=data.get("city_name"),
        postal_code=data.get("postal_code"),
        latitude=data.get("latitude"),
        longitude=data.get("longitude"),
        timezone=data.get("time_zone"),
        isp=data.get("isp_name"),
        asn=format_asn(data.get("as_number")),
        hostname=data.get("reverse"),
    )


DESCRIPTOR = ProviderDescriptor(
    identifier=IDENTIFIER,
    endpoint="https://ipleak.net/json/",
    target_endpoint="https://ipleak.net/json/{ip}",
    response_parser=parse_response,
)
