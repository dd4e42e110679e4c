from public_ip.models.common import CanonicalResponse
from public_ip.providers.base import ProviderDescriptor, build_response, parse_json

IDENTIFIER = "ifconfig.co"


def parse_response(body: bytes) -> CanonicalResponse:
    """Map an echoip (ifconfig.co) response into the canonical schema."""
    data = parse_json(IDENTIFIER, body)

    return build_response(
        IDENTIFIER,
        ip=data.get("ip"),
        country=data.get("country"),
        country_code=data.get("country_iso"),
        region=data.get("region_name"),
        city=data.get("city"),
        postal_code=data.get("zip_code"),
        latitude=data.get("latitude"),
        longitude=data.get("longitude"),
        timezone=data.get("time_zone"),
        isp=data.get("asn_org"),
        asn=data.get("asn"),
        hostname=data.get("hostname"),
    )


DESCRIPTOR = ProviderDescriptor(
    identifier=IDENTIFIER,
    endpoint="https://ifconfig.co/json",
    target_endpoint="https://ifconfig.co/json?ip={ip}",
    response_parser=parse_response,
)
