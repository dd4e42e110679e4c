from public_ip.models.common import CanonicalResponse
from public_ip.providers.base import ProviderDescriptor, build_response, parse_json

IDENTIFIER = "mullvad.net"


def parse_response(body: bytes) -> CanonicalResponse:
    data = parse_json(IDENTIFIER, body)

    return build_response(
        IDENTIFIER,
        ip=data.get("ip"),
        country=data.get("country"),
        city=data.get("city"),
        latitude=data.get("latitude"),
        longitude=data.get("longitude"),
        isp=data.get("organization"),
        # Mullvad only knows whether the address is one of its own VPN exits.
        is_proxy=data.get("mullvad_exit_ip"),
    )


DESCRIPTOR = ProviderDescriptor(
    identifier=IDENTIFIER,
    endpoint="https://am.i.mullvad.net/json",
    response_parser=parse_response,
)
