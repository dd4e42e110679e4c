from public_ip.models.common import CanonicalResponse
from public_ip.providers.base import ProviderDescriptor, build_response, dig, format_asn, parse_json, provider_error

IDENTIFIER = "my-ip.io"


def parse_response(body: bytes) -> CanonicalResponse:
    data = parse_json(IDENTIFIER, body)
    if data.get("success") is False:
        raise provider_error(IDENTIFIER, data.get("error") or data.get("message"))

    return build_response(
        IDENTIFIER,
        ip=data.get("ip"),
        country=dig(data, "country", "name"),
        country_code=dig(data, "country", "code"),
        region=data.get("region"),
        city=data.get("city"),
        latitude=dig(data, "location", "lat"),
        longitude=dig(data, "location", "lon"),
        timezone=data.get("timeZone"),
        isp=dig(data, "asn", "name"),
        asn=format_asn(dig(data, "asn", "number")),
        is_proxy=data.get("isProxy"),
    )


DESCRIPTOR = ProviderDescriptor(
    identifier=IDENTIFIER,
    # Only reports the caller's own address.
    endpoint="https://api.my-ip.io/v2/ip.json",
    response_parser=parse_response,
)
