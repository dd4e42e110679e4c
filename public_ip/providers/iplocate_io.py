from public_ip.models.common import CanonicalResponse
from public_ip.providers.base import ProviderDescriptor, build_response, dig, parse_json, provider_error

IDENTIFIER = "iplocate.io"


def parse_response(body: bytes) -> CanonicalResponse:
    data = parse_json(IDENTIFIER, body)
    if data.get("error"):
        raise provider_error(IDENTIFIER, data.get("error"))

    return build_response(
        IDENTIFIER,
        ip=data.get("ip"),
        country=data.get("country"),
        country_code=data.get("country_code"),
        continent=data.get("continent"),
        region=data.get("subdivision"),
        city=data.get("city"),
        postal_code=data.get("postal_code"),
        latitude=data.get("latitude"),
        longitude=data.get("longitude"),
        timezone=data.get("time_zone"),
        isp=data.get("org"),
        asn=data.get("asn"),
        is_proxy=dig(data, "threat", "is_proxy"),
    )


DESCRIPTOR = ProviderDescriptor(
    identifier=IDENTIFIER,
    endpoint="https://www.iplocate.io/api/lookup/json",
    target_endpoint="https://www.iplocate.io/api/lookup/{ip}/json",
    api_key_param="apikey",
    response_parser=parse_response,
)
