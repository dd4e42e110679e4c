from public_ip.models.common import CanonicalResponse
from public_ip.providers.base import ProviderDescriptor, build_response, dig, parse_json, provider_error

IDENTIFIER = "ip-api.io"


def parse_response(body: bytes) -> CanonicalResponse:
    data = parse_json(IDENTIFIER, body)
    if data.get("error"):
        raise provider_error(IDENTIFIER, data.get("message") or data.get("error"))

    return build_response(
        IDENTIFIER,
        ip=data.get("ip"),
        country=data.get("country_name"),
        country_code=data.get("country_code"),
        region=data.get("region_name"),
        city=data.get("city"),
        postal_code=data.get("zip_code"),
        latitude=data.get("latitude"),
        longitude=data.get("longitude"),
        timezone=data.get("time_zone"),
        isp=data.get("organisation"),
        is_proxy=dig(data, "suspicious_factors", "is_proxy"),
    )


DESCRIPTOR = ProviderDescriptor(
    identifier=IDENTIFIER,
    endpoint="https://ip-api.io/json",
    target_endpoint="https://ip-api.io/json/{ip}",
    api_key_param="api_key",
    response_parser=parse_response,
)
