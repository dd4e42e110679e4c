from public_ip.models.common import CanonicalResponse
from public_ip.providers.base import ProviderDescriptor, build_response, dig, format_asn, parse_json, provider_error

IDENTIFIER = "abstractapi.com"


def parse_response(body: bytes) -> CanonicalResponse:
    data = parse_json(IDENTIFIER, body)
    if "error" in data:
        raise provider_error(IDENTIFIER, dig(data, "error", "message"))

    return build_response(
        IDENTIFIER,
        ip=data.get("ip_address"),
        country=data.get("country"),
        country_code=data.get("country_code"),
        continent=data.get("continent"),
        region=data.get("region"),
        city=data.get("city"),
        postal_code=data.get("postal_code"),
        latitude=data.get("latitude"),
        longitude=data.get("longitude"),
        timezone=dig(data, "timezone", "name"),
        isp=dig(data, "connection", "isp_name") or dig(data, "connection", "autonomous_system_organization"),
        asn=format_asn(dig(data, "connection", "autonomous_system_number")),
        is_proxy=dig(data, "security", "is_vpn"),
    )


DESCRIPTOR = ProviderDescriptor(
    identifier=IDENTIFIER,
    endpoint="https://ipgeolocation.abstractapi.com/v1/",
    target_endpoint="https://ipgeolocation.abstractapi.com/v1/?ip_address={ip}",
    requires_api_key=True,
    api_key_param="api_key",
    response_parser=parse_response,
)
