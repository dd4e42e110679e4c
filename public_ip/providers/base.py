"""Provider descriptors and the helpers their response parsers share.

A provider is pure data plus a parsing function: the descriptor says where to
send the request and how to turn the raw response body into a
CanonicalResponse. Nothing here performs network I/O.
"""

import json
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import httpx
from pydantic import ValidationError

from public_ip.errors import ParseError, ParseErrorKind, TargetNotSupportedError
from public_ip.models.common import CanonicalResponse

ResponseParser = Callable[[bytes], CanonicalResponse]


@dataclass(frozen=True)
class ProviderDescriptor:
    identifier: str
    endpoint: str
    response_parser: ResponseParser
    target_endpoint: str | None = None
    requires_api_key: bool = False
    api_key_param: str | None = None

    @property
    def supports_target(self) -> bool:
        return self.target_endpoint is not None

    def request_url(self, target: str | None = None, api_key: str | None = None) -> str:
        """Build the request URL for the caller's own IP, or for `target` when given."""
        if target is None:
            template = self.endpoint
        elif self.target_endpoint is None:
            raise TargetNotSupportedError(self.identifier)
        else:
            template = self.target_endpoint.format(ip=target)

        url = httpx.URL(template)
        if api_key and self.api_key_param:
            url = url.copy_add_param(self.api_key_param, api_key)
        return str(url)

    def parse(self, body: bytes) -> CanonicalResponse:
        """Run the response parser, classifying any unexpected failure as a malformed body."""
        try:
            return self.response_parser(body)
        except ParseError:
            raise
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            raise ParseError(self.identifier, ParseErrorKind.MALFORMED_BODY, repr(exc)) from exc


def parse_json(provider: str, body: bytes) -> dict[str, Any]:
    try:
        data = json.loads(body)
    except ValueError as exc:
        raise ParseError(
            provider, ParseErrorKind.MALFORMED_BODY, f"Failed to decode IP provider response as JSON: {exc}"
        ) from exc
    if not isinstance(data, dict):
        raise ParseError(provider, ParseErrorKind.MALFORMED_BODY, "Expected a JSON object from IP provider")
    return data


def provider_error(provider: str, message: Any) -> ParseError:
    """Error payload reported by the provider itself, usually with HTTP 200."""
    reason = str(message or f"Unknown error from {provider}")
    return ParseError(provider, ParseErrorKind.PROVIDER_ERROR, reason)


def build_response(provider: str, **fields: Any) -> CanonicalResponse:
    """Create the canonical response, enforcing the mandatory IP field."""
    ip = fields.pop("ip", None)
    if ip is None or not str(ip).strip():
        raise ParseError(provider, ParseErrorKind.MISSING_IP, "IP provider response has no IP address")
    try:
        return CanonicalResponse(ip=ip, provider_used=provider, **fields)
    except ValidationError as exc:
        if any(error.get("loc") == ("ip",) for error in exc.errors()):
            raise ParseError(provider, ParseErrorKind.MISSING_IP, f"Not a valid IP address: {ip!r}") from exc
        raise ParseError(provider, ParseErrorKind.MALFORMED_BODY, str(exc)) from exc


def dig(data: Any, *keys: str) -> Any:
    """Walk nested JSON objects, returning None as soon as a level is missing."""
    for key in keys:
        if not isinstance(data, dict):
            return None
        data = data.get(key)
    return data


def split_asn(value: Any) -> tuple[str | None, str | None]:
    """Split strings such as "AS15169 Google LLC" into ("AS15169", "Google LLC")."""
    text = str(value or "").strip()
    if not text:
        return None, None
    head, _, rest = text.partition(" ")
    if head.upper().startswith("AS") and head[2:].isdigit():
        return head.upper(), rest.strip() or None
    return None, text


def format_asn(value: Any) -> str | None:
    """Render numeric or prefixed AS numbers uniformly as "AS<number>"."""
    if value is None or isinstance(value, bool):
        return None
    text = str(value).strip()
    if not text:
        return None
    if text.isdigit():
        return f"AS{text}"
    return text.upper() if text[:2].upper() == "AS" else text
