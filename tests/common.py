import json
from http import HTTPStatus
from typing import Any

import httpx
import pytest

from public_ip.errors import TransportError
from public_ip.models.common import CanonicalResponse
from public_ip.providers.base import ProviderDescriptor, build_response, parse_json
from public_ip.transport import TransportRequest, TransportResponse


def json_body(payload: Any) -> bytes:
    return json.dumps(payload).encode()


class MockResponse:
    def __init__(self, status_code: int, payload: Any = None, text: str | None = None) -> None:
        self.status_code = status_code
        self.text = text if text is not None else json.dumps(payload or {})
        self.content = self.text.encode()


class MockAsyncClient:
    """Minimal async context-manager mock for httpx.AsyncClient that records requests."""

    def __init__(self, response: MockResponse, **kwargs: Any) -> None:
        self._response = response
        self.init_kwargs = kwargs
        self.requested: list[tuple[str, dict[str, Any]]] = []

    async def __aenter__(self) -> "MockAsyncClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        return None

    async def get(self, url: str, **kwargs: Any) -> MockResponse:
        self.requested.append((url, kwargs))
        return self._response


class MockClient:
    """Blocking counterpart of MockAsyncClient for httpx.Client."""

    def __init__(self, response: MockResponse, **kwargs: Any) -> None:
        self._response = response
        self.init_kwargs = kwargs
        self.requested: list[tuple[str, dict[str, Any]]] = []

    def __enter__(self) -> "MockClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        return None

    def get(self, url: str, **kwargs: Any) -> MockResponse:
        self.requested.append((url, kwargs))
        return self._response


class FailingAsyncClient:
    """Async client that raises a RequestError on enter to simulate network failure.

    The target URL is provided at construction time, so tests for different providers
    can reuse this implementation with different base URLs.
    """

    def __init__(self, url: str, *args: Any, **kwargs: Any) -> None:
        self._url = url

    async def __aenter__(self) -> "FailingAsyncClient":
        request = httpx.Request("GET", self._url)
        raise httpx.ConnectError("Network failure", request=request)

    async def __aexit__(self, exc_type, exc, tb) -> None:
        return None


class FailingClient:
    """Blocking client whose request times out."""

    def __init__(self, url: str, *args: Any, **kwargs: Any) -> None:
        self._url = url

    def __enter__(self) -> "FailingClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        return None

    def get(self, url: str, **kwargs: Any) -> MockResponse:
        raise httpx.ReadTimeout("Timed out", request=httpx.Request("GET", self._url))


class StubTransport:
    """Scripted transport: maps provider identifiers to a MockResponse or a failure message."""

    def __init__(self, outcomes: dict[str, MockResponse | str]) -> None:
        self._outcomes = outcomes
        self.requests: list[TransportRequest] = []

    @property
    def calls(self) -> list[str]:
        return [request.provider for request in self.requests]

    def _respond(self, request: TransportRequest) -> TransportResponse:
        self.requests.append(request)
        outcome = self._outcomes[request.provider]
        if isinstance(outcome, str):
            raise TransportError(request.provider, outcome)
        return TransportResponse(status_code=outcome.status_code, body=outcome.content)

    def send(self, request: TransportRequest) -> TransportResponse:
        return self._respond(request)


class AsyncStubTransport(StubTransport):
    async def send(self, request: TransportRequest) -> TransportResponse:  # type: ignore[override]
        return self._respond(request)


class NoNetworkTransport:
    """Fails the test if the engine touches the network."""

    def send(self, request: TransportRequest) -> TransportResponse:
        pytest.fail(f"Unexpected network request to {request.provider}")


class AsyncNoNetworkTransport:
    async def send(self, request: TransportRequest) -> TransportResponse:
        pytest.fail(f"Unexpected network request to {request.provider}")


def make_descriptor(identifier: str, supports_target: bool = True, requires_api_key: bool = False) -> ProviderDescriptor:
    """Test provider that understands `{"ip": ..., "country": ...}` bodies."""

    def parse(body: bytes) -> CanonicalResponse:
        data = parse_json(identifier, body)
        return build_response(identifier, ip=data.get("ip"), country=data.get("country"))

    return ProviderDescriptor(
        identifier=identifier,
        endpoint=f"https://{identifier}/json",
        target_endpoint=f"https://{identifier}/json/{{ip}}" if supports_target else None,
        requires_api_key=requires_api_key,
        api_key_param="key",
        response_parser=parse,
    )


def ok(payload: Any) -> MockResponse:
    return MockResponse(status_code=HTTPStatus.OK, payload=payload)
