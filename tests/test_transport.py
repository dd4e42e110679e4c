from collections.abc import Callable
from http import HTTPStatus
from typing import Any

import httpx
import pytest

from public_ip.errors import TransportError
from public_ip.transport import (
    USER_AGENT,
    AsyncHttpxTransport,
    HttpxTransport,
    TransportRequest,
    TransportResponse,
)
from tests.common import FailingAsyncClient, FailingClient, MockAsyncClient, MockClient, MockResponse

URL = "https://ipwho.is/"


def _request(**overrides: Any) -> TransportRequest:
    fields: dict[str, Any] = {"provider": "ipwho.is", "url": URL, "timeout": 2.0}
    fields.update(overrides)
    return TransportRequest(**fields)


def make_recording_factory(client_cls: type, response: MockResponse) -> tuple[Callable[..., Any], list[Any]]:
    """Factory for fake httpx clients that keeps every client it hands out."""
    created: list[Any] = []

    def _fake_client(*args: Any, **kwargs: Any) -> Any:
        client = client_cls(response, **kwargs)
        created.append(client)
        return client

    return _fake_client, created


@pytest.mark.asyncio
async def test_async_transport_returns_status_and_body(monkeypatch: pytest.MonkeyPatch) -> None:
    response = MockResponse(status_code=HTTPStatus.OK, payload={"ip": "8.8.8.8"})
    factory, created = make_recording_factory(MockAsyncClient, response)
    monkeypatch.setattr(httpx, "AsyncClient", factory)

    result = await AsyncHttpxTransport().send(_request(proxy="http://proxy.local:3128"))

    assert result == TransportResponse(status_code=HTTPStatus.OK, body=b'{"ip": "8.8.8.8"}')
    client = created[0]
    assert client.init_kwargs["timeout"] == 2.0
    assert client.init_kwargs["proxy"] == "http://proxy.local:3128"
    assert client.init_kwargs["trust_env"] is True
    url, kwargs = client.requested[0]
    assert url == URL
    assert kwargs["headers"]["User-Agent"] == USER_AGENT


@pytest.mark.asyncio
async def test_async_transport_returns_error_statuses(monkeypatch: pytest.MonkeyPatch) -> None:
    """Non-2xx responses are data for the engine, not transport failures."""
    response = MockResponse(status_code=HTTPStatus.SERVICE_UNAVAILABLE, text="maintenance")
    factory, _ = make_recording_factory(MockAsyncClient, response)
    monkeypatch.setattr(httpx, "AsyncClient", factory)

    result = await AsyncHttpxTransport().send(_request())

    assert result.status_code == HTTPStatus.SERVICE_UNAVAILABLE
    assert result.body == b"maintenance"


@pytest.mark.asyncio
async def test_async_transport_network_error(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(httpx, "AsyncClient", lambda *args, **kwargs: FailingAsyncClient(URL, *args, **kwargs))

    with pytest.raises(TransportError) as exc_info:
        await AsyncHttpxTransport().send(_request())

    assert exc_info.value.provider == "ipwho.is"
    assert exc_info.value.status_code is None
    assert "Request to IP provider failed" in str(exc_info.value)


def test_blocking_transport_respects_trust_env(monkeypatch: pytest.MonkeyPatch) -> None:
    response = MockResponse(status_code=HTTPStatus.OK, payload={"ip": "8.8.8.8"})
    factory, created = make_recording_factory(MockClient, response)
    monkeypatch.setattr(httpx, "Client", factory)

    result = HttpxTransport(trust_env=False).send(_request())

    assert result.status_code == HTTPStatus.OK
    assert created[0].init_kwargs["trust_env"] is False
    assert created[0].init_kwargs["proxy"] is None


def test_blocking_transport_timeout(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(httpx, "Client", lambda *args, **kwargs: FailingClient(URL, *args, **kwargs))

    with pytest.raises(TransportError) as exc_info:
        HttpxTransport().send(_request())

    assert "ReadTimeout" in exc_info.value.cause
