from dataclasses import dataclass, field
from typing import Protocol

import httpx

from public_ip.errors import TransportError

USER_AGENT = "public-ip-lookup/0.1.0"

DEFAULT_HEADERS = {
    "Accept": "application/json",
    "User-Agent": USER_AGENT,
}

PROXY_SCHEMES = ("http", "https", "socks5", "socks5h")


def validate_proxy_url(value: str | None) -> str | None:
    """Normalize a proxy URL, rejecting schemes and shapes httpx cannot proxy through."""
    if value is None or not str(value).strip():
        return None

    value_str = str(value).strip()
    try:
        url = httpx.URL(value_str)
    except httpx.InvalidURL as exc:
        raise ValueError(f"proxy is not a valid URL: {exc}") from exc

    if url.scheme not in PROXY_SCHEMES or not url.host:
        raise ValueError(f"proxy must be an absolute {', '.join(PROXY_SCHEMES)} URL")
    return value_str


@dataclass(frozen=True)
class TransportRequest:
    provider: str
    url: str
    timeout: float
    proxy: str | None = None
    headers: dict[str, str] = field(default_factory=lambda: dict(DEFAULT_HEADERS))


@dataclass(frozen=True)
class TransportResponse:
    status_code: int
    body: bytes


class Transport(Protocol):
    def send(self, request: TransportRequest) -> TransportResponse: ...


class AsyncTransport(Protocol):
    async def send(self, request: TransportRequest) -> TransportResponse: ...


class HttpxTransport:
    """Blocking transport backed by httpx.Client.

    Any status code is returned to the caller; only failures to obtain a
    response at all (connection errors, timeouts, proxy errors) raise.
    """

    def __init__(self, trust_env: bool = True) -> None:
        self._trust_env = trust_env

    def send(self, request: TransportRequest) -> TransportResponse:
        try:
            with httpx.Client(
                timeout=request.timeout,
                proxy=request.proxy,
                trust_env=self._trust_env,
                follow_redirects=True,
            ) as client:
                response = client.get(request.url, headers=request.headers)
        except httpx.RequestError as exc:
            raise TransportError(request.provider, f"Request to IP provider failed: {repr(exc)}") from exc

        return TransportResponse(status_code=response.status_code, body=response.content)


class AsyncHttpxTransport:
    """Asynchronous twin of HttpxTransport backed by httpx.AsyncClient."""

    def __init__(self, trust_env: bool = True) -> None:
        self._trust_env = trust_env

    async def send(self, request: TransportRequest) -> TransportResponse:
        try:
            async with httpx.AsyncClient(
                timeout=request.timeout,
                proxy=request.proxy,
                trust_env=self._trust_env,
                follow_redirects=True,
            ) as client:
                response = await client.get(request.url, headers=request.headers)
        except httpx.RequestError as exc:
            raise TransportError(request.provider, f"Request to IP provider failed: {repr(exc)}") from exc

        return TransportResponse(status_code=response.status_code, body=response.content)
