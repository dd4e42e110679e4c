"""Lookup engine: cache fast path, then sequential fallback across providers.

The algorithm is written once, in `BaseLookupEngine._lookup_flow`, as a
generator that yields a `TransportRequest` wherever it needs the network and
is resumed with the `TransportResponse` (or has the `TransportError` thrown
into it). `BlockingLookupEngine` and `LookupEngine` only differ in how they
drive that generator: with a blocking transport or with an awaited one.
"""

from collections.abc import Callable, Generator
from datetime import datetime, timedelta, timezone
from http import HTTPStatus

from public_ip.cache import CacheStore
from public_ip.config import Settings, get_settings
from public_ip.errors import (
    AllProvidersFailedError,
    CacheError,
    FailedAttempt,
    ParseError,
    TargetNotSupportedError,
    TransportError,
)
from public_ip.logger import logger
from public_ip.models.common import CacheEntry, CanonicalResponse
from public_ip.models.request_models import LookupOptions
from public_ip.providers.base import ProviderDescriptor
from public_ip.providers.registry import DEFAULT_REGISTRY, ProviderRegistry
from public_ip.transport import (
    AsyncHttpxTransport,
    AsyncTransport,
    HttpxTransport,
    Transport,
    TransportRequest,
    TransportResponse,
)

LookupFlow = Generator[TransportRequest, TransportResponse, CanonicalResponse]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def run_blocking(flow: LookupFlow, transport: Transport) -> CanonicalResponse:
    """Drive a lookup flow to completion with a blocking transport."""
    try:
        request = next(flow)
        while True:
            try:
                response = transport.send(request)
            except TransportError as exc:
                request = flow.throw(exc)
            else:
                request = flow.send(response)
    except StopIteration as stop:
        return stop.value


async def run_async(flow: LookupFlow, transport: AsyncTransport) -> CanonicalResponse:
    """Drive a lookup flow to completion, suspending on each network request."""
    try:
        request = next(flow)
        while True:
            try:
                response = await transport.send(request)
            except TransportError as exc:
                request = flow.throw(exc)
            else:
                request = flow.send(response)
    except StopIteration as stop:
        return stop.value


def _raise_for_status(provider: str, response: TransportResponse) -> None:
    """Map non-2xx status codes from the provider to transport errors."""
    status_code = response.status_code

    if HTTPStatus.OK <= status_code < HTTPStatus.MULTIPLE_CHOICES:
        return

    if status_code == HTTPStatus.TOO_MANY_REQUESTS:
        raise TransportError(provider, "IP provider rate limit or quota exceeded (HTTP 429).", status_code)

    if status_code in (HTTPStatus.UNAUTHORIZED, HTTPStatus.FORBIDDEN):
        raise TransportError(provider, f"Authentication with IP provider failed (HTTP {status_code}).", status_code)

    text = response.body[:200].decode("utf-8", errors="replace")
    raise TransportError(provider, f"IP provider returned HTTP {status_code}: {text}", status_code)


class BaseLookupEngine:
    def __init__(
        self,
        registry: ProviderRegistry = DEFAULT_REGISTRY,
        cache: CacheStore | None = None,
        settings: Settings | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._registry = registry
        self._cache = cache
        self._settings = settings or get_settings()
        self._clock = clock

    @property
    def registry(self) -> ProviderRegistry:
        return self._registry

    @property
    def cache(self) -> CacheStore | None:
        return self._cache

    def list_providers(self) -> list[str]:
        return self._registry.identifiers()

    def clear_cache(self) -> None:
        if self._cache is not None:
            self._cache.clear()
            logger.info(f"Cleared lookup cache path={self._cache.path}")

    def _api_keys(self, options: LookupOptions) -> dict[str, str]:
        keys = dict(self._settings.api_keys)
        keys.update({identifier.strip().lower(): key for identifier, key in options.api_keys.items() if key})
        return keys

    def _candidates(self, options: LookupOptions, api_keys: dict[str, str]) -> tuple[ProviderDescriptor, ...]:
        """Providers to try, in order.

        Explicit choices are honoured as given; the default set leaves out
        providers that need a missing API key or cannot serve the target.
        """
        if options.provider is not None:
            candidates: tuple[ProviderDescriptor, ...] = (self._registry.by_identifier(options.provider),)
        elif options.providers is not None:
            candidates = self._registry.subset(options.providers)
        else:
            return tuple(
                descriptor
                for descriptor in self._registry.all()
                if (not descriptor.requires_api_key or descriptor.identifier in api_keys)
                and (options.target is None or descriptor.supports_target)
            )

        if options.target is not None:
            for descriptor in candidates:
                if not descriptor.supports_target:
                    raise TargetNotSupportedError(descriptor.identifier)
        return candidates

    def _read_cached(self, cache: CacheStore, now: datetime, ttl: timedelta) -> CanonicalResponse | None:
        try:
            entry = cache.read()
        except CacheError as exc:
            logger.warning(f"Ignoring unusable lookup cache path={cache.path} error={exc}")
            return None

        if entry is None:
            return None
        if not entry.is_fresh(now, ttl):
            logger.debug(f"Cached lookup is stale fetched_at={entry.fetched_at.isoformat()} ttl={ttl}")
            return None

        logger.info(
            f"Serving cached lookup ip={entry.response.ip} provider={entry.response.provider_used} "
            f"fetched_at={entry.fetched_at.isoformat()}"
        )
        return entry.response

    def _write_cached(self, cache: CacheStore, response: CanonicalResponse, ttl: timedelta) -> None:
        try:
            cache.write(CacheEntry(response=response, fetched_at=self._clock(), ttl=ttl))
        except CacheError as exc:
            logger.warning(f"Could not update lookup cache path={cache.path} error={exc}")

    def _lookup_flow(self, options: LookupOptions) -> LookupFlow:
        api_keys = self._api_keys(options)
        candidates = self._candidates(options, api_keys)
        timeout = options.timeout or self._settings.request_timeout_seconds
        ttl = options.cache_ttl
        if ttl is None:
            ttl = timedelta(seconds=self._settings.cache_ttl_seconds)
        proxy = options.proxy or self._settings.proxy
        # The cache only ever holds the caller's own address.
        cache = self._cache if options.use_cache and options.target is None else None

        if cache is not None and not options.refresh_cache:
            cached = self._read_cached(cache, self._clock(), ttl)
            if cached is not None:
                return cached

        attempts: list[FailedAttempt] = []
        for descriptor in candidates:
            provider = descriptor.identifier
            request = TransportRequest(
                provider=provider,
                url=descriptor.request_url(options.target, api_keys.get(provider)),
                timeout=timeout,
                proxy=proxy,
            )
            logger.debug(f"Querying IP provider provider={provider} target={options.target} timeout={timeout}")

            try:
                response = yield request
                _raise_for_status(provider, response)
                result = descriptor.parse(response.body)
            except (TransportError, ParseError) as exc:
                logger.warning(f"IP provider failed, trying next provider={provider} error={exc}")
                attempts.append(FailedAttempt(provider, exc))
                continue

            logger.info(f"IP lookup succeeded provider={provider} ip={result.ip} target={options.target}")
            if cache is not None:
                self._write_cached(cache, result, ttl)
            return result

        logger.error(
            f"All IP providers failed attempted={[attempt.provider for attempt in attempts]} target={options.target}"
        )
        raise AllProvidersFailedError(attempts)


class BlockingLookupEngine(BaseLookupEngine):
    """Runs every lookup to completion on the calling thread."""

    def __init__(
        self,
        registry: ProviderRegistry = DEFAULT_REGISTRY,
        cache: CacheStore | None = None,
        settings: Settings | None = None,
        clock: Callable[[], datetime] = utcnow,
        transport: Transport | None = None,
    ) -> None:
        super().__init__(registry, cache, settings, clock)
        self._transport = transport or HttpxTransport(trust_env=self._settings.trust_env)

    def lookup(self, options: LookupOptions | None = None) -> CanonicalResponse:
        return run_blocking(self._lookup_flow(options or LookupOptions()), self._transport)


class LookupEngine(BaseLookupEngine):
    """Asynchronous engine; suspends only while waiting on a provider."""

    def __init__(
        self,
        registry: ProviderRegistry = DEFAULT_REGISTRY,
        cache: CacheStore | None = None,
        settings: Settings | None = None,
        clock: Callable[[], datetime] = utcnow,
        transport: AsyncTransport | None = None,
    ) -> None:
        super().__init__(registry, cache, settings, clock)
        self._transport = transport or AsyncHttpxTransport(trust_env=self._settings.trust_env)

    async def lookup(self, options: LookupOptions | None = None) -> CanonicalResponse:
        return await run_async(self._lookup_flow(options or LookupOptions()), self._transport)
