"""Asynchronous library surface.

    from public_ip.lookup import lookup

    result = await lookup()
    print(result.ip, result.city, result.country)

See `public_ip.blocking` for the same functions without asyncio.
"""

from functools import lru_cache

from public_ip.cache import build_cache_store
from public_ip.config import get_settings
from public_ip.engine import LookupEngine
from public_ip.models.common import CanonicalResponse
from public_ip.models.request_models import LookupOptions


@lru_cache
def get_engine() -> LookupEngine:
    settings = get_settings()
    return LookupEngine(cache=build_cache_store(settings), settings=settings)


async def lookup(options: LookupOptions | None = None) -> CanonicalResponse:
    """Look up the public IP (or `options.target`) with cache and provider fallback.

    Raises AllProvidersFailedError when no provider produced a result,
    ProviderNotFoundError for unknown provider identifiers and
    TargetNotSupportedError when an explicitly chosen provider cannot look up
    the target.
    """
    return await get_engine().lookup(options)


def list_providers() -> list[str]:
    """Identifiers of the built-in providers, in default fallback order."""
    return get_engine().list_providers()


def clear_cache() -> None:
    get_engine().clear_cache()
