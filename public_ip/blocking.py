"""Blocking twin of `public_ip.lookup`, for code that does not run an event loop."""

from functools import lru_cache

from public_ip.cache import build_cache_store
from public_ip.config import get_settings
from public_ip.engine import BlockingLookupEngine
from public_ip.models.common import CanonicalResponse
from public_ip.models.request_models import LookupOptions


@lru_cache
def get_engine() -> BlockingLookupEngine:
    settings = get_settings()
    return BlockingLookupEngine(cache=build_cache_store(settings), settings=settings)


def lookup(options: LookupOptions | None = None) -> CanonicalResponse:
    return get_engine().lookup(options)


def list_providers() -> list[str]:
    return get_engine().list_providers()


def clear_cache() -> None:
    get_engine().clear_cache()
