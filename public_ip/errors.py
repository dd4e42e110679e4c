from enum import Enum
from typing import NamedTuple


class PublicIpError(Exception):
    """Base error for public IP lookups."""


class ParseErrorKind(str, Enum):
    """Why a provider response could not be normalized."""

    MALFORMED_BODY = "malformed_body"
    MISSING_IP = "missing_ip"
    PROVIDER_ERROR = "provider_error"


class TransportError(PublicIpError):
    """Raised when the request to a provider fails (network error, timeout or non-2xx status)."""

    def __init__(self, provider: str, cause: str, status_code: int | None = None) -> None:
        super().__init__(f"{provider}: {cause}")
        self.provider = provider
        self.cause = cause
        self.status_code = status_code


class ParseError(PublicIpError):
    """Raised when a provider response cannot be mapped into a CanonicalResponse."""

    def __init__(self, provider: str, kind: ParseErrorKind, cause: str) -> None:
        super().__init__(f"{provider}: {kind.value}: {cause}")
        self.provider = provider
        self.kind = kind
        self.cause = cause


class FailedAttempt(NamedTuple):
    provider: str
    error: PublicIpError


class AllProvidersFailedError(PublicIpError):
    """Raised when every candidate provider failed; carries one attempt per provider, in order."""

    def __init__(self, attempts: list[FailedAttempt]) -> None:
        self.attempts = list(attempts)
        if self.attempts:
            details = "; ".join(str(attempt.error) for attempt in self.attempts)
        else:
            details = "no candidate providers"
        super().__init__(f"All IP providers failed: {details}")


class ProviderNotFoundError(PublicIpError):
    """Raised when a caller asks for a provider identifier that is not registered."""

    def __init__(self, identifier: str) -> None:
        super().__init__(f"Unknown IP provider: {identifier!r}")
        self.identifier = identifier


class TargetNotSupportedError(PublicIpError):
    """Raised when a target IP lookup is requested from a provider that only reports the caller's IP."""

    def __init__(self, provider: str) -> None:
        super().__init__(f"IP provider {provider} cannot look up an explicit target address")
        self.provider = provider


class CacheError(PublicIpError):
    """Base error for the lookup cache. Never fatal for a lookup."""


class CacheReadError(CacheError):
    """Raised when the cache file exists but cannot be read or decoded."""


class CacheWriteError(CacheError):
    """Raised when the cache file cannot be written or removed."""


class CacheDecryptionError(CacheError):
    """Raised when an encrypted cache file fails authentication (wrong machine, passphrase or tampering)."""
