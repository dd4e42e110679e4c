from typing import Any

from fastapi import Request, status
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from public_ip.errors import (
    AllProvidersFailedError,
    CacheError,
    ProviderNotFoundError,
    PublicIpError,
    TargetNotSupportedError,
)
from public_ip.logger import logger


def _get_provider_from_request(request: Request) -> str | None:
    """Best-effort extraction of the provider value from the incoming request.

    Currently this looks at the `provider` query parameter used by /v1/ip/lookup.
    For other endpoints this will typically be None.
    """
    return request.query_params.get("provider")


def _build_validation_error_payload(exc: ValidationError) -> dict[str, Any]:
    """Normalize validation errors into `{code, message}`.

    Internal validation details are not exposed to clients.
    """
    for error in exc.errors():
        loc = error.get("loc", ())
        # Query model uses "ip", LookupOptions uses "target".
        if loc and loc[-1] in ("ip", "target"):
            return {
                "code": "invalid_ip",
                "message": "The supplied IP address is not a valid IPv4 or IPv6 address.",
            }
    return {"code": "invalid_request", "message": "Invalid request parameters"}


def _build_lookup_error_payload(exc: PublicIpError) -> tuple[int, dict[str, Any]]:
    """HTTP status and body for a library error that escaped the endpoint."""
    if isinstance(exc, ProviderNotFoundError):
        return status.HTTP_400_BAD_REQUEST, {"code": "unknown_provider", "message": str(exc)}

    if isinstance(exc, TargetNotSupportedError):
        return status.HTTP_400_BAD_REQUEST, {"code": "target_not_supported", "message": str(exc)}

    if isinstance(exc, AllProvidersFailedError):
        attempts = [{"provider": attempt.provider, "error": str(attempt.error)} for attempt in exc.attempts]
        return status.HTTP_502_BAD_GATEWAY, {
            "code": "upstream_error",
            "message": "No IP provider returned a usable response.",
            "attempts": attempts,
        }

    if isinstance(exc, CacheError):
        return status.HTTP_500_INTERNAL_SERVER_ERROR, {"code": "cache_error", "message": str(exc)}

    return status.HTTP_502_BAD_GATEWAY, {"code": "upstream_error", "message": str(exc)}


async def pydantic_validation_exception_handler(request: Request, exc: ValidationError) -> JSONResponse:
    """Handle Pydantic validation errors raised during dependency resolution or option building."""
    provider = _get_provider_from_request(request)
    logger.info(
        "Pydantic validation error during request handling "
        f"path={request.url.path} method={request.method} provider={provider} errors={exc.errors()}"
    )
    payload = _build_validation_error_payload(exc)
    payload["provider"] = provider
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=payload)


async def public_ip_error_handler(request: Request, exc: PublicIpError) -> JSONResponse:
    """Map library errors to structured JSON responses."""
    provider = _get_provider_from_request(request)
    status_code, payload = _build_lookup_error_payload(exc)
    log = logger.error if status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR else logger.info
    log(
        "Lookup error while processing request "
        f"path={request.url.path} method={request.method} provider={provider} error={exc}"
    )
    payload["provider"] = provider
    return JSONResponse(status_code=status_code, content=payload)


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler for unexpected errors to return a structured 500 response."""
    provider = _get_provider_from_request(request)
    logger.exception(
        "Unhandled exception while processing request: "
        f"{repr(exc)} path={request.url.path} method={request.method} provider={provider}"
    )
    content: dict[str, Any] = {
        "code": "internal_error",
        "message": "An unexpected error occurred while processing the request.",
        "provider": provider,
    }
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=content,
    )
