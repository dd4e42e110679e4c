from typing import Annotated

from fastapi import Depends, FastAPI, Request, Response, status
from pydantic import ValidationError

from public_ip import lookup as library
from public_ip.engine import LookupEngine
from public_ip.errors import PublicIpError
from public_ip.exception_handlers import (
    public_ip_error_handler,
    pydantic_validation_exception_handler,
    unhandled_exception_handler,
)
from public_ip.logger import configure_logging, logger
from public_ip.models.request_models import IPLookupRequest, LookupOptions
from public_ip.models.response_models import (
    HealthResponse,
    IPLookupResponse,
    ProviderInfo,
    ProvidersResponse,
)

configure_logging()

app = FastAPI(
    title="Public IP Lookup Service",
    version="0.1.0",
    description="Reports the service's public IP address, or any address, with geolocation metadata.",
)
logger.info("Started Public IP Lookup Service")


def get_lookup_engine() -> LookupEngine:
    """Dependency to provide the shared LookupEngine instance."""
    return library.get_engine()


# Register global exception handlers using the shared handlers module.
app.add_exception_handler(ValidationError, pydantic_validation_exception_handler)
app.add_exception_handler(PublicIpError, public_ip_error_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)


@app.get(
    "/health",
    tags=["health"],
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Health check",
)
async def health() -> HealthResponse:
    """Basic health check endpoint."""
    return HealthResponse(status="ok")


@app.get(
    "/v1/ip/lookup",
    response_model=IPLookupResponse,
    status_code=status.HTTP_200_OK,
    tags=["ip"],
    summary="Look up geolocation information for an IP address.",
)
async def ip_lookup(
    request: Request,
    query: Annotated[IPLookupRequest, Depends()],
    engine: Annotated[LookupEngine, Depends(get_lookup_engine)],
) -> IPLookupResponse:
    """Look up geolocation information for either a specific IP or this service's public IP.

    - If `query.ip` is provided, that IP is looked up and the cache is bypassed.
    - Otherwise the service's own public IP is reported, served from the cache while fresh.
    - If `query.provider` is provided, only that upstream provider is used;
      otherwise providers are tried in the default fallback order.
    """
    logger.info(
        "Performing IP lookup "
        f"path={request.url.path} method={request.method} ip={query.ip} "
        f"provider={query.provider} refresh={query.refresh}"
    )
    options = LookupOptions(target=query.ip, provider=query.provider, refresh_cache=query.refresh)
    data = await engine.lookup(options)

    # Map the canonical response to the outward-facing response model.
    return IPLookupResponse.model_validate(data.model_dump())


@app.get(
    "/v1/providers",
    response_model=ProvidersResponse,
    status_code=status.HTTP_200_OK,
    tags=["ip"],
    summary="List the built-in providers in fallback order.",
)
async def providers(
    engine: Annotated[LookupEngine, Depends(get_lookup_engine)],
) -> ProvidersResponse:
    return ProvidersResponse(
        providers=[
            ProviderInfo(
                identifier=descriptor.identifier,
                requires_api_key=descriptor.requires_api_key,
                supports_target=descriptor.supports_target,
            )
            for descriptor in engine.registry.all()
        ]
    )


@app.delete(
    "/v1/cache",
    status_code=status.HTTP_204_NO_CONTENT,
    tags=["cache"],
    summary="Forget the cached public IP lookup.",
)
async def clear_cache(
    engine: Annotated[LookupEngine, Depends(get_lookup_engine)],
) -> Response:
    engine.clear_cache()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
