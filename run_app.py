import uvicorn

from public_ip.config import get_settings
from public_ip.logger import build_log_config


def main() -> None:
    """Run the FastAPI application with uvicorn."""
    settings = get_settings()
    uvicorn.run(
        "public_ip.main:app",
        host=settings.api_host,
        port=settings.api_port,
        log_config=build_log_config(settings.log_level),
        reload=True,
    )


if __name__ == "__main__":
    main()
