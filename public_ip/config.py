"""
Settings for the public IP lookup library and its HTTP service.

Values are read from environment variables prefixed with `PUBLIC_IP_`
(or a local `.env` file), e.g. `PUBLIC_IP_CACHE_TTL_SECONDS=600`.
Provider API keys are passed as JSON: `PUBLIC_IP_API_KEYS='{"ipdata.co": "..."}'`.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from public_ip.transport import validate_proxy_url

APP_IDENTIFIER = "public-ip-lookup"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="PUBLIC_IP_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    log_level: str = "INFO"  # DEBUG, WARNING, ERROR

    # Outbound requests
    request_timeout_seconds: float = 5.0
    proxy: str | None = None
    trust_env: bool = True  # honour HTTP(S)_PROXY / NO_PROXY from the environment
    api_keys: dict[str, str] = {}

    # Cache
    cache_enabled: bool = True
    cache_ttl_seconds: int = Field(default=3600, ge=0)
    cache_dir: Path | None = None
    cache_encryption: bool = False
    # Supplied per process start; never written to disk.
    cache_passphrase: SecretStr | None = None

    # HTTP service
    api_host: str = "127.0.0.1"
    api_port: int = 8000

    @field_validator("log_level")
    @classmethod
    def _validate_log_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"unsupported log level: {value}")
        return level

    @field_validator("api_keys")
    @classmethod
    def _normalize_api_keys(cls, value: dict[str, str]) -> dict[str, str]:
        return {identifier.strip().lower(): key for identifier, key in value.items() if key}

    @field_validator("proxy", mode="before")
    @classmethod
    def _validate_proxy(cls, value: str | None) -> str | None:
        return validate_proxy_url(value)

    @model_validator(mode="after")
    def _require_passphrase_for_encryption(self) -> "Settings":
        if self.cache_encryption and not (self.cache_passphrase and self.cache_passphrase.get_secret_value()):
            raise ValueError("cache_encryption requires cache_passphrase to be set")
        return self


@lru_cache
def get_settings() -> Settings:
    return Settings()
