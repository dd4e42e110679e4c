import pytest
from pydantic import ValidationError

from public_ip.config import Settings


def test_settings_read_prefixed_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PUBLIC_IP_CACHE_TTL_SECONDS", "600")
    monkeypatch.setenv("PUBLIC_IP_LOG_LEVEL", "debug")
    monkeypatch.setenv("PUBLIC_IP_API_KEYS", '{"IPData.co": "abc", "ipinfo.io": ""}')

    settings = Settings()

    assert settings.cache_ttl_seconds == 600
    assert settings.log_level == "DEBUG"
    assert settings.api_keys == {"ipdata.co": "abc"}


def test_settings_reject_unknown_log_level() -> None:
    with pytest.raises(ValidationError):
        Settings(log_level="chatty")


def test_passphrase_is_not_exposed_in_repr() -> None:
    settings = Settings(cache_encryption=True, cache_passphrase="correct horse")

    assert "correct horse" not in repr(settings)
    assert settings.cache_passphrase.get_secret_value() == "correct horse"


def test_settings_reject_unusable_proxy(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PUBLIC_IP_PROXY", "not a proxy")

    with pytest.raises(ValidationError):
        Settings()


def test_settings_reject_negative_cache_ttl() -> None:
    with pytest.raises(ValidationError):
        Settings(cache_ttl_seconds=-1)
