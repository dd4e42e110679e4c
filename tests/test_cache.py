import json
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from public_ip.cache import ENCRYPTED_FILE_NAME, PLAIN_FILE_NAME, CacheStore, build_cache_store, resolve_cache_path
from public_ip.config import Settings
from public_ip.crypto import CacheCipher
from public_ip.errors import CacheDecryptionError, CacheReadError, CacheWriteError
from public_ip.models.common import CacheEntry, CanonicalResponse

FETCHED_AT = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def _entry() -> CacheEntry:
    return CacheEntry(
        response=CanonicalResponse(
            ip="203.0.113.7",
            country="Testland",
            latitude=52.52,
            longitude=13.405,
            provider_used="ipwho.is",
        ),
        fetched_at=FETCHED_AT,
        ttl=timedelta(hours=1),
    )


def _cipher(passphrase: str = "correct horse", machine: str = "machine-1") -> CacheCipher:
    # Low iteration count keeps the tests fast.
    return CacheCipher(passphrase, machine_id=lambda: machine, iterations=1_000)


def test_plain_store_round_trip(tmp_path: Path) -> None:
    store = CacheStore(tmp_path / "nested" / PLAIN_FILE_NAME)

    store.write(_entry())

    assert store.read() == _entry()
    assert b"203.0.113.7" in store.path.read_bytes()


def test_missing_file_reads_as_empty(tmp_path: Path) -> None:
    assert CacheStore(tmp_path / PLAIN_FILE_NAME).read() is None


def test_write_replaces_previous_entry_without_leftovers(tmp_path: Path) -> None:
    store = CacheStore(tmp_path / PLAIN_FILE_NAME)
    store.write(_entry())
    newer = _entry().model_copy(update={"fetched_at": FETCHED_AT + timedelta(minutes=5)})

    store.write(newer)

    assert store.read() == newer
    assert [path.name for path in tmp_path.iterdir()] == [PLAIN_FILE_NAME]


def test_old_schema_is_a_read_error(tmp_path: Path) -> None:
    store = CacheStore(tmp_path / PLAIN_FILE_NAME)
    store.path.write_text('{"ip": "203.0.113.7", "timestamp": 1714564800}')

    with pytest.raises(CacheReadError):
        store.read()


def test_clear_is_idempotent(tmp_path: Path) -> None:
    store = CacheStore(tmp_path / PLAIN_FILE_NAME)
    store.write(_entry())

    store.clear()
    store.clear()

    assert store.read() is None


def test_write_into_unwritable_location_raises(tmp_path: Path) -> None:
    blocker = tmp_path / "not-a-directory"
    blocker.write_text("")
    store = CacheStore(blocker / PLAIN_FILE_NAME)

    with pytest.raises(CacheWriteError):
        store.write(_entry())


def test_encrypted_store_round_trip(tmp_path: Path) -> None:
    store = CacheStore(tmp_path / ENCRYPTED_FILE_NAME, _cipher())

    store.write(_entry())

    assert store.encrypted
    assert b"203.0.113.7" not in store.path.read_bytes()
    assert store.read() == _entry()


def test_encrypted_blobs_differ_per_write(tmp_path: Path) -> None:
    cipher = _cipher()

    assert cipher.encrypt(b"same plaintext") != cipher.encrypt(b"same plaintext")


def test_flipped_byte_fails_authentication(tmp_path: Path) -> None:
    store = CacheStore(tmp_path / ENCRYPTED_FILE_NAME, _cipher())
    store.write(_entry())
    blob = bytearray(store.path.read_bytes())
    blob[len(blob) // 2] ^= 0xFF
    store.path.write_bytes(bytes(blob))

    with pytest.raises(CacheDecryptionError):
        store.read()


@pytest.mark.parametrize(
    "reader",
    [_cipher(passphrase="wrong passphrase"), _cipher(machine="machine-2")],
    ids=["other-passphrase", "other-machine"],
)
def test_entry_is_bound_to_passphrase_and_machine(tmp_path: Path, reader: CacheCipher) -> None:
    path = tmp_path / ENCRYPTED_FILE_NAME
    CacheStore(path, _cipher()).write(_entry())

    with pytest.raises(CacheDecryptionError):
        CacheStore(path, reader).read()


def test_truncated_blob_is_rejected() -> None:
    with pytest.raises(CacheDecryptionError):
        _cipher().decrypt(b"short")


def test_machine_id_failure_is_reported_as_cache_error(tmp_path: Path) -> None:
    def _no_machine_id() -> str:
        raise OSError("machine id unavailable")

    cipher = CacheCipher("correct horse", machine_id=_no_machine_id, iterations=1_000)

    with pytest.raises(CacheWriteError):
        CacheStore(tmp_path / ENCRYPTED_FILE_NAME, cipher).write(_entry())


def test_empty_passphrase_is_rejected() -> None:
    with pytest.raises(ValueError):
        CacheCipher("")


def test_resolve_cache_path_uses_override_and_file_name(tmp_path: Path) -> None:
    assert resolve_cache_path(cache_dir=tmp_path) == tmp_path / PLAIN_FILE_NAME
    assert resolve_cache_path(encrypted=True, cache_dir=tmp_path) == tmp_path / ENCRYPTED_FILE_NAME


def test_resolve_cache_path_defaults_to_user_cache_dir() -> None:
    path = resolve_cache_path("public-ip-lookup-tests")

    assert path.name == PLAIN_FILE_NAME
    assert "public-ip-lookup-tests" in path.parts


def test_build_cache_store_disabled() -> None:
    assert build_cache_store(Settings(cache_enabled=False)) is None


def test_build_cache_store_encrypted(tmp_path: Path) -> None:
    settings = Settings(cache_dir=tmp_path, cache_encryption=True, cache_passphrase="correct horse")

    store = build_cache_store(settings)

    assert store is not None
    assert store.encrypted
    assert store.path == tmp_path / ENCRYPTED_FILE_NAME


def test_encryption_without_passphrase_is_a_settings_error() -> None:
    with pytest.raises(ValueError):
        Settings(cache_encryption=True, cache_passphrase=None)


def test_naive_fetched_at_is_a_read_error(tmp_path: Path) -> None:
    store = CacheStore(tmp_path / PLAIN_FILE_NAME)
    entry = _entry().model_dump(mode="json")
    entry["fetched_at"] = "2024-05-01T12:00:00"
    store.path.write_text(json.dumps(entry))

    with pytest.raises(CacheReadError):
        store.read()


def test_key_is_derived_once_per_salt(tmp_path: Path) -> None:
    calls: list[str] = []

    def _machine_id() -> str:
        calls.append("machine-1")
        return "machine-1"

    store = CacheStore(
        tmp_path / ENCRYPTED_FILE_NAME, CacheCipher("correct horse", machine_id=_machine_id, iterations=1_000)
    )
    store.write(_entry())

    assert store.read() == _entry()
    assert store.read() == _entry()
    assert len(calls) == 1

    store.write(_entry())

    assert len(calls) == 2
