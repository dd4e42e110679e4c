import os
import tempfile
from pathlib import Path

from platformdirs import user_cache_path
from pydantic import ValidationError

from public_ip.config import APP_IDENTIFIER, Settings
from public_ip.crypto import CacheCipher
from public_ip.errors import CacheReadError, CacheWriteError
from public_ip.logger import logger
from public_ip.models.common import CacheEntry

PLAIN_FILE_NAME = "lookup.json"
ENCRYPTED_FILE_NAME = "lookup.bin"


def resolve_cache_path(
    app_identifier: str = APP_IDENTIFIER,
    encrypted: bool = False,
    cache_dir: Path | None = None,
) -> Path:
    """Location of the single cache file, under the per-user cache directory unless overridden."""
    directory = cache_dir if cache_dir is not None else user_cache_path(app_identifier)
    return directory / (ENCRYPTED_FILE_NAME if encrypted else PLAIN_FILE_NAME)


class CacheStore:
    """Get/set/clear over one persisted CacheEntry.

    The store knows nothing about TTLs; freshness is decided by the lookup
    engine. With a cipher the serialized entry is encrypted before it touches
    the disk, otherwise it is stored as JSON.
    """

    def __init__(self, path: Path, cipher: CacheCipher | None = None) -> None:
        self.path = path
        self._cipher = cipher

    @property
    def encrypted(self) -> bool:
        return self._cipher is not None

    def read(self) -> CacheEntry | None:
        try:
            raw = self.path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise CacheReadError(f"Cannot read cache file {self.path}: {exc}") from exc

        if self._cipher is not None:
            raw = self._cipher.decrypt(raw)

        try:
            return CacheEntry.model_validate_json(raw)
        except ValidationError as exc:
            # Also covers files written with an older schema.
            raise CacheReadError(f"Cache file {self.path} does not hold a valid entry: {exc}") from exc

    def write(self, entry: CacheEntry) -> None:
        payload = entry.model_dump_json().encode()
        if self._cipher is not None:
            payload = self._cipher.encrypt(payload)

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            # Readers see either the previous file or the complete new one.
            fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=".lookup-")
            try:
                with os.fdopen(fd, "wb") as tmp:
                    tmp.write(payload)
                os.replace(tmp_name, self.path)
            except OSError:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as exc:
            raise CacheWriteError(f"Cannot write cache file {self.path}: {exc}") from exc

    def clear(self) -> None:
        try:
            self.path.unlink(missing_ok=True)
        except OSError as exc:
            raise CacheWriteError(f"Cannot remove cache file {self.path}: {exc}") from exc


def build_cache_store(settings: Settings) -> CacheStore | None:
    """Cache store described by the settings, or None when caching is disabled."""
    if not settings.cache_enabled:
        return None

    cipher = None
    if settings.cache_encryption and settings.cache_passphrase is not None:
        cipher = CacheCipher(settings.cache_passphrase.get_secret_value())

    path = resolve_cache_path(encrypted=cipher is not None, cache_dir=settings.cache_dir)
    logger.debug(f"Using lookup cache path={path} encrypted={cipher is not None}")
    return CacheStore(path, cipher)
