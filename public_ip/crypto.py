"""Authenticated encryption for the cache file, bound to this machine.

The key is derived with PBKDF2-HMAC-SHA256 from the machine identifier and a
caller-supplied passphrase. Each write uses a fresh random salt and nonce:

    blob = salt (16 bytes) || nonce (12 bytes) || AES-GCM ciphertext + tag

A blob written on another machine, with another passphrase, or modified in any
way fails authentication on read.
"""

import os
from collections.abc import Callable

import machineid
from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from public_ip.errors import CacheDecryptionError, CacheWriteError

SALT_SIZE = 16
NONCE_SIZE = 12
KEY_SIZE = 32
KDF_ITERATIONS = 600_000


class CacheCipher:
    def __init__(
        self,
        passphrase: str,
        machine_id: Callable[[], str] = machineid.id,
        iterations: int = KDF_ITERATIONS,
    ) -> None:
        if not passphrase:
            raise ValueError("A non-empty passphrase is required for cache encryption")
        self._passphrase = passphrase
        self._machine_id = machine_id
        self._iterations = iterations
        # Key for the most recent salt; the file holds one blob, so reads repeat it.
        self._last_key: tuple[bytes, bytes] | None = None

    def _derive_key(self, salt: bytes) -> bytes:
        if self._last_key is not None and self._last_key[0] == salt:
            return self._last_key[1]

        # Raises whatever the machine id lookup raises; callers translate it.
        material = f"{self._machine_id()}:{self._passphrase}".encode()
        kdf = PBKDF2HMAC(algorithm=hashes.SHA256(), length=KEY_SIZE, salt=salt, iterations=self._iterations)
        key = kdf.derive(material)
        self._last_key = (salt, key)
        return key

    def encrypt(self, plaintext: bytes) -> bytes:
        salt = os.urandom(SALT_SIZE)
        nonce = os.urandom(NONCE_SIZE)
        try:
            key = self._derive_key(salt)
        except Exception as exc:
            raise CacheWriteError(f"Cannot derive cache encryption key: {exc!r}") from exc
        return salt + nonce + AESGCM(key).encrypt(nonce, plaintext, None)

    def decrypt(self, blob: bytes) -> bytes:
        if len(blob) < SALT_SIZE + NONCE_SIZE + 16:
            raise CacheDecryptionError("Encrypted cache file is truncated")

        salt = blob[:SALT_SIZE]
        nonce = blob[SALT_SIZE : SALT_SIZE + NONCE_SIZE]
        ciphertext = blob[SALT_SIZE + NONCE_SIZE :]
        try:
            key = self._derive_key(salt)
        except Exception as exc:
            raise CacheDecryptionError(f"Cannot derive cache encryption key: {exc!r}") from exc

        try:
            return AESGCM(key).decrypt(nonce, ciphertext, None)
        except InvalidTag as exc:
            raise CacheDecryptionError("Cache file failed authentication") from exc
