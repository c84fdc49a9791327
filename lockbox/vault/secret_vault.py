"""
SecretVault: Plaintext key-value API over an open store and its key.

Provides the public API used by the commands and the remote server:
- ``set(key, value)``: encrypt and persist a secret
- ``get(key)``: decrypt and return a secret
- ``delete(key)``: remove a secret
- ``keys()``: sorted secret names
- ``items()`` / ``secrets()``: decrypt every secret in key order
- ``export_lines()``: shell ``export`` lines, one per secret
- ``open(path)``: factory that opens the store and loads the key

Security Note:
    Never log plaintext or ciphertext values. Only log key names and
    operations.
"""
import logging
from pathlib import Path
from collections.abc import Iterator
from typing import Union

from .crypto import decrypt, encrypt
from .keys import get_key
from .store import SecretStore
from ..envformat import format_export_line
from ..exceptions import InvalidValue

logger = logging.getLogger("lockbox.vault")


class SecretVault:
    """Encrypted vault bound to one store and its store-wide key.

    Values are UTF-8 text on the way in and out; the store only sees
    AES-GCM blobs.
    """

    def __init__(self, store: SecretStore, key: bytes):
        self._store = store
        self._key = key

    @property
    def store(self) -> SecretStore:
        return self._store

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def set(self, key: str, value: str) -> None:
        """Encrypt and persist a secret, replacing any previous value."""
        try:
            plaintext = value.encode("utf-8")
        except UnicodeEncodeError as err:
            raise InvalidValue(f"value for '{key}' is not valid UTF-8 text") from err
        blob = encrypt(plaintext, self._key)
        self._store.set_secret(key, blob)
        logger.debug("Vault set: key=%s", key)

    def get(self, key: str) -> str:
        """Decrypt and return a secret.

        Raises:
            NotFound: If the secret does not exist.
            AuthenticationFailure: If the stored blob fails verification.
            InvalidValue: If the plaintext is not UTF-8 text.
        """
        blob = self._store.get_secret(key)
        try:
            return decrypt(blob, self._key).decode("utf-8")
        except UnicodeDecodeError as err:
            raise InvalidValue(f"secret '{key}' is not valid UTF-8 text") from err

    def delete(self, key: str) -> None:
        self._store.delete_secret(key)
        logger.debug("Vault delete: key=%s", key)

    def keys(self) -> list[str]:
        return self._store.list_secrets()

    def items(self) -> Iterator[tuple[str, str]]:
        """Yield ``(key, plaintext)`` pairs in ascending key order.

        The key list is read first, then each secret is fetched and
        decrypted in turn; a failure stops the iteration at that key.
        """
        for key in self.keys():
            yield key, self.get(key)

    def secrets(self) -> dict[str, str]:
        """Decrypt every secret into a plain mapping."""
        return dict(self.items())

    def export_lines(self) -> Iterator[str]:
        """Yield ``export KEY="value"`` lines in ascending key order."""
        for key, value in self.items():
            yield format_export_line(key, value)

    # ------------------------------------------------------------------
    # Factory
    # ------------------------------------------------------------------

    @classmethod
    def open(cls, path: Union[str, Path]) -> "SecretVault":
        """Open the store at ``path`` and load its key.

        The caller owns the returned vault and must ``close()`` it.

        Raises:
            StorageError: If the store cannot be opened.
            NotInitialized: If the store has no key yet.
        """
        store = SecretStore(path).open()
        try:
            key = get_key(store)
        except Exception:
            store.close()
            raise
        return cls(store, key)

    def close(self) -> None:
        self._store.close()

    def __enter__(self) -> "SecretVault":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
