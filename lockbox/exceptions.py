"""
Lockbox error taxonomy.

Every component raises one of these instead of a bare library exception,
so callers can branch on the category (``except NotFound``) no matter
whether the failure came from the store, the crypto layer or the remote
protocol.
"""
from typing import Optional


class LockboxError(Exception):
    """Base class for all Lockbox failures."""


class NotInitialized(LockboxError):
    """The store has no encryption key yet."""

    def __init__(self, message: str = "encryption key not found. Please run 'lb init' first"):
        super().__init__(message)


class NotFound(LockboxError):
    """A secret or config entry does not exist."""

    def __init__(self, key: str, kind: str = "secret"):
        self.key = key
        self.kind = kind
        super().__init__(f"{kind} '{key}' not found")


class InvalidKeySize(LockboxError):
    """Encryption key is not exactly 32 bytes."""

    def __init__(self, size: int, expected: int = 32):
        self.size = size
        super().__init__(
            f"invalid key size: expected {expected} bytes, got {size}"
        )


class MalformedCiphertext(LockboxError):
    """Encrypted blob is too short to hold a nonce."""


class AuthenticationFailure(LockboxError):
    """AEAD tag did not verify (tampered data or wrong key)."""

    def __init__(self, message: str = "decryption failed: message authentication failed"):
        super().__init__(message)


class CorruptKey(LockboxError):
    """Stored encryption key cannot be decoded to 32 raw bytes."""


class StorageError(LockboxError):
    """The underlying database failed."""


class ConfigurationError(LockboxError):
    """Invalid settings, flags or remote addresses."""


class RemoteError(LockboxError):
    """Remote server answered with a non-success status or was unreachable."""

    def __init__(self, message: str, status: Optional[int] = None, body: str = ""):
        self.status = status
        self.body = body
        super().__init__(message)


class SubprocessError(LockboxError):
    """The child command could not be started."""

    def __init__(self, message: str, command: Optional[list[str]] = None):
        self.command = command or []
        super().__init__(message)


class InvalidValue(LockboxError):
    """A secret name or value cannot be represented as text or shell syntax."""
