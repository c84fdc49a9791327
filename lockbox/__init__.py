"""Lockbox: Local encrypted secret store with a read-only remote protocol.

Security Note (Threat Model):
    Secret values are encrypted at rest with one AES-256-GCM key per
    store, and that key sits hex-encoded in the same database file.
    Anyone who can read the file can read the secrets; protect it with
    file permissions. The remote server sends decrypted values over
    plain, unauthenticated HTTP and binds to loopback only.
"""
from .version import __version__
from .exceptions import (
    LockboxError,
    NotInitialized,
    NotFound,
    InvalidKeySize,
    MalformedCiphertext,
    AuthenticationFailure,
    CorruptKey,
    StorageError,
    ConfigurationError,
    RemoteError,
    SubprocessError,
    InvalidValue,
)
from .envformat import escape_value, format_export_line, format_env
from .vault import (
    SecretStore,
    SecretVault,
    LockboxConfig,
    KeyStatus,
    initialize,
    get_key,
)

__all__ = [
    "__version__",
    "LockboxError",
    "NotInitialized",
    "NotFound",
    "InvalidKeySize",
    "MalformedCiphertext",
    "AuthenticationFailure",
    "CorruptKey",
    "StorageError",
    "ConfigurationError",
    "RemoteError",
    "SubprocessError",
    "InvalidValue",
    "escape_value",
    "format_export_line",
    "format_env",
    "SecretStore",
    "SecretVault",
    "LockboxConfig",
    "KeyStatus",
    "initialize",
    "get_key",
]
