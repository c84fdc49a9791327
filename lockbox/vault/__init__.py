"""Vault: Encryption, key management and durable storage of secrets."""

from .crypto import encrypt, decrypt, generate_key
from .store import SecretStore, SecretRecord
from .keys import KeyStatus, initialize, get_key, ENCRYPTION_KEY_NAME
from .secret_vault import SecretVault
from .config import LockboxConfig, resolve_db_path

__all__ = [
    "encrypt",
    "decrypt",
    "generate_key",
    "SecretStore",
    "SecretRecord",
    "KeyStatus",
    "initialize",
    "get_key",
    "ENCRYPTION_KEY_NAME",
    "SecretVault",
    "LockboxConfig",
    "resolve_db_path",
]
