"""
Vault Key Management: The single store-wide encryption key.

The key is generated once by ``initialize`` and stored hex-encoded in the
``config`` table under ``encryption_key``. It is never regenerated,
rotated or deleted.

Security Note:
    Never log key material. Only log whether a key exists.
"""
import re
import enum
import logging

from .crypto import KEY_SIZE, generate_key
from .store import SecretStore
from ..exceptions import CorruptKey, NotFound, NotInitialized

logger = logging.getLogger("lockbox.vault")

_HEX_KEY = re.compile(rf"[0-9a-fA-F]{{{KEY_SIZE * 2}}}")

ENCRYPTION_KEY_NAME = "encryption_key"


class KeyStatus(enum.Enum):
    """Outcome of :func:`initialize`."""

    CREATED = "created"
    ALREADY_INITIALIZED = "already_initialized"


def initialize(store: SecretStore) -> KeyStatus:
    """Create the store key if it does not exist yet.

    Calling this on an initialized store is not an error and changes
    nothing.

    Args:
        store: Open secret store.

    Returns:
        ``KeyStatus.CREATED`` or ``KeyStatus.ALREADY_INITIALIZED``.
    """
    try:
        store.get_config(ENCRYPTION_KEY_NAME)
    except NotFound:
        pass
    else:
        logger.info("Encryption key already present in %s", store.path)
        return KeyStatus.ALREADY_INITIALIZED

    key = generate_key()
    store.set_config(ENCRYPTION_KEY_NAME, key.hex().encode("ascii"))
    logger.info("Generated new encryption key for %s", store.path)
    return KeyStatus.CREATED


def get_key(store: SecretStore) -> bytes:
    """Load and decode the store key.

    Args:
        store: Open secret store.

    Returns:
        Raw 32-byte key.

    Raises:
        NotInitialized: If ``initialize`` has never run on this store.
        CorruptKey: If the stored value is not hex of exactly 32 bytes.
    """
    try:
        raw = store.get_config(ENCRYPTION_KEY_NAME)
    except NotFound:
        raise NotInitialized() from None
    # fromhex alone would accept whitespace between digit pairs
    text = raw.decode("latin-1")
    if _HEX_KEY.fullmatch(text) is None:
        raise CorruptKey(
            f"encryption key must be exactly {KEY_SIZE * 2} hex digits, "
            f"got {len(raw)} bytes"
        )
    return bytes.fromhex(text)
