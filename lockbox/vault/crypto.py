"""
Vault Crypto Core: Key generation and authenticated encryption of secret values.

Every secret is sealed with AES-256-GCM under the single store-wide key:
    [nonce 12B][encrypted_payload + GCM_tag 16B]

Security Note:
    Never log plaintext or ciphertext values.
    Nonces are random 96-bit and drawn fresh for every call; reusing a
    nonce under the same key breaks both confidentiality and integrity.
"""
import os
import secrets
import logging

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from ..exceptions import (
    AuthenticationFailure,
    InvalidKeySize,
    MalformedCiphertext,
)

logger = logging.getLogger("lockbox.vault")

KEY_SIZE = 32  # AES-256
NONCE_SIZE = 12  # 96-bit nonce
TAG_SIZE = 16  # GCM tag, appended by AESGCM.encrypt


def _check_key(key: bytes) -> None:
    if len(key) != KEY_SIZE:
        raise InvalidKeySize(len(key), KEY_SIZE)


def generate_key() -> bytes:
    """Generate a random 32-byte key suitable for AES-256-GCM.

    Returns:
        Raw key bytes from the operating system CSPRNG.
    """
    return secrets.token_bytes(KEY_SIZE)


def encrypt(plaintext: bytes, key: bytes) -> bytes:
    """Encrypt plaintext with AES-256-GCM.

    Format: [nonce 12B][encrypted_payload + GCM_tag 16B]

    Args:
        plaintext: Data to encrypt. Empty input is valid and yields
            a blob holding only the nonce and the tag.
        key: Raw 32-byte store key.

    Returns:
        Encrypted blob with the nonce prepended.

    Raises:
        InvalidKeySize: If key is not 32 bytes.
    """
    _check_key(key)
    cipher = AESGCM(key)
    nonce = os.urandom(NONCE_SIZE)
    ct = cipher.encrypt(nonce, plaintext, None)
    return nonce + ct


def decrypt(blob: bytes, key: bytes) -> bytes:
    """Decrypt a blob produced by :func:`encrypt`.

    A wrong key and tampered bytes are reported identically; the tag
    comparison inside ``cryptography`` is constant-time.

    Args:
        blob: Ciphertext in format [nonce 12B][payload+tag].
        key: Raw 32-byte store key.

    Returns:
        Decrypted plaintext bytes.

    Raises:
        InvalidKeySize: If key is not 32 bytes.
        MalformedCiphertext: If blob is shorter than the nonce.
        AuthenticationFailure: If the tag does not verify.
    """
    _check_key(key)
    if len(blob) < NONCE_SIZE:
        raise MalformedCiphertext(
            f"ciphertext too short: expected at least {NONCE_SIZE} bytes, "
            f"got {len(blob)}"
        )
    cipher = AESGCM(key)
    nonce = blob[:NONCE_SIZE]
    ct = blob[NONCE_SIZE:]
    try:
        return cipher.decrypt(nonce, ct, None)
    except InvalidTag as err:
        raise AuthenticationFailure() from err
