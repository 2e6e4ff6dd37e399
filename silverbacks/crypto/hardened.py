"""
Silverbacks Hardened Voucher Codec (opt-in)

    key        = Argon2id(utf8(secret), salt)       32 bytes
    ciphertext = salt || nonce || AES-256-GCM(pk) || tag

Salt and nonce are random per voucher, so encryption is not
deterministic. A wrong secret is rejected by the GCM tag instead of
yielding garbage. Not readable by legacy redemption clients.
"""

from __future__ import annotations
import logging
import secrets

from argon2.low_level import hash_secret_raw, Type
from Crypto.Cipher import AES

from silverbacks.constants import (
    PRIVATE_KEY_SIZE,
    HARDENED_SALT_SIZE,
    HARDENED_NONCE_SIZE,
    HARDENED_TAG_SIZE,
    HARDENED_KEY_SIZE,
    HARDENED_CIPHERTEXT_HEX_LENGTH,
    ARGON2_TIME_COST,
    ARGON2_MEMORY_COST,
    ARGON2_PARALLELISM,
)
from silverbacks.errors import DecryptionFailed

logger = logging.getLogger(__name__)


def derive_key(secret: str, salt: bytes) -> bytes:
    """Argon2id key derivation."""
    return hash_secret_raw(
        secret=secret.encode("utf-8"),
        salt=salt,
        time_cost=ARGON2_TIME_COST,
        memory_cost=ARGON2_MEMORY_COST,
        parallelism=ARGON2_PARALLELISM,
        hash_len=HARDENED_KEY_SIZE,
        type=Type.ID,
    )


def encrypt(private_key: bytes, secret: str) -> str:
    """Encrypt a 32-byte key; returns 152 hex characters."""
    if len(private_key) != PRIVATE_KEY_SIZE:
        raise ValueError(f"Private key must be {PRIVATE_KEY_SIZE} bytes, got {len(private_key)}")

    salt = secrets.token_bytes(HARDENED_SALT_SIZE)
    nonce = secrets.token_bytes(HARDENED_NONCE_SIZE)
    cipher = AES.new(derive_key(secret, salt), AES.MODE_GCM, nonce=nonce, mac_len=HARDENED_TAG_SIZE)
    ciphertext, tag = cipher.encrypt_and_digest(private_key)

    return (salt + nonce + ciphertext + tag).hex()


def decrypt(ciphertext_hex: str, secret: str) -> bytes:
    """
    Decrypt and authenticate.

    Raises:
        ValueError: Malformed ciphertext
        DecryptionFailed: Wrong secret or tampered ciphertext
    """
    if len(ciphertext_hex) != HARDENED_CIPHERTEXT_HEX_LENGTH:
        raise ValueError(
            f"Hardened ciphertext must be {HARDENED_CIPHERTEXT_HEX_LENGTH} hex chars, "
            f"got {len(ciphertext_hex)}"
        )
    blob = bytes.fromhex(ciphertext_hex)

    salt = blob[:HARDENED_SALT_SIZE]
    offset = HARDENED_SALT_SIZE
    nonce = blob[offset:offset + HARDENED_NONCE_SIZE]
    offset += HARDENED_NONCE_SIZE
    ciphertext = blob[offset:offset + PRIVATE_KEY_SIZE]
    tag = blob[offset + PRIVATE_KEY_SIZE:]

    cipher = AES.new(derive_key(secret, salt), AES.MODE_GCM, nonce=nonce, mac_len=HARDENED_TAG_SIZE)
    try:
        return cipher.decrypt_and_verify(ciphertext, tag)
    except ValueError as e:
        logger.debug(f"Hardened ciphertext rejected: {e}")
        raise DecryptionFailed("Voucher secret rejected by authentication tag") from e
