"""
Silverbacks Voucher Codec

Legacy scheme, bit-compatible with every voucher issued so far:

    key        = MD5(utf8(secret))                  16 bytes
    ciphertext = AES-128-CTR(key, IV = 0^16)(pk)    32 bytes, hex encoded

No padding (the plaintext is exactly two blocks) and no authentication
tag. Encryption and decryption are the same keystream XOR, so a wrong
secret silently yields 32 garbage bytes. Callers detect that through
the address-binding check, never through this module.
"""

from __future__ import annotations
import logging
from enum import Enum
from typing import Union

from Crypto.Cipher import AES
from Crypto.Hash import MD5

from silverbacks.constants import (
    PRIVATE_KEY_SIZE,
    LEGACY_IV,
    LEGACY_CIPHERTEXT_HEX_LENGTH,
    HARDENED_CIPHERTEXT_HEX_LENGTH,
)
from silverbacks.core.types import PrivateKey, VoucherSecret

logger = logging.getLogger(__name__)

SecretLike = Union[str, VoucherSecret]


class CodecScheme(str, Enum):
    """Ciphertext scheme carried in the `pk` link parameter."""
    LEGACY = "legacy"
    HARDENED = "hardened"


def _secret_text(secret: SecretLike) -> str:
    return secret.value if isinstance(secret, VoucherSecret) else secret


def _raw_key(private_key: Union[bytes, PrivateKey]) -> bytes:
    raw = bytes(private_key)
    if len(raw) != PRIVATE_KEY_SIZE:
        raise ValueError(f"Private key must be {PRIVATE_KEY_SIZE} bytes, got {len(raw)}")
    return raw


def normalize_ciphertext(ciphertext_hex: str) -> str:
    """Strip an optional 0x prefix and lowercase."""
    text = ciphertext_hex.strip()
    if text[:2].lower() == "0x":
        text = text[2:]
    return text.lower()


def derive_legacy_key(secret: SecretLike) -> bytes:
    """MD5 digest of the secret's UTF-8 bytes."""
    return MD5.new(_secret_text(secret).encode("utf-8")).digest()


def _keystream_xor(data: bytes, secret: SecretLike) -> bytes:
    # Full 128-bit counter starting at the all-zero IV
    cipher = AES.new(
        derive_legacy_key(secret),
        AES.MODE_CTR,
        nonce=b"",
        initial_value=LEGACY_IV,
    )
    return cipher.encrypt(data)


def encrypt(private_key: Union[bytes, PrivateKey], secret: SecretLike) -> str:
    """
    Encrypt a raw private key under a voucher secret.

    Args:
        private_key: 32 raw key bytes
        secret: Voucher secret (any string)

    Returns:
        64 lowercase hex characters, no prefix
    """
    return _keystream_xor(_raw_key(private_key), secret).hex()


def decrypt(ciphertext_hex: str, secret: SecretLike) -> bytes:
    """
    Decrypt a legacy ciphertext.

    Never fails on a wrong secret: the result is then 32 deterministic
    garbage bytes.

    Raises:
        ValueError: If the ciphertext is not 64 hex characters
    """
    text = normalize_ciphertext(ciphertext_hex)
    if len(text) != LEGACY_CIPHERTEXT_HEX_LENGTH:
        raise ValueError(
            f"Legacy ciphertext must be {LEGACY_CIPHERTEXT_HEX_LENGTH} hex chars, got {len(text)}"
        )
    return _keystream_xor(bytes.fromhex(text), secret)


def detect_scheme(ciphertext_hex: str) -> CodecScheme:
    """Identify the scheme of a `pk` parameter by its length."""
    length = len(normalize_ciphertext(ciphertext_hex))
    if length == LEGACY_CIPHERTEXT_HEX_LENGTH:
        return CodecScheme.LEGACY
    if length == HARDENED_CIPHERTEXT_HEX_LENGTH:
        return CodecScheme.HARDENED
    raise ValueError(f"Unrecognised ciphertext length: {length} hex chars")


def encrypt_private_key(
    private_key: Union[bytes, PrivateKey],
    secret: SecretLike,
    scheme: CodecScheme = CodecScheme.LEGACY,
) -> str:
    """Encrypt with the chosen scheme."""
    if CodecScheme(scheme) is CodecScheme.HARDENED:
        from silverbacks.crypto import hardened
        return hardened.encrypt(_raw_key(private_key), _secret_text(secret))
    return encrypt(private_key, secret)


def decrypt_private_key(ciphertext_hex: str, secret: SecretLike) -> bytes:
    """
    Decrypt either scheme, detected by ciphertext length.

    Raises:
        ValueError: Unrecognised ciphertext
        DecryptionFailed: Hardened ciphertext rejected the secret
    """
    scheme = detect_scheme(ciphertext_hex)
    logger.debug(f"Decrypting {scheme.value} ciphertext")
    if scheme is CodecScheme.HARDENED:
        from silverbacks.crypto import hardened
        return hardened.decrypt(normalize_ciphertext(ciphertext_hex), _secret_text(secret))
    return decrypt(ciphertext_hex, secret)
