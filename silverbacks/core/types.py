"""
Silverbacks Core Types

Secret-bearing types never expose their contents in repr().
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
import secrets

from silverbacks.constants import (
    PRIVATE_KEY_SIZE,
    SECRET_ALPHABET,
    SECRET_LENGTH,
    REDEEM_PREFIX,
    CLAIM_PREFIX,
)


@dataclass(frozen=True, slots=True)
class PrivateKey:
    """
    Raw secp256k1 private key.

    SIZE: 32 bytes
    NOTE: Never placed in a URL.
    """
    data: bytes

    def __post_init__(self):
        if not isinstance(self.data, bytes):
            raise TypeError(f"PrivateKey data must be bytes, got {type(self.data).__name__}")
        if len(self.data) != PRIVATE_KEY_SIZE:
            raise ValueError(
                f"PrivateKey must be {PRIVATE_KEY_SIZE} bytes, got {len(self.data)}"
            )

    def __bytes__(self) -> bytes:
        return bytes(self.data)

    def __repr__(self) -> str:
        return "PrivateKey(<redacted>)"

    def hex(self) -> str:
        """0x-prefixed hex, the form written to the voucher manifest."""
        return "0x" + bytes(self.data).hex()

    @classmethod
    def from_hex(cls, hex_string: str) -> PrivateKey:
        if hex_string[:2].lower() == "0x":
            hex_string = hex_string[2:]
        return cls(bytes.fromhex(hex_string))


@dataclass(frozen=True, slots=True)
class KeyPair:
    """Ephemeral key pair owning one voucher's on-chain position."""
    address: str
    private_key: PrivateKey

    def __repr__(self) -> str:
        return f"KeyPair(address={self.address}, private_key=<redacted>)"


@dataclass(frozen=True, slots=True)
class VoucherSecret:
    """
    Short decryption secret carried by the voucher's QR code.

    Never transmitted in the URL. Any string decrypts (to garbage if
    wrong), so only generation enforces the alphabet.
    """
    value: str

    def __post_init__(self):
        if not isinstance(self.value, str):
            raise TypeError(f"VoucherSecret must be str, got {type(self.value).__name__}")

    def __str__(self) -> str:
        return self.value

    def __repr__(self) -> str:
        return f"VoucherSecret(<{len(self.value)} chars>)"

    @classmethod
    def generate(cls, length: int = SECRET_LENGTH) -> VoucherSecret:
        """Draw `length` characters uniformly from the 62-symbol alphabet."""
        if length <= 0:
            raise ValueError(f"Secret length must be positive, got {length}")
        return cls("".join(secrets.choice(SECRET_ALPHABET) for _ in range(length)))


class Action(str, Enum):
    """Delegated action authorized by an ephemeral-key signature."""
    REDEEM = "redeem"
    CLAIM = "claim"

    @property
    def prefix(self) -> str:
        """Domain separator prepended to the token id in the signed message."""
        return REDEEM_PREFIX if self is Action.REDEEM else CLAIM_PREFIX

    @classmethod
    def parse(cls, value: str) -> Action:
        try:
            return cls(value.strip().lower())
        except ValueError:
            raise ValueError(f"Unknown action: {value!r}") from None
