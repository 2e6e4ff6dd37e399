"""
Silverbacks Ephemeral Keys

secp256k1 key pairs with Ethereum-style addresses.
"""

from __future__ import annotations
import logging
from typing import Optional, Union

from eth_account import Account

from silverbacks.constants import PRIVATE_KEY_SIZE, SECP256K1_ORDER
from silverbacks.core.types import KeyPair, PrivateKey

logger = logging.getLogger(__name__)


def generate_keypair() -> KeyPair:
    """Create a fresh random ephemeral key pair."""
    account = Account.create()
    return KeyPair(
        address=account.address,
        private_key=PrivateKey(bytes(account.key)),
    )


def is_valid_private_key(raw: bytes) -> bool:
    """True if `raw` is a usable secp256k1 scalar (1 <= k < n)."""
    if len(raw) != PRIVATE_KEY_SIZE:
        return False
    return 0 < int.from_bytes(raw, "big") < SECP256K1_ORDER


def address_from_private_key(private_key: Union[bytes, PrivateKey]) -> str:
    """
    Derive the checksummed address of a private key.

    Raises:
        ValueError: If the bytes are not a valid secp256k1 scalar
    """
    raw = bytes(private_key)
    if not is_valid_private_key(raw):
        raise ValueError("Not a valid secp256k1 private key")
    return Account.from_key(raw).address


def try_address_from_private_key(private_key: Union[bytes, PrivateKey]) -> Optional[str]:
    """Like address_from_private_key, but None for out-of-range scalars."""
    raw = bytes(private_key)
    if not is_valid_private_key(raw):
        return None
    return Account.from_key(raw).address


def addresses_match(left: Optional[str], right: Optional[str]) -> bool:
    """Case-insensitive address comparison; None never matches."""
    if not left or not right:
        return False
    return left.lower() == right.lower()
