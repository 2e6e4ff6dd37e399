"""
Silverbacks Action Signing

The ledger verifies an ephemeral-key signature over

    keccak256(abi.encodePacked(string prefix, uint256 tokenId))

wrapped as an EIP-191 personal message, with prefix "Redeem:" or
"Claim:". The prefix separates the two actions so a redeem signature
can never be replayed as a claim.
"""

from __future__ import annotations
import logging
from typing import Union

from eth_account import Account
from eth_account.messages import encode_defunct
from web3 import Web3

from silverbacks.constants import UINT256_MAX
from silverbacks.core.types import Action, PrivateKey

logger = logging.getLogger(__name__)


def _check_token_id(token_id: int) -> int:
    if isinstance(token_id, bool) or not isinstance(token_id, int):
        raise TypeError(f"Token id must be int, got {type(token_id).__name__}")
    if token_id < 0 or token_id > UINT256_MAX:
        raise ValueError(f"Token id out of uint256 range: {token_id}")
    return token_id


def action_message(action: Action, token_id: int) -> bytes:
    """Packed message bytes: prefix || uint256(tokenId)."""
    token_id = _check_token_id(token_id)
    return Action(action).prefix.encode("utf-8") + token_id.to_bytes(32, "big")


def action_message_hash(action: Action, token_id: int) -> bytes:
    """keccak256 of the packed action message (32 bytes)."""
    token_id = _check_token_id(token_id)
    return bytes(Web3.solidity_keccak(["string", "uint256"], [Action(action).prefix, token_id]))


def sign_action(
    private_key: Union[bytes, PrivateKey],
    action: Action,
    token_id: int,
) -> bytes:
    """
    Sign an action with the ephemeral key.

    Returns:
        65-byte signature (r || s || v)
    """
    digest = action_message_hash(action, token_id)
    signed = Account.sign_message(encode_defunct(primitive=digest), private_key=bytes(private_key))
    return bytes(signed.signature)


def recover_action_signer(action: Action, token_id: int, signature: bytes) -> str:
    """Recover the address that signed an action message."""
    digest = action_message_hash(action, token_id)
    return Account.recover_message(encode_defunct(primitive=digest), signature=signature)
