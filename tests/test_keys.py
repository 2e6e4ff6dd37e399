"""
Silverbacks Key and Signing Tests
"""

import pytest
from web3 import Web3

from silverbacks.constants import SECP256K1_ORDER, UINT256_MAX
from silverbacks.core.types import Action
from silverbacks.crypto.codec import decrypt, encrypt
from silverbacks.crypto.keys import (
    address_from_private_key,
    addresses_match,
    generate_keypair,
    is_valid_private_key,
    try_address_from_private_key,
)
from silverbacks.crypto.signing import (
    action_message,
    action_message_hash,
    recover_action_signer,
    sign_action,
)


class TestKeys:
    """Tests for ephemeral key pairs."""

    def test_generate_keypair(self):
        """Test generated address derives from the generated key."""
        keypair = generate_keypair()
        assert Web3.is_checksum_address(keypair.address)
        assert address_from_private_key(keypair.private_key) == keypair.address

    def test_keypairs_are_independent(self):
        """Test fresh key pairs differ."""
        assert generate_keypair().address != generate_keypair().address

    def test_scalar_range(self):
        """Test 0 and the group order are not valid keys."""
        assert not is_valid_private_key(bytes(32))
        assert not is_valid_private_key(SECP256K1_ORDER.to_bytes(32, "big"))
        assert is_valid_private_key((SECP256K1_ORDER - 1).to_bytes(32, "big"))
        assert not is_valid_private_key(bytes(31))

    def test_invalid_key_address(self):
        """Test invalid scalars raise or yield None."""
        with pytest.raises(ValueError):
            address_from_private_key(bytes(32))
        assert try_address_from_private_key(bytes(32)) is None

    def test_addresses_match(self, mock_keypair):
        """Test case-insensitive address comparison."""
        assert addresses_match(mock_keypair.address, mock_keypair.address.lower())
        assert not addresses_match(mock_keypair.address, None)
        assert not addresses_match(None, None)

    def test_address_binding(self, mock_keypair, mock_secret):
        """Test wrong secrets never recover the voucher address."""
        ciphertext = encrypt(mock_keypair.private_key, mock_secret)
        for wrong in ("Ab3dE6gh", "Ab3dE6g", "00000000", "Zz9yX8wV", ""):
            recovered = try_address_from_private_key(decrypt(ciphertext, wrong))
            assert not addresses_match(recovered, mock_keypair.address)


class TestActionMessage:
    """Tests for action message encoding."""

    def test_packed_layout(self):
        """Test prefix bytes followed by a 32-byte big-endian token id."""
        message = action_message(Action.REDEEM, 5)
        assert message == b"Redeem:" + (5).to_bytes(32, "big")
        assert action_message(Action.CLAIM, 1).startswith(b"Claim:")

    def test_hash_is_keccak_of_packed(self):
        """Test the message hash is keccak256 of the packed bytes."""
        for action in Action:
            assert action_message_hash(action, 42) == bytes(Web3.keccak(action_message(action, 42)))

    def test_domain_separation(self):
        """Test distinct (action, token) pairs never share a hash."""
        hashes = {
            action_message_hash(Action.REDEEM, 5),
            action_message_hash(Action.CLAIM, 5),
            action_message_hash(Action.REDEEM, 6),
            action_message_hash(Action.CLAIM, 6),
        }
        assert len(hashes) == 4

    def test_token_id_bounds(self):
        """Test token ids are uint256."""
        action_message(Action.REDEEM, 0)
        action_message(Action.REDEEM, UINT256_MAX)
        with pytest.raises(ValueError):
            action_message(Action.REDEEM, -1)
        with pytest.raises(ValueError):
            action_message(Action.REDEEM, UINT256_MAX + 1)

    def test_token_id_type(self):
        """Test non-integer token ids are rejected."""
        with pytest.raises(TypeError):
            action_message(Action.REDEEM, "5")
        with pytest.raises(TypeError):
            action_message(Action.REDEEM, True)


class TestSigning:
    """Tests for ephemeral action signatures."""

    def test_sign_and_recover(self, mock_keypair):
        """Test the signer recovers to the ephemeral address."""
        signature = sign_action(mock_keypair.private_key, Action.REDEEM, 7)
        assert len(signature) == 65
        assert recover_action_signer(Action.REDEEM, 7, signature) == mock_keypair.address

    def test_deterministic(self, mock_keypair):
        """Test RFC 6979 signatures are deterministic."""
        first = sign_action(mock_keypair.private_key, Action.CLAIM, 3)
        second = sign_action(mock_keypair.private_key, Action.CLAIM, 3)
        assert first == second

    def test_redeem_signature_not_valid_for_claim(self, mock_keypair):
        """Test a redeem signature does not verify as a claim."""
        signature = sign_action(mock_keypair.private_key, Action.REDEEM, 5)
        assert recover_action_signer(Action.CLAIM, 5, signature) != mock_keypair.address
        assert recover_action_signer(Action.REDEEM, 6, signature) != mock_keypair.address

    def test_wrong_key_signature(self, mock_keypair):
        """Test a different key recovers to a different address."""
        other = generate_keypair()
        signature = sign_action(other.private_key, Action.REDEEM, 5)
        assert recover_action_signer(Action.REDEEM, 5, signature) == other.address
        assert recover_action_signer(Action.REDEEM, 5, signature) != mock_keypair.address
