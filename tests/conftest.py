"""
Silverbacks Test Fixtures
"""

import pytest

from silverbacks.core.types import KeyPair, PrivateKey, VoucherSecret
from silverbacks.crypto.codec import encrypt
from silverbacks.crypto.keys import address_from_private_key
from silverbacks.ledger.gateway import MockLedgerGateway
from silverbacks.voucher.link import VoucherLink, build_link

BASE_URL = "https://vouchers.example.org"
NETWORK = "Sepolia Testnet"


@pytest.fixture
def mock_private_key() -> PrivateKey:
    """Deterministic ephemeral private key."""
    return PrivateKey(bytes([(i * 7 + 1) % 256 for i in range(32)]))


@pytest.fixture
def mock_keypair(mock_private_key) -> KeyPair:
    """Key pair for the deterministic key."""
    return KeyPair(
        address=address_from_private_key(mock_private_key),
        private_key=mock_private_key,
    )


@pytest.fixture
def mock_secret() -> VoucherSecret:
    """Voucher secret as printed in the QR code."""
    return VoucherSecret("Ab3dE6gH")


@pytest.fixture
def mock_ciphertext(mock_private_key, mock_secret) -> str:
    """Legacy ciphertext of the deterministic key."""
    return encrypt(mock_private_key, mock_secret)


@pytest.fixture
def mock_link_url(mock_keypair, mock_ciphertext) -> str:
    """Voucher link for the deterministic key."""
    return build_link(BASE_URL, NETWORK, mock_keypair.address, mock_ciphertext)


@pytest.fixture
def mock_link(mock_link_url) -> VoucherLink:
    """Parsed voucher link."""
    return VoucherLink.parse(mock_link_url)


@pytest.fixture
def mock_ledger() -> MockLedgerGateway:
    """Empty in-memory ledger."""
    return MockLedgerGateway()


@pytest.fixture
def funded_ledger(mock_ledger, mock_keypair):
    """Ledger with one token owned by the ephemeral address; returns (ledger, token_id)."""
    token_id = mock_ledger.mint(mock_keypair.address, face_value=100, token_uri="ipfs://QmToken")
    return mock_ledger, token_id
