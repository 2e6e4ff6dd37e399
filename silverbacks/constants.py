"""
Silverbacks Protocol Constants

All protocol constants defined here for single source of truth.
"""

from typing import Final, Dict

PROTOCOL_VERSION: Final[int] = 1

# ==============================================================================
# KEYS
# ==============================================================================

PRIVATE_KEY_SIZE: Final[int] = 32               # secp256k1 scalar
SIGNATURE_SIZE: Final[int] = 65                 # r || s || v

SECP256K1_ORDER: Final[int] = (
    0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141
)

# ==============================================================================
# VOUCHER SECRET
# ==============================================================================

SECRET_ALPHABET: Final[str] = (
    "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789"
)
SECRET_LENGTH: Final[int] = 8                   # ~47.6 bits, accepted risk

# ==============================================================================
# LEGACY CODEC (MD5 -> AES-128-CTR, zero IV)
# ==============================================================================

LEGACY_IV: Final[bytes] = bytes(16)
LEGACY_CIPHERTEXT_HEX_LENGTH: Final[int] = PRIVATE_KEY_SIZE * 2

# ==============================================================================
# HARDENED CODEC (Argon2id -> AES-256-GCM)
# ==============================================================================

HARDENED_SALT_SIZE: Final[int] = 16
HARDENED_NONCE_SIZE: Final[int] = 12
HARDENED_TAG_SIZE: Final[int] = 16
HARDENED_KEY_SIZE: Final[int] = 32
HARDENED_CIPHERTEXT_HEX_LENGTH: Final[int] = 2 * (
    HARDENED_SALT_SIZE + HARDENED_NONCE_SIZE + PRIVATE_KEY_SIZE + HARDENED_TAG_SIZE
)

ARGON2_TIME_COST: Final[int] = 3
ARGON2_MEMORY_COST: Final[int] = 65536          # 64 MB
ARGON2_PARALLELISM: Final[int] = 4

# ==============================================================================
# ACTION MESSAGES
# ==============================================================================

REDEEM_PREFIX: Final[str] = "Redeem:"
CLAIM_PREFIX: Final[str] = "Claim:"
UINT256_MAX: Final[int] = 2**256 - 1

# ==============================================================================
# QR RENDERING
# ==============================================================================

QR_WIDTH_PX: Final[int] = 256
QR_MARGIN: Final[int] = 1

# ==============================================================================
# ARCHIVE
# ==============================================================================

MANIFEST_FILENAME: Final[str] = "keypairs.csv"
MANIFEST_HEADER: Final[tuple] = (
    "address",
    "privateKey",
    "encryptedPrivateKey",
    "encryptionKey",
    "link",
)

# ==============================================================================
# LINK
# ==============================================================================

LINK_PARAM_NETWORK: Final[str] = "network"
LINK_PARAM_ADDRESS: Final[str] = "address"
LINK_PARAM_KEY: Final[str] = "pk"

# ==============================================================================
# NETWORK
# ==============================================================================

DEFAULT_CHAIN_ID: Final[str] = "0xaa36a7"       # Sepolia
DEFAULT_IPFS_GATEWAY: Final[str] = "https://silverbacksipfs.online/ipfs/"
IPFS_SCHEME: Final[str] = "ipfs://"
DEFAULT_TX_TIMEOUT_SEC: Final[int] = 120
METADATA_TIMEOUT_SEC: Final[float] = 10.0

STABLE_COIN_DECIMALS: Final[int] = 18
VOUCHER_FACE_VALUE: Final[int] = 100             # dollars per NFT
DEPOSIT_UNIT: Final[int] = VOUCHER_FACE_VALUE * 10 ** STABLE_COIN_DECIMALS

DEFAULT_CHAINS: Final[Dict[str, dict]] = {
    "0xaa36a7": {
        "chainName": "Sepolia Testnet",
        "rpcUrls": ["https://rpc.sepolia.org"],
        "contracts": {},
    },
}
