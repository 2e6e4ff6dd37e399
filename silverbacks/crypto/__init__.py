"""
Silverbacks Cryptographic Primitives
"""

from silverbacks.crypto.codec import (
    CodecScheme,
    encrypt,
    decrypt,
    encrypt_private_key,
    decrypt_private_key,
    detect_scheme,
)
from silverbacks.crypto.keys import (
    generate_keypair,
    address_from_private_key,
    addresses_match,
)
from silverbacks.crypto.signing import (
    action_message_hash,
    sign_action,
    recover_action_signer,
)

__all__ = [
    # Codec
    "CodecScheme",
    "encrypt",
    "decrypt",
    "encrypt_private_key",
    "decrypt_private_key",
    "detect_scheme",
    # Keys
    "generate_keypair",
    "address_from_private_key",
    "addresses_match",
    # Signing
    "action_message_hash",
    "sign_action",
    "recover_action_signer",
]
