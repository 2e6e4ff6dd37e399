"""
Silverbacks Voucher Protocol
Ephemeral-key redemption for printed on-chain vouchers.

A voucher is a link (address + encrypted private key) plus a QR code
(the decryption secret). Together they authorize redemption of one
on-chain position without the plaintext key ever appearing in a URL.
"""

__version__ = "1.0.0"
__author__ = "Silverbacks"

from silverbacks.constants import PROTOCOL_VERSION, DEFAULT_CHAIN_ID

__all__ = [
    "PROTOCOL_VERSION",
    "DEFAULT_CHAIN_ID",
    "__version__",
]
