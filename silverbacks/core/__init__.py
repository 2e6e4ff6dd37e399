"""
Silverbacks Core Types
"""

from silverbacks.core.types import (
    PrivateKey,
    KeyPair,
    VoucherSecret,
    Action,
)

__all__ = [
    "PrivateKey",
    "KeyPair",
    "VoucherSecret",
    "Action",
]
