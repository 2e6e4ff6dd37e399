"""
Silverbacks Redemption
"""

from silverbacks.redemption.session import (
    SessionState,
    Authorization,
    RedemptionReceipt,
    RedemptionSession,
)

__all__ = [
    "SessionState",
    "Authorization",
    "RedemptionReceipt",
    "RedemptionSession",
]
