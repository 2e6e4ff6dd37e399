"""
Silverbacks Error Taxonomy

Cryptographic and validation errors are raised before any chain
interaction. Chain errors are surfaced as-is and never retried.
"""

from typing import Optional


class SilverbacksError(Exception):
    """Base exception for all protocol errors."""
    pass


class ConfigError(SilverbacksError):
    """Configuration is missing or invalid."""
    pass


class InvalidCount(SilverbacksError, ValueError):
    """Voucher batch size must be positive."""

    def __init__(self, count: int):
        self.count = count
        super().__init__(f"Voucher count must be greater than 0, got {count}")


class InvalidVoucherParameter(SilverbacksError, ValueError):
    """A voucher link is missing or carries a malformed parameter."""

    def __init__(self, parameter: str, detail: str = ""):
        self.parameter = parameter
        message = f"Invalid voucher parameter '{parameter}'"
        if detail:
            message += f": {detail}"
        super().__init__(message)


class AddressMismatch(SilverbacksError):
    """
    Recovered ephemeral address disagrees with the voucher address.

    This is the only signal for a wrong or garbled secret: legacy
    decryption never fails on its own.
    """

    def __init__(self, expected: str, recovered: Optional[str]):
        self.expected = expected
        self.recovered = recovered
        super().__init__(
            f"Ephemeral address {recovered or '<invalid key>'} "
            f"does not match voucher address {expected}"
        )


class DecryptionFailed(SilverbacksError):
    """Authenticated ciphertext rejected (hardened scheme only)."""
    pass


class SessionBusy(SilverbacksError):
    """A redemption session already has an action in flight."""
    pass


class InvalidSessionState(SilverbacksError):
    """Operation not permitted in the current session state."""
    pass


class LedgerRejected(SilverbacksError):
    """The ledger gateway reverted the call."""

    def __init__(self, reason: str, tx_hash: Optional[str] = None):
        self.reason = reason
        self.tx_hash = tx_hash
        super().__init__(reason)


class NetworkUnavailable(SilverbacksError):
    """No provider, or no signer for a write operation."""
    pass
