"""
Silverbacks Redemption Session

    Idle -> AwaitingScan -> Decrypting -> Verifying -> Authorizing -> Submitted

Any failure returns the session to Idle. Cancellation is only defined
while awaiting the scan; an in-flight submission cannot be cancelled.

The address check in Verifying is the only integrity check on the
scanned secret: legacy decryption with a wrong secret yields a
well-formed but wrong key, and no signature may be produced from it.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple, Union

from silverbacks.core.types import Action, PrivateKey, VoucherSecret
from silverbacks.crypto.codec import decrypt_private_key
from silverbacks.crypto.keys import addresses_match, try_address_from_private_key
from silverbacks.crypto.signing import action_message, action_message_hash, sign_action
from silverbacks.errors import (
    AddressMismatch,
    DecryptionFailed,
    InvalidSessionState,
    NetworkUnavailable,
    SessionBusy,
)
from silverbacks.ledger.gateway import LedgerGateway, TxResult
from silverbacks.voucher.link import VoucherLink

logger = logging.getLogger(__name__)


class SessionState(Enum):
    IDLE = "idle"
    AWAITING_SCAN = "awaiting_scan"
    DECRYPTING = "decrypting"
    VERIFYING = "verifying"
    AUTHORIZING = "authorizing"
    SUBMITTED = "submitted"


@dataclass(frozen=True)
class Authorization:
    """Ephemeral-key signature over one action."""
    token_id: int
    action: Action
    ephemeral_address: str
    message_hash: bytes
    signature: bytes

    @property
    def signature_hex(self) -> str:
        return "0x" + self.signature.hex()


@dataclass(frozen=True)
class RedemptionReceipt:
    """Confirmed redemption or claim."""
    authorization: Authorization
    tx: TxResult


class RedemptionSession:
    """
    One redemption attempt against one voucher link.

    Independent of every other session; identified by the link's
    (address, ciphertext) pair. Holds the decrypted key only between
    Verifying and the end of the attempt.
    """

    def __init__(self, link: VoucherLink, gateway: Optional[LedgerGateway] = None):
        self.link = link
        self.gateway = gateway
        self.state = SessionState.IDLE
        self.pending_token_id: Optional[int] = None
        self.pending_action: Optional[Action] = None
        self.ephemeral_address: Optional[str] = None
        self._private_key: Optional[PrivateKey] = None

    @classmethod
    def from_url(cls, url: str, gateway: Optional[LedgerGateway] = None) -> RedemptionSession:
        return cls(VoucherLink.parse(url), gateway)

    def __repr__(self) -> str:
        return (
            f"RedemptionSession(address={self.link.address}, state={self.state.value}, "
            f"token={self.pending_token_id}, action={self.pending_action})"
        )

    @property
    def key(self) -> Tuple[str, str]:
        return self.link.session_key

    @property
    def busy(self) -> bool:
        return self.state is not SessionState.IDLE

    def _reset(self) -> None:
        self.state = SessionState.IDLE
        self.pending_token_id = None
        self.pending_action = None
        self.ephemeral_address = None
        self._private_key = None

    def _require(self, state: SessionState, operation: str) -> None:
        if self.state is not state:
            raise InvalidSessionState(
                f"Cannot {operation} in state {self.state.value} (expected {state.value})"
            )

    def initiate(self, token_id: int, action: Union[Action, str]) -> None:
        """
        Start an action and wait for the QR scan.

        Raises:
            SessionBusy: An action is already in flight
        """
        if self.busy:
            raise SessionBusy(
                f"Session for {self.link.address} is busy "
                f"({self.pending_action} of token {self.pending_token_id})"
            )
        action = Action.parse(action) if isinstance(action, str) else action
        action_message(action, token_id)  # validates token id

        self.pending_token_id = token_id
        self.pending_action = action
        self.state = SessionState.AWAITING_SCAN
        logger.info(f"Initiated {action.value} for tokenId={token_id}; awaiting QR scan")

    def cancel(self) -> None:
        """Abandon the pending action before a secret is scanned."""
        self._require(SessionState.AWAITING_SCAN, "cancel")
        logger.info(f"QR scanning cancelled for tokenId={self.pending_token_id}")
        self._reset()

    def on_scan_error(self, error: Union[str, Exception]) -> None:
        """A scan attempt produced nothing; keep waiting."""
        self._require(SessionState.AWAITING_SCAN, "report a scan error")
        logger.debug(f"QR reader error: {error}")

    def _authorize(self, secret: Union[str, VoucherSecret]) -> Authorization:
        self._require(SessionState.AWAITING_SCAN, "accept a scan")
        secret = secret if isinstance(secret, VoucherSecret) else VoucherSecret(secret)

        try:
            self.state = SessionState.DECRYPTING
            try:
                raw = decrypt_private_key(self.link.ciphertext, secret)
            except DecryptionFailed as e:
                raise AddressMismatch(self.link.address, None) from e

            self.state = SessionState.VERIFYING
            address = try_address_from_private_key(raw)
            if not addresses_match(address, self.link.address):
                logger.warning(
                    f"Ephemeral address {address} does not match voucher address {self.link.address}"
                )
                raise AddressMismatch(self.link.address, address)
            self._private_key = PrivateKey(raw)
            self.ephemeral_address = address

            self.state = SessionState.AUTHORIZING
            signature = sign_action(self._private_key, self.pending_action, self.pending_token_id)
        except Exception:
            self._reset()
            raise

        logger.debug(f"Ephemeral signature ({self.pending_action.value}) for tokenId={self.pending_token_id}")
        return Authorization(
            token_id=self.pending_token_id,
            action=self.pending_action,
            ephemeral_address=address,
            message_hash=action_message_hash(self.pending_action, self.pending_token_id),
            signature=signature,
        )

    def authorize(self, secret: Union[str, VoucherSecret]) -> Authorization:
        """
        Decrypt, verify and sign without submitting.

        The session returns to Idle afterwards; the caller (or a third
        party) submits the authorization.

        Raises:
            AddressMismatch: The secret does not unlock this voucher
        """
        try:
            return self._authorize(secret)
        finally:
            self._reset()

    async def on_scan(self, secret: Union[str, VoucherSecret]) -> RedemptionReceipt:
        """
        Consume the scanned secret and run the action to confirmation.

        Raises:
            NetworkUnavailable: No writable gateway (before any decryption)
            AddressMismatch: Wrong secret; the ledger is not contacted
            LedgerRejected: The gateway reverted; not retried
        """
        self._require(SessionState.AWAITING_SCAN, "accept a scan")
        if self.gateway is None or not self.gateway.writable:
            self._reset()
            raise NetworkUnavailable("Redeem and claim require a wallet signer")

        authorization = self._authorize(secret)

        self.state = SessionState.SUBMITTED
        logger.info(f"Submitting {authorization.action.value} for tokenId={authorization.token_id}")
        try:
            tx = await self.gateway.submit(
                authorization.action,
                authorization.token_id,
                authorization.signature,
            )
        finally:
            self._reset()

        logger.info(f"{authorization.action.value} confirmed for tokenId={authorization.token_id}")
        return RedemptionReceipt(authorization=authorization, tx=tx)
