"""
Silverbacks Ledger Gateway

The on-chain vault and NFT contracts are an external ledger. This
module only submits correctly signed payloads and reads token views;
signature verification and token accounting are the contracts' job.

Reverts become LedgerRejected with the reason verbatim; a transaction
that is mined but fails is replayed at its block to recover the reason.
Nothing is retried: redemption is not idempotent and a resubmission
could spend gas twice.
"""

from __future__ import annotations
import asyncio
import itertools
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from eth_account.signers.local import LocalAccount
from web3 import AsyncWeb3, AsyncHTTPProvider, Web3
from web3.exceptions import ContractLogicError, Web3Exception

from silverbacks.constants import (
    DEFAULT_TX_TIMEOUT_SEC,
    DEPOSIT_UNIT,
    SIGNATURE_SIZE,
    VOUCHER_FACE_VALUE,
)
from silverbacks.core.types import Action
from silverbacks.crypto.keys import addresses_match
from silverbacks.crypto.signing import recover_action_signer
from silverbacks.errors import LedgerRejected, NetworkUnavailable
from silverbacks.ledger.abi import VAULT_ABI, NFT_ABI, ERC20_ABI

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TxResult:
    """Confirmed ledger transaction."""
    method: str
    tx_hash: str
    block_number: Optional[int] = None


class LedgerGateway(ABC):
    """
    Vault + NFT contract surface consumed by the protocol.

    Write methods suspend until the transaction is confirmed.
    """

    @property
    @abstractmethod
    def writable(self) -> bool:
        """True if a signer is available for write operations."""

    # Writes

    @abstractmethod
    async def redeem(self, token_id: int) -> TxResult:
        """Redeem a token held by the connected wallet itself."""

    @abstractmethod
    async def redeem_to(self, token_id: int, signature: bytes) -> TxResult:
        """Redeem an ephemeral-owned token to the caller."""

    @abstractmethod
    async def claim_nft(self, token_id: int, signature: bytes) -> TxResult:
        """Transfer an ephemeral-owned token to the caller."""

    @abstractmethod
    async def deposit(self, amount: int, metadata_uri: str) -> TxResult:
        """Deposit collateral and mint a token carrying `metadata_uri`."""

    @abstractmethod
    async def deposit_to(self, recipient: str, amount: int, metadata_uri: str) -> TxResult:
        """Deposit collateral and mint to `recipient` (a voucher's ephemeral address)."""

    @abstractmethod
    async def batch_deposit(self, recipients: List[str], metadata_uris: List[str]) -> TxResult:
        """Mint one face-value token to each recipient, paid by the caller."""

    # Views

    @abstractmethod
    async def balance_of(self, owner: str) -> int:
        ...

    @abstractmethod
    async def token_of_owner_by_index(self, owner: str, index: int) -> int:
        ...

    @abstractmethod
    async def face_value(self, token_id: int) -> int:
        ...

    @abstractmethod
    async def token_uri(self, token_id: int) -> str:
        ...

    async def submit(self, action: Action, token_id: int, signature: bytes) -> TxResult:
        """Route a signed ephemeral action to its entry point."""
        if Action(action) is Action.REDEEM:
            return await self.redeem_to(token_id, signature)
        return await self.claim_nft(token_id, signature)

    def require_writable(self, method: str) -> None:
        if not self.writable:
            raise NetworkUnavailable(
                f"{method} requires a wallet signer; only a read-only provider is connected"
            )


def _revert_reason(error: ContractLogicError) -> str:
    return getattr(error, "message", None) or str(error)


class Web3LedgerGateway(LedgerGateway):
    """
    Gateway backed by a JSON-RPC endpoint.

    Without a `sender` account the gateway is read-only and every write
    fails fast with NetworkUnavailable.
    """

    def __init__(
        self,
        w3: AsyncWeb3,
        contracts: Dict[str, str],
        sender: Optional[LocalAccount] = None,
        tx_timeout: int = DEFAULT_TX_TIMEOUT_SEC,
        gas_limit: Optional[int] = None,
    ):
        if not contracts.get("vault"):
            raise NetworkUnavailable("No vault contract configured for this chain")

        self.w3 = w3
        self.sender = sender
        self.tx_timeout = tx_timeout
        self.gas_limit = gas_limit
        self.vault_address = Web3.to_checksum_address(contracts["vault"])
        self.vault = w3.eth.contract(address=self.vault_address, abi=VAULT_ABI)
        self.nft = None
        if contracts.get("silverbacksNFT"):
            self.nft = w3.eth.contract(
                address=Web3.to_checksum_address(contracts["silverbacksNFT"]), abi=NFT_ABI
            )
        self.stable_coin = None
        if contracts.get("stableCoin"):
            self.stable_coin = w3.eth.contract(
                address=Web3.to_checksum_address(contracts["stableCoin"]), abi=ERC20_ABI
            )

    @classmethod
    def from_rpc(cls, rpc_url: str, contracts: Dict[str, str], **kwargs) -> Web3LedgerGateway:
        return cls(AsyncWeb3(AsyncHTTPProvider(rpc_url)), contracts, **kwargs)

    @property
    def writable(self) -> bool:
        return self.sender is not None

    async def _transact(self, method: str, function: Any) -> TxResult:
        self.require_writable(method)
        sender = self.sender.address

        params = {
            "from": sender,
            "nonce": await self.w3.eth.get_transaction_count(sender),
            "chainId": await self.w3.eth.chain_id,
        }
        if self.gas_limit:
            params["gas"] = self.gas_limit

        try:
            # Gas estimation runs the call, so most reverts surface here
            tx = await function.build_transaction(params)
            signed = self.sender.sign_transaction(tx)
            tx_hash = await self.w3.eth.send_raw_transaction(signed.raw_transaction)
        except ContractLogicError as e:
            reason = _revert_reason(e)
            logger.info(f"{method} rejected: {reason}")
            raise LedgerRejected(reason) from e

        tx_hex = Web3.to_hex(tx_hash)
        logger.info(f"Transaction sent: {method} {tx_hex}")

        receipt = await self.w3.eth.wait_for_transaction_receipt(tx_hash, timeout=self.tx_timeout)
        if receipt["status"] != 1:
            reason = await self._replay_reason(method, tx, receipt["blockNumber"])
            logger.info(f"{method} reverted in block {receipt['blockNumber']}: {reason}")
            raise LedgerRejected(reason, tx_hash=tx_hex)

        logger.info(f"{method} confirmed in block {receipt['blockNumber']}")
        return TxResult(method=method, tx_hash=tx_hex, block_number=receipt["blockNumber"])

    async def _replay_reason(self, method: str, tx: dict, block_number: int) -> str:
        """Re-run a failed transaction as a call at its block to read the revert reason."""
        call = {
            "from": self.sender.address,
            "to": tx["to"],
            "data": tx["data"],
            "value": tx.get("value", 0),
        }
        try:
            await self.w3.eth.call(call, block_identifier=block_number)
        except ContractLogicError as e:
            return _revert_reason(e)
        except Web3Exception as e:
            logger.debug(f"Replay of {method} failed: {e}")
        return f"{method} reverted on-chain"

    async def _approve_vault(self, amount: int) -> None:
        """
        Let the vault pull `amount` stable coins from the sender.

        A non-zero allowance is reset to 0 first, as some tokens refuse
        to change one non-zero allowance into another.
        """
        if self.stable_coin is None:
            raise NetworkUnavailable("No stable coin contract configured for this chain")
        self.require_writable("approve")

        current = await self.stable_coin.functions.allowance(self.sender.address, self.vault_address).call()
        if current > 0:
            logger.info(f"Resetting stable coin allowance of {current} to 0")
            await self._transact("approve", self.stable_coin.functions.approve(self.vault_address, 0))
        if amount > 0:
            logger.info(f"Approving vault to spend {amount}")
            await self._transact("approve", self.stable_coin.functions.approve(self.vault_address, amount))

    async def redeem(self, token_id: int) -> TxResult:
        return await self._transact("redeem", self.vault.functions.redeem(token_id))

    async def redeem_to(self, token_id: int, signature: bytes) -> TxResult:
        return await self._transact("redeemTo", self.vault.functions.redeemTo(token_id, signature))

    async def claim_nft(self, token_id: int, signature: bytes) -> TxResult:
        return await self._transact("claimNFT", self.vault.functions.claimNFT(token_id, signature))

    async def deposit(self, amount: int, metadata_uri: str) -> TxResult:
        await self._approve_vault(amount)
        return await self._transact("deposit", self.vault.functions.deposit(amount, metadata_uri))

    async def deposit_to(self, recipient: str, amount: int, metadata_uri: str) -> TxResult:
        recipient = Web3.to_checksum_address(recipient)
        await self._approve_vault(amount)
        return await self._transact(
            "depositTo", self.vault.functions.depositTo(recipient, amount, metadata_uri)
        )

    async def batch_deposit(self, recipients: List[str], metadata_uris: List[str]) -> TxResult:
        if len(recipients) != len(metadata_uris):
            raise ValueError(
                f"{len(recipients)} recipients but {len(metadata_uris)} metadata URIs"
            )
        recipients = [Web3.to_checksum_address(r) for r in recipients]
        await self._approve_vault(len(recipients) * DEPOSIT_UNIT)
        return await self._transact(
            "batchDeposit", self.vault.functions.batchDeposit(recipients, list(metadata_uris))
        )

    def _require_nft(self):
        if self.nft is None:
            raise NetworkUnavailable("No NFT contract configured for this chain")
        return self.nft

    async def balance_of(self, owner: str) -> int:
        owner = Web3.to_checksum_address(owner)
        return await self._require_nft().functions.balanceOf(owner).call()

    async def token_of_owner_by_index(self, owner: str, index: int) -> int:
        owner = Web3.to_checksum_address(owner)
        return await self._require_nft().functions.tokenOfOwnerByIndex(owner, index).call()

    async def face_value(self, token_id: int) -> int:
        return await self._require_nft().functions.faceValue(token_id).call()

    async def token_uri(self, token_id: int) -> str:
        return await self._require_nft().functions.tokenURI(token_id).call()

    async def stable_coin_balance(self, owner: str) -> int:
        if self.stable_coin is None:
            raise NetworkUnavailable("No stable coin contract configured for this chain")
        owner = Web3.to_checksum_address(owner)
        return await self.stable_coin.functions.balanceOf(owner).call()


# =============================================================================
# In-process ledger
# =============================================================================

@dataclass
class MockToken:
    """Token record held by MockLedgerGateway."""
    owner: str
    face_value: int
    token_uri: str = ""


@dataclass
class MockLedgerGateway(LedgerGateway):
    """
    In-memory ledger enforcing the vault rules the protocol relies on.

    - redeemTo / claimNFT: the signer recovered from the action message
      must own the token
    - redeem: the caller must own the token
    - redeemed tokens are burned; any later call on them reverts
    """
    caller: str = "0x000000000000000000000000000000000000c0DE"
    is_writable: bool = True
    tokens: Dict[int, MockToken] = field(default_factory=dict)
    balances: Dict[str, int] = field(default_factory=dict)
    calls: List[tuple] = field(default_factory=list)
    _ids: Any = field(default_factory=lambda: itertools.count(1), repr=False)
    _blocks: Any = field(default_factory=lambda: itertools.count(1), repr=False)

    @property
    def writable(self) -> bool:
        return self.is_writable

    def mint(self, owner: str, face_value: int = 100, token_uri: str = "") -> int:
        """Mint a token directly (test setup)."""
        token_id = next(self._ids)
        self.tokens[token_id] = MockToken(owner=owner, face_value=face_value, token_uri=token_uri)
        return token_id

    def owner_of(self, token_id: int) -> Optional[str]:
        token = self.tokens.get(token_id)
        return token.owner if token else None

    def _confirm(self, method: str, *args) -> TxResult:
        self.calls.append((method,) + args)
        block = next(self._blocks)
        return TxResult(method=method, tx_hash=f"0x{block:064x}", block_number=block)

    def _token(self, token_id: int) -> MockToken:
        token = self.tokens.get(token_id)
        if token is None:
            raise LedgerRejected("ERC721: invalid token ID")
        return token

    def _burn_to_caller(self, token_id: int) -> None:
        token = self.tokens.pop(token_id)
        key = self.caller.lower()
        self.balances[key] = self.balances.get(key, 0) + token.face_value

    def _check_signer(self, action: Action, token_id: int, signature: bytes) -> MockToken:
        token = self._token(token_id)
        if len(signature) != SIGNATURE_SIZE:
            raise LedgerRejected("ECDSA: invalid signature length")
        try:
            signer = recover_action_signer(action, token_id, signature)
        except Exception as e:
            raise LedgerRejected("Invalid signature") from e
        if not addresses_match(signer, token.owner):
            raise LedgerRejected("Invalid signature: signer is not token owner")
        return token

    async def redeem(self, token_id: int) -> TxResult:
        self.require_writable("redeem")
        await asyncio.sleep(0)
        token = self._token(token_id)
        if not addresses_match(token.owner, self.caller):
            raise LedgerRejected("Not token owner")
        self._burn_to_caller(token_id)
        return self._confirm("redeem", token_id)

    async def redeem_to(self, token_id: int, signature: bytes) -> TxResult:
        self.require_writable("redeemTo")
        await asyncio.sleep(0)
        self._check_signer(Action.REDEEM, token_id, signature)
        self._burn_to_caller(token_id)
        return self._confirm("redeemTo", token_id, bytes(signature))

    async def claim_nft(self, token_id: int, signature: bytes) -> TxResult:
        self.require_writable("claimNFT")
        await asyncio.sleep(0)
        token = self._check_signer(Action.CLAIM, token_id, signature)
        token.owner = self.caller
        return self._confirm("claimNFT", token_id, bytes(signature))

    def _mint_units(self, owner: str, amount: int, metadata_uri: str) -> List[int]:
        # One face-value token per whole unit; the remainder is refunded
        count = amount // DEPOSIT_UNIT
        if count == 0:
            raise LedgerRejected(f"Deposit must be at least {VOUCHER_FACE_VALUE}")
        return [self.mint(owner, VOUCHER_FACE_VALUE, metadata_uri) for _ in range(count)]

    async def deposit(self, amount: int, metadata_uri: str) -> TxResult:
        self.require_writable("deposit")
        await asyncio.sleep(0)
        token_ids = self._mint_units(self.caller, amount, metadata_uri)
        return self._confirm("deposit", token_ids, metadata_uri)

    async def deposit_to(self, recipient: str, amount: int, metadata_uri: str) -> TxResult:
        self.require_writable("depositTo")
        await asyncio.sleep(0)
        token_ids = self._mint_units(recipient, amount, metadata_uri)
        return self._confirm("depositTo", recipient, token_ids, metadata_uri)

    async def batch_deposit(self, recipients: List[str], metadata_uris: List[str]) -> TxResult:
        self.require_writable("batchDeposit")
        await asyncio.sleep(0)
        if not recipients:
            raise LedgerRejected("No recipients")
        if len(recipients) != len(metadata_uris):
            raise LedgerRejected("Array length mismatch")
        token_ids = [
            self.mint(recipient, VOUCHER_FACE_VALUE, uri)
            for recipient, uri in zip(recipients, metadata_uris)
        ]
        return self._confirm("batchDeposit", token_ids)

    def _owned(self, owner: str) -> List[int]:
        return sorted(tid for tid, token in self.tokens.items() if addresses_match(token.owner, owner))

    async def balance_of(self, owner: str) -> int:
        return len(self._owned(owner))

    async def token_of_owner_by_index(self, owner: str, index: int) -> int:
        owned = self._owned(owner)
        if index >= len(owned):
            raise LedgerRejected("ERC721Enumerable: owner index out of bounds")
        return owned[index]

    async def face_value(self, token_id: int) -> int:
        return self._token(token_id).face_value

    async def token_uri(self, token_id: int) -> str:
        return self._token(token_id).token_uri
