"""
Silverbacks Full Cycle Integration Tests

Generate -> archive -> deposit to ephemeral address -> scan -> redeem / claim
"""

import pytest

from silverbacks.core.types import Action
from silverbacks.crypto.signing import recover_action_signer
from silverbacks.errors import AddressMismatch, LedgerRejected
from silverbacks.ledger.gateway import MockLedgerGateway
from silverbacks.ledger.tokens import list_tokens
from silverbacks.redemption.session import RedemptionSession, SessionState
from silverbacks.voucher.archive import read_manifest, write_archive
from silverbacks.voucher.builder import generate_vouchers
from silverbacks.voucher.link import VoucherLink, decrypt_link


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def batch():
    """Five freshly generated vouchers."""
    return generate_vouchers(5, "Sepolia Testnet", "https://vouchers.example.org")


@pytest.fixture
def ledger(batch):
    """Ledger holding one token per voucher at its ephemeral address."""
    ledger = MockLedgerGateway()
    for voucher in batch:
        ledger.mint(voucher.address, face_value=100, token_uri=f"ipfs://Qm{voucher.address[2:10]}")
    return ledger


# =============================================================================
# Tests
# =============================================================================

class TestFullCycle:
    """End-to-end voucher lifecycle."""

    def test_every_row_unlocks(self, batch):
        """Test each archived link decrypts to its address with its own secret."""
        rows = read_manifest(write_archive(batch))
        assert len(rows) == 5
        for row in rows:
            result = decrypt_link(row.link, row.encryption_key)
            assert result.matches
            assert result.private_key.hex() == row.private_key

    def test_secrets_do_not_cross(self, batch):
        """Test a voucher's secret does not unlock another voucher."""
        first, second = batch[0], batch[1]
        assert not decrypt_link(first.link, second.secret.value).matches

    @pytest.mark.asyncio
    async def test_fund_archive_then_redeem(self, batch):
        """Test an archive funded in one batch deposit redeems every voucher."""
        ledger = MockLedgerGateway()
        rows = read_manifest(write_archive(batch))

        await ledger.batch_deposit([row.address for row in rows], ["ipfs://QmBatch"] * len(rows))
        assert ledger.calls[0][0] == "batchDeposit"

        for row in rows:
            link = VoucherLink.parse(row.link)
            views = await list_tokens(ledger, link.address)
            assert [view.face_value for view in views] == [100]

            session = RedemptionSession(link, ledger)
            session.initiate(views[0].token_id, Action.REDEEM)
            await session.on_scan(row.encryption_key)

        assert ledger.tokens == {}
        assert ledger.balances[ledger.caller.lower()] == 100 * len(rows)

    @pytest.mark.asyncio
    async def test_redeem_cycle(self, batch, ledger):
        """Test a holder redeems a voucher end to end."""
        voucher = batch[0]
        link = VoucherLink.parse(voucher.link)

        views = await list_tokens(ledger, link.address)
        assert len(views) == 1
        token_id = views[0].token_id

        session = RedemptionSession(link, ledger)
        session.initiate(token_id, Action.REDEEM)
        receipt = await session.on_scan(voucher.secret)

        assert recover_action_signer(Action.REDEEM, token_id, receipt.authorization.signature) == voucher.address
        assert ledger.balances[ledger.caller.lower()] == 100
        assert await list_tokens(ledger, link.address) == []

    @pytest.mark.asyncio
    async def test_claim_cycle(self, batch, ledger):
        """Test a holder claims the token into their own wallet, then redeems it directly."""
        voucher = batch[1]
        link = VoucherLink.parse(voucher.link)
        token_id = (await list_tokens(ledger, link.address))[0].token_id

        session = RedemptionSession(link, ledger)
        session.initiate(token_id, Action.CLAIM)
        await session.on_scan(voucher.secret)

        owned = await list_tokens(ledger, ledger.caller)
        assert [view.token_id for view in owned] == [token_id]

        await ledger.redeem(token_id)
        assert ledger.balances[ledger.caller.lower()] == 100

    @pytest.mark.asyncio
    async def test_wrong_scan_then_right_scan(self, batch, ledger):
        """Test a bad scan leaves the token in place for a later correct scan."""
        voucher = batch[2]
        link = VoucherLink.parse(voucher.link)
        token_id = (await list_tokens(ledger, link.address))[0].token_id
        session = RedemptionSession(link, ledger)

        session.initiate(token_id, Action.REDEEM)
        with pytest.raises(AddressMismatch):
            await session.on_scan(batch[3].secret)
        assert session.state is SessionState.IDLE
        assert ledger.calls == []

        session.initiate(token_id, Action.REDEEM)
        await session.on_scan(voucher.secret)
        assert ledger.owner_of(token_id) is None

    @pytest.mark.asyncio
    async def test_replay_rejected(self, batch, ledger):
        """Test a submitted signature cannot be replayed."""
        voucher = batch[4]
        link = VoucherLink.parse(voucher.link)
        token_id = (await list_tokens(ledger, link.address))[0].token_id

        session = RedemptionSession(link, ledger)
        session.initiate(token_id, Action.REDEEM)
        receipt = await session.on_scan(voucher.secret)

        with pytest.raises(LedgerRejected):
            await ledger.redeem_to(token_id, receipt.authorization.signature)
        assert ledger.balances[ledger.caller.lower()] == 100
