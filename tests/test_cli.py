"""
Silverbacks CLI Tests
"""

import json
from unittest.mock import AsyncMock, patch

import pytest
from click.testing import CliRunner

from silverbacks.cli import cli
from silverbacks.ledger.gateway import MockLedgerGateway
from silverbacks.core.types import Action
from silverbacks.crypto.signing import recover_action_signer
from silverbacks.voucher.archive import read_manifest


@pytest.fixture
def runner():
    return CliRunner()


class TestGenerate:
    """Tests for `silverbacks generate`."""

    def test_generate_archive(self, runner, tmp_path):
        """Test the archive is written with one row per voucher."""
        out = tmp_path / "keypairs.zip"
        result = runner.invoke(cli, [
            "generate", "-n", "2",
            "--network", "Sepolia Testnet",
            "--base-url", "https://vouchers.example.org",
            "-o", str(out),
        ])

        assert result.exit_code == 0, result.output
        rows = read_manifest(out.read_bytes())
        assert len(rows) == 2
        assert all(row.link.startswith("https://vouchers.example.org/?network=") for row in rows)

    def test_generate_invalid_count(self, runner, tmp_path):
        """Test a zero count is reported as an error."""
        result = runner.invoke(cli, ["generate", "-n", "0", "-o", str(tmp_path / "k.zip")])
        assert result.exit_code == 1
        assert "greater than 0" in result.output

    def test_invalid_config(self, runner, tmp_path):
        """Test an invalid config file is a usage error."""
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"voucher": {"qr_width": 5}}))
        result = runner.invoke(cli, ["--config", str(path), "generate", "-o", str(tmp_path / "k.zip")])
        assert result.exit_code == 2
        assert "qr_width" in result.output


class TestDecrypt:
    """Tests for `silverbacks decrypt`."""

    def test_decrypt_match(self, runner, mock_link_url, mock_keypair, mock_secret):
        """Test the right key reports a match."""
        result = runner.invoke(cli, ["decrypt", mock_link_url, "-k", mock_secret.value])
        assert result.exit_code == 0, result.output
        assert mock_keypair.address in result.output
        assert "Match" in result.output

    def test_decrypt_mismatch(self, runner, mock_link_url):
        """Test a wrong key fails."""
        result = runner.invoke(cli, ["decrypt", mock_link_url, "-k", "Zz9yX8wV"])
        assert result.exit_code == 1
        assert "does not unlock" in result.output

    def test_decrypt_bad_link(self, runner):
        """Test a link without voucher parameters fails cleanly."""
        result = runner.invoke(cli, ["decrypt", "https://vouchers.example.org/", "-k", "x"])
        assert result.exit_code == 1
        assert "Invalid voucher parameter" in result.output


class TestSign:
    """Tests for `silverbacks sign`."""

    def test_sign(self, runner, mock_link_url, mock_keypair, mock_secret):
        """Test the printed signature recovers to the voucher address."""
        result = runner.invoke(cli, ["sign", mock_link_url, "-t", "5", "-a", "claim", "-k", mock_secret.value])
        assert result.exit_code == 0, result.output

        payload = json.loads(result.output)
        assert payload["tokenId"] == 5
        assert payload["action"] == "claim"
        assert payload["signer"] == mock_keypair.address
        signature = bytes.fromhex(payload["signature"][2:])
        assert recover_action_signer(Action.CLAIM, 5, signature) == mock_keypair.address

    def test_sign_wrong_key(self, runner, mock_link_url):
        """Test a wrong key produces no signature."""
        result = runner.invoke(cli, ["sign", mock_link_url, "-t", "5", "-k", "Zz9yX8wV"])
        assert result.exit_code == 1
        assert "does not match" in result.output
        assert "signature" not in result.output


class TestRedeem:
    """Tests for `silverbacks redeem`."""

    def test_redeem_without_provider(self, runner, mock_link_url, mock_secret):
        """Test redemption fails fast when no chain has contracts."""
        result = runner.invoke(
            cli,
            ["redeem", mock_link_url, "-t", "1", "-k", mock_secret.value],
            env={"SILVERBACKS_RELAYER_KEY": ""},
        )
        assert result.exit_code == 1
        assert "Contracts not defined" in result.output

    def test_redeem_malformed_relayer_key(self, runner, mock_link_url, mock_secret):
        """Test a relayer key that is not a private key is a usage error."""
        result = runner.invoke(
            cli,
            ["redeem", mock_link_url, "-t", "1", "-k", mock_secret.value, "--relayer-key", "0xnothex"],
        )
        assert result.exit_code == 2
        assert "--relayer-key" in result.output
        assert "Traceback" not in result.output


class TestFund:
    """Tests for `silverbacks fund`."""

    @pytest.fixture
    def archive(self, runner, tmp_path):
        out = tmp_path / "keypairs.zip"
        result = runner.invoke(cli, [
            "generate", "-n", "3",
            "--network", "Sepolia Testnet",
            "--base-url", "https://vouchers.example.org",
            "-o", str(out),
        ])
        assert result.exit_code == 0, result.output
        return out

    def test_fund_mints_to_each_voucher(self, runner, archive):
        """Test every manifest address receives one face-value token."""
        ledger = MockLedgerGateway()
        connect = AsyncMock(return_value=ledger)
        with patch("silverbacks.cli.connect_gateway", connect):
            result = runner.invoke(cli, ["fund", str(archive), "-m", "ipfs://QmBatch"])

        assert result.exit_code == 0, result.output
        assert "Funded 3 voucher(s)" in result.output
        assert connect.await_args.args[2] == "Sepolia Testnet"

        for row in read_manifest(archive.read_bytes()):
            owned = [t for t in ledger.tokens.values() if t.owner == row.address]
            assert len(owned) == 1
            assert owned[0].face_value == 100
            assert owned[0].token_uri == "ipfs://QmBatch"

    def test_fund_without_provider(self, runner, archive):
        """Test funding fails cleanly when no chain has contracts."""
        result = runner.invoke(
            cli,
            ["fund", str(archive), "-m", "ipfs://QmBatch"],
            env={"SILVERBACKS_RELAYER_KEY": ""},
        )
        assert result.exit_code == 1
        assert "Contracts not defined" in result.output

    def test_fund_malformed_relayer_key(self, runner, archive):
        """Test a bad depositor key is rejected before any chain access."""
        connect = AsyncMock()
        with patch("silverbacks.cli.connect_gateway", connect):
            result = runner.invoke(
                cli, ["fund", str(archive), "-m", "ipfs://QmBatch", "--relayer-key", "1234"]
            )
        assert result.exit_code == 2
        assert "--relayer-key" in result.output
        connect.assert_not_awaited()
