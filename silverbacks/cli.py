"""
SILVERBACKS CLI

Usage:
    silverbacks generate -n 10 -o keypairs.zip     # Batch vouchers
    silverbacks fund keypairs.zip -m ipfs://...    # Mint one token per voucher
    silverbacks decrypt <link>                     # Test a printed voucher
    silverbacks sign <link> -t 5 -a redeem         # Offline authorization
    silverbacks redeem <link> -t 5 -a claim        # Redeem / claim on-chain
    silverbacks tokens <address-or-link>           # Token views
"""

from __future__ import annotations
import asyncio
import json
from pathlib import Path

import click
from eth_account import Account
from web3 import Web3

from silverbacks import __version__
from silverbacks.config import SilverbacksConfig, setup_logging
from silverbacks.core.types import Action
from silverbacks.crypto.codec import CodecScheme
from silverbacks.errors import SilverbacksError
from silverbacks.ledger.metadata import MetadataFetcher
from silverbacks.ledger.provider import connect_gateway, load_registry
from silverbacks.ledger.tokens import list_tokens
from silverbacks.redemption.session import RedemptionSession
from silverbacks.voucher.archive import read_manifest, write_archive
from silverbacks.voucher.builder import generate_vouchers
from silverbacks.voucher.link import VoucherLink, decrypt_link

RELAYER_ENV = "SILVERBACKS_RELAYER_KEY"

ACTION_CHOICE = click.Choice([action.value for action in Action])


def _relayer_account(relayer_key):
    if not relayer_key:
        return None
    try:
        return Account.from_key(relayer_key)
    except ValueError as e:
        raise click.BadParameter(f"Not a valid private key: {e}", param_hint="--relayer-key") from e


class SilverbacksGroup(click.Group):
    """Reports protocol errors as CLI errors instead of tracebacks."""

    def invoke(self, ctx):
        try:
            return super().invoke(ctx)
        except SilverbacksError as e:
            raise click.ClickException(str(e)) from e


@click.group(cls=SilverbacksGroup)
@click.version_option(version=__version__, prog_name="silverbacks")
@click.option("--config", "config_path", type=click.Path(dir_okay=False), help="JSON configuration file")
@click.option("-v", "--verbose", is_flag=True, help="Debug logging")
@click.pass_context
def cli(ctx, config_path, verbose):
    """Silverbacks voucher tool"""
    config = SilverbacksConfig.load(config_path) if config_path else SilverbacksConfig()
    errors = config.validate()
    if errors:
        raise click.UsageError("; ".join(errors))
    if verbose:
        config.log.level = "DEBUG"
    setup_logging(config.log)
    ctx.obj = config


@cli.command()
@click.option("-n", "--count", type=int, default=1, show_default=True, help="Vouchers to generate")
@click.option("--network", help="Network name written to links")
@click.option("--base-url", help="Redemption site origin")
@click.option("--scheme", type=click.Choice([s.value for s in CodecScheme]), help="Ciphertext scheme")
@click.option("-o", "--out", type=click.Path(dir_okay=False), default="keypairs.zip", show_default=True)
@click.pass_obj
def generate(config, count, network, base_url, scheme, out):
    """Generate vouchers into a ZIP archive"""
    vouchers = generate_vouchers(
        count,
        network or config.voucher.network,
        base_url or config.voucher.base_url,
        scheme=CodecScheme(scheme or config.voucher.scheme),
        secret_length=config.voucher.secret_length,
        qr_width=config.voucher.qr_width,
        qr_margin=config.voucher.qr_margin,
    )
    Path(out).write_bytes(write_archive(vouchers))
    click.echo(f"Generated {count} voucher(s) -> {out}")


@cli.command()
@click.argument("archive", type=click.Path(exists=True, dir_okay=False))
@click.option("-m", "--metadata-uri", required=True, help="Token metadata URI for every voucher")
@click.option("--relayer-key", envvar=RELAYER_ENV, help=f"Depositor private key (default: ${RELAYER_ENV})")
@click.pass_obj
def fund(config, archive, metadata_uri, relayer_key):
    """Mint one face-value token to each voucher in an archive"""
    rows = read_manifest(Path(archive).read_bytes())
    if not rows:
        raise click.ClickException(f"No vouchers in {archive}")
    network = VoucherLink.parse(rows[0].link).network
    sender = _relayer_account(relayer_key)
    addresses = [row.address for row in rows]

    async def run():
        registry = load_registry(config.gateway)
        gateway = await connect_gateway(config.gateway, registry, network, sender=sender)
        return await gateway.batch_deposit(addresses, [metadata_uri] * len(addresses))

    tx = asyncio.run(run())
    click.echo(f"Funded {len(addresses)} voucher(s): {tx.tx_hash}")


@cli.command()
@click.argument("link")
@click.option("-k", "--key", prompt="Decryption key", hide_input=True, help="Secret from the QR code")
def decrypt(link, key):
    """Decrypt a voucher link (no chain access)"""
    result = decrypt_link(link, key)
    click.echo(f"Private key:     {result.private_key.hex()}")
    click.echo(f"Derived address: {result.derived_address or '<invalid key>'}")
    click.echo(f"Link address:    {result.link.address}")
    if not result.matches:
        raise click.ClickException("Decryption key does not unlock this voucher")
    click.echo("Match")


@cli.command()
@click.argument("link")
@click.option("-t", "--token-id", type=int, required=True)
@click.option("-a", "--action", type=ACTION_CHOICE, default=Action.REDEEM.value, show_default=True)
@click.option("-k", "--key", prompt="Decryption key", hide_input=True, help="Secret from the QR code")
def sign(link, token_id, action, key):
    """Produce an ephemeral signature for delegated submission"""
    session = RedemptionSession.from_url(link)
    session.initiate(token_id, Action(action))
    authorization = session.authorize(key)
    click.echo(json.dumps({
        "tokenId": authorization.token_id,
        "action": authorization.action.value,
        "signer": authorization.ephemeral_address,
        "messageHash": "0x" + authorization.message_hash.hex(),
        "signature": authorization.signature_hex,
    }, indent=2))


@cli.command()
@click.argument("link")
@click.option("-t", "--token-id", type=int, required=True)
@click.option("-a", "--action", type=ACTION_CHOICE, default=Action.REDEEM.value, show_default=True)
@click.option("-k", "--key", prompt="Decryption key", hide_input=True, help="Secret from the QR code")
@click.option("--relayer-key", envvar=RELAYER_ENV, help=f"Sender private key (default: ${RELAYER_ENV})")
@click.pass_obj
def redeem(config, link, token_id, action, key, relayer_key):
    """Redeem or claim a voucher token on-chain"""
    voucher = VoucherLink.parse(link)
    sender = _relayer_account(relayer_key)

    async def run():
        registry = load_registry(config.gateway)
        gateway = await connect_gateway(config.gateway, registry, voucher.network, sender=sender)
        session = RedemptionSession(voucher, gateway)
        session.initiate(token_id, Action(action))
        return await session.on_scan(key)

    receipt = asyncio.run(run())
    click.echo(f"{receipt.tx.method} confirmed: {receipt.tx.tx_hash}")


@cli.command()
@click.argument("target")
@click.option("--network", default="", help="Network hint for the fallback provider")
@click.pass_obj
def tokens(config, target, network):
    """List tokens held by an address or voucher link"""
    if Web3.is_address(target):
        owner = target
    else:
        voucher = VoucherLink.parse(target)
        owner, network = voucher.address, network or voucher.network

    async def run():
        registry = load_registry(config.gateway)
        gateway = await connect_gateway(config.gateway, registry, network)
        async with MetadataFetcher(config.ipfs.gateway_url, config.ipfs.timeout) as fetcher:
            return await list_tokens(gateway, owner, fetcher)

    views = asyncio.run(run())
    if not views:
        click.echo(f"No tokens found for {owner}")
    for view in views:
        click.echo(f"#{view.token_id}  faceValue={view.face_value}  {view.name or view.token_uri}")


def main():
    cli()


if __name__ == "__main__":
    main()
