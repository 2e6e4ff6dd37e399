"""
Silverbacks Provider Selection

Prefer the configured wallet RPC with a relayer account. Without one,
fall back to a read-only endpoint picked from the voucher link's
`network` hint: tokens can be viewed, but redeem/claim fail fast.
"""

from __future__ import annotations
import logging
from typing import Optional

from eth_account.signers.local import LocalAccount
from web3 import AsyncWeb3, AsyncHTTPProvider

from silverbacks.config import GatewayConfig
from silverbacks.errors import NetworkUnavailable
from silverbacks.ledger.chains import ChainRegistry, chain_id_hex
from silverbacks.ledger.gateway import Web3LedgerGateway

logger = logging.getLogger(__name__)


def load_registry(config: GatewayConfig) -> ChainRegistry:
    """Registry from the configured file, or the built-in one."""
    if config.chains_file:
        return ChainRegistry.load(config.chains_file, default_chain_id=config.default_chain_id)
    return ChainRegistry.default()


async def connect_gateway(
    config: GatewayConfig,
    registry: ChainRegistry,
    network_hint: str = "",
    sender: Optional[LocalAccount] = None,
) -> Web3LedgerGateway:
    """
    Build a gateway for the current environment.

    Raises:
        NetworkUnavailable: No reachable provider or no contracts for the chain
    """
    if config.rpc_url:
        w3 = AsyncWeb3(AsyncHTTPProvider(config.rpc_url))
        if not await w3.is_connected():
            raise NetworkUnavailable(f"Wallet provider unreachable: {config.rpc_url}")

        chain_id = chain_id_hex(await w3.eth.chain_id)
        logger.info(f"Network chainId: {chain_id}")
        chain = registry.get(chain_id)
        if chain is None or not chain.contracts:
            raise NetworkUnavailable(f"Contracts not defined for chain {chain_id}")

        if sender is None:
            logger.warning("No relayer account; gateway is read-only")
        return Web3LedgerGateway(
            w3,
            chain.contracts,
            sender=sender,
            tx_timeout=config.tx_timeout,
            gas_limit=config.gas_limit,
        )

    chain = registry.find_by_network(network_hint)
    if not chain.rpc_url:
        raise NetworkUnavailable(f"No RPC URL available for fallback provider on chain {chain.chain_id}")
    if not chain.contracts:
        raise NetworkUnavailable(f"Contracts not defined for chain {chain.chain_id}")
    if sender is not None:
        logger.warning("Relayer account ignored: no wallet provider configured")

    logger.info(f"Using fallback JSON-RPC provider: {chain.rpc_url}")
    return Web3LedgerGateway(
        AsyncWeb3(AsyncHTTPProvider(chain.rpc_url)),
        chain.contracts,
        tx_timeout=config.tx_timeout,
    )
