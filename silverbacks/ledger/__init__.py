"""
Silverbacks Ledger Gateway
"""

from silverbacks.ledger.gateway import (
    LedgerGateway,
    Web3LedgerGateway,
    MockLedgerGateway,
    TxResult,
)
from silverbacks.ledger.chains import ChainInfo, ChainRegistry
from silverbacks.ledger.metadata import TokenMetadata, MetadataFetcher, resolve_uri
from silverbacks.ledger.tokens import TokenView, list_tokens

__all__ = [
    # Gateway
    "LedgerGateway",
    "Web3LedgerGateway",
    "MockLedgerGateway",
    "TxResult",
    # Chains
    "ChainInfo",
    "ChainRegistry",
    # Metadata
    "TokenMetadata",
    "MetadataFetcher",
    "resolve_uri",
    # Tokens
    "TokenView",
    "list_tokens",
]
