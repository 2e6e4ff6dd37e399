"""
Silverbacks Chain Registry

Registry file format, keyed by hex chain id:

    {
      "0xaa36a7": {
        "chainName": "Sepolia Testnet",
        "rpcUrls": ["https://..."],
        "contracts": {"vault": "0x...", "silverbacksNFT": "0x...", "stableCoin": "0x..."}
      }
    }
"""

from __future__ import annotations
import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Union

from silverbacks.constants import DEFAULT_CHAIN_ID, DEFAULT_CHAINS
from silverbacks.errors import ConfigError

logger = logging.getLogger(__name__)


def chain_id_hex(chain_id: Union[int, str]) -> str:
    """Normalize a chain id to lowercase 0x-hex."""
    if isinstance(chain_id, int):
        return hex(chain_id)
    text = chain_id.strip().lower()
    if text.startswith("0x"):
        return hex(int(text, 16))
    return hex(int(text))


@dataclass
class ChainInfo:
    """One chain entry."""
    chain_id: str
    chain_name: str
    rpc_urls: List[str] = field(default_factory=list)
    contracts: Dict[str, str] = field(default_factory=dict)

    @property
    def rpc_url(self) -> Optional[str]:
        return self.rpc_urls[0] if self.rpc_urls else None

    @classmethod
    def from_json(cls, chain_id: str, data: dict) -> ChainInfo:
        return cls(
            chain_id=chain_id_hex(chain_id),
            chain_name=data.get("chainName", ""),
            rpc_urls=list(data.get("rpcUrls") or []),
            contracts=dict(data.get("contracts") or {}),
        )

    def to_json(self) -> dict:
        return {
            "chainName": self.chain_name,
            "rpcUrls": list(self.rpc_urls),
            "contracts": dict(self.contracts),
        }


class ChainRegistry:
    """Known chains and their contract deployments."""

    def __init__(self, chains: Dict[str, ChainInfo], default_chain_id: str = DEFAULT_CHAIN_ID):
        self.chains = {chain_id_hex(key): value for key, value in chains.items()}
        self.default_chain_id = chain_id_hex(default_chain_id)

    def __len__(self) -> int:
        return len(self.chains)

    def get(self, chain_id: Union[int, str]) -> Optional[ChainInfo]:
        return self.chains.get(chain_id_hex(chain_id))

    @property
    def default_chain(self) -> Optional[ChainInfo]:
        return self.chains.get(self.default_chain_id)

    def find_by_network(self, network: Optional[str]) -> ChainInfo:
        """
        Pick the fallback chain for a link's `network` parameter.

        First chain whose name contains the hint (case-insensitive),
        otherwise the default chain.

        Raises:
            ConfigError: If neither matches
        """
        if network:
            hint = network.lower()
            for chain in self.chains.values():
                if hint in chain.chain_name.lower():
                    return chain
            logger.debug(f"No chain matches network {network!r}, using default")

        chain = self.default_chain
        if chain is None:
            raise ConfigError(f"Default chain {self.default_chain_id} not in registry")
        return chain

    @classmethod
    def from_dict(cls, data: dict, default_chain_id: str = DEFAULT_CHAIN_ID) -> ChainRegistry:
        """
        Build a registry from its JSON form.

        Raises:
            ConfigError: If a key is not a chain id or an entry is not an object
        """
        try:
            return cls(
                {key: ChainInfo.from_json(key, value) for key, value in data.items()},
                default_chain_id=default_chain_id,
            )
        except (ValueError, AttributeError, TypeError) as e:
            raise ConfigError(f"Malformed chain registry: {e}") from e

    @classmethod
    def load(cls, path: Union[str, Path], default_chain_id: str = DEFAULT_CHAIN_ID) -> ChainRegistry:
        """Load a registry file."""
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigError(f"Cannot read chain registry {path}: {e}") from e

        registry = cls.from_dict(data, default_chain_id=default_chain_id)
        logger.info(f"Loaded {len(registry)} chain(s) from {path}")
        return registry

    @classmethod
    def default(cls) -> ChainRegistry:
        """Built-in registry (public RPC endpoints, no contracts)."""
        return cls.from_dict(DEFAULT_CHAINS)
