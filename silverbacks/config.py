"""
Silverbacks Configuration
"""

from __future__ import annotations
import json
import logging
from dataclasses import dataclass, field, asdict
from typing import List, Optional

from silverbacks.constants import (
    SECRET_LENGTH,
    QR_WIDTH_PX,
    QR_MARGIN,
    DEFAULT_CHAIN_ID,
    DEFAULT_IPFS_GATEWAY,
    DEFAULT_TX_TIMEOUT_SEC,
    METADATA_TIMEOUT_SEC,
)
from silverbacks.crypto.codec import CodecScheme
from silverbacks.errors import ConfigError

logger = logging.getLogger(__name__)


@dataclass
class VoucherConfig:
    """Voucher generation configuration."""
    base_url: str = "http://localhost:3000"
    network: str = "Sepolia Testnet"
    secret_length: int = SECRET_LENGTH
    qr_width: int = QR_WIDTH_PX
    qr_margin: int = QR_MARGIN
    scheme: str = CodecScheme.LEGACY.value


@dataclass
class IPFSConfig:
    """IPFS HTTP gateway configuration."""
    gateway_url: str = DEFAULT_IPFS_GATEWAY
    timeout: float = METADATA_TIMEOUT_SEC


@dataclass
class GatewayConfig:
    """Ledger gateway configuration."""
    rpc_url: str = ""                       # write-capable provider; empty = no wallet
    chains_file: Optional[str] = None
    default_chain_id: str = DEFAULT_CHAIN_ID
    tx_timeout: int = DEFAULT_TX_TIMEOUT_SEC
    gas_limit: Optional[int] = None


@dataclass
class LogConfig:
    """Logging configuration."""
    level: str = "INFO"
    file: Optional[str] = None
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    max_size_mb: int = 10
    backup_count: int = 3


@dataclass
class SilverbacksConfig:
    """
    Complete configuration.

    The relayer private key is deliberately absent: it comes from the
    environment, never from a file.
    """
    voucher: VoucherConfig = field(default_factory=VoucherConfig)
    ipfs: IPFSConfig = field(default_factory=IPFSConfig)
    gateway: GatewayConfig = field(default_factory=GatewayConfig)
    log: LogConfig = field(default_factory=LogConfig)

    @property
    def scheme(self) -> CodecScheme:
        return CodecScheme(self.voucher.scheme)

    def validate(self) -> List[str]:
        """
        Validate configuration.

        Returns:
            List of validation errors (empty if valid)
        """
        errors = []

        # Voucher validation
        if not self.voucher.base_url:
            errors.append("base_url cannot be empty")
        if self.voucher.secret_length < 1:
            errors.append("secret_length must be at least 1")
        if self.voucher.qr_width < 21:
            errors.append(f"qr_width too small: {self.voucher.qr_width}")
        if self.voucher.qr_margin < 0:
            errors.append("qr_margin cannot be negative")
        if self.voucher.scheme not in {scheme.value for scheme in CodecScheme}:
            errors.append(f"Unknown codec scheme: {self.voucher.scheme}")

        # IPFS validation
        if not self.ipfs.gateway_url.startswith(("http://", "https://")):
            errors.append(f"Invalid IPFS gateway URL: {self.ipfs.gateway_url}")
        if self.ipfs.timeout <= 0:
            errors.append("IPFS timeout must be positive")

        # Gateway validation
        if self.gateway.rpc_url and not self.gateway.rpc_url.startswith(("http://", "https://")):
            errors.append(f"Invalid RPC URL: {self.gateway.rpc_url}")
        if self.gateway.tx_timeout <= 0:
            errors.append("tx_timeout must be positive")
        if self.gateway.gas_limit is not None and self.gateway.gas_limit <= 0:
            errors.append("gas_limit must be positive")

        return errors

    def save(self, path: str) -> None:
        """Save configuration to file."""
        config_dict = {
            "voucher": asdict(self.voucher),
            "ipfs": asdict(self.ipfs),
            "gateway": asdict(self.gateway),
            "log": asdict(self.log),
        }

        with open(path, 'w') as f:
            json.dump(config_dict, f, indent=2)

        logger.info(f"Configuration saved to {path}")

    @classmethod
    def load(cls, path: str) -> "SilverbacksConfig":
        """Load configuration from file."""
        try:
            with open(path, 'r') as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigError(f"Cannot read configuration {path}: {e}") from e

        config = cls()

        try:
            if "voucher" in data:
                config.voucher = VoucherConfig(**data["voucher"])

            if "ipfs" in data:
                config.ipfs = IPFSConfig(**data["ipfs"])

            if "gateway" in data:
                config.gateway = GatewayConfig(**data["gateway"])

            if "log" in data:
                config.log = LogConfig(**data["log"])
        except TypeError as e:
            raise ConfigError(f"Unknown configuration key in {path}: {e}") from e

        logger.info(f"Configuration loaded from {path}")
        return config


def setup_logging(config: LogConfig) -> None:
    """Configure logging based on config."""
    level = getattr(logging, config.level.upper(), logging.INFO)

    handlers = [logging.StreamHandler()]

    if config.file:
        from logging.handlers import RotatingFileHandler
        file_handler = RotatingFileHandler(
            config.file,
            maxBytes=config.max_size_mb * 1024 * 1024,
            backupCount=config.backup_count,
        )
        handlers.append(file_handler)

    logging.basicConfig(
        level=level,
        format=config.format,
        handlers=handlers,
    )
