"""
Configuration module for the Burn Relayer.

This module provides validated dataclasses for the relayer that reads ERC-20
burn transfers from an Etherscan-style indexer and records them on a claims
contract on Oasis Sapphire. Configuration is loaded from environment variables.
"""

import logging
import os
from dataclasses import dataclass, field
from typing import ClassVar
from urllib.parse import urlparse

from web3 import Web3

logger = logging.getLogger(__name__)

BURN_ADDRESS = "0x000000000000000000000000000000000000dead"


@dataclass(frozen=True, slots=True)
class NetworkPreset:
    """Well-known deployment of the ERC-20 token on a source chain."""
    contract_address: str
    contract_height: int
    indexer_api_base: str


NETWORKS: dict[str, NetworkPreset] = {
    "mainnet": NetworkPreset(
        contract_address="0x6c5ba91642f10282b576d91922ae6448c9d52f4e",
        contract_height=9975568,
        indexer_api_base="https://api.etherscan.io/api",
    ),
    "kovan": NetworkPreset(
        contract_address="0x512f7a3c14b6ee86c2015bc8ac1fe97e657f75f2",
        contract_height=20775211,
        indexer_api_base="https://api-kovan.etherscan.io/api",
    ),
}


@dataclass(frozen=True, slots=True)
class SourceChainConfig:
    """Configuration for the source chain and its indexer.

    Attributes:
        contract_address: ERC-20 contract address (lower case)
        contract_height: Block in which the contract was deployed
        indexer_api_base: Indexer API endpoint
        api_key: Indexer API key
        proxy: Optional HTTP proxy for indexer requests
        burn_address: Sink address that marks a transfer as a burn
    """
    contract_address: str
    contract_height: int
    indexer_api_base: str
    api_key: str
    proxy: str | None = None
    burn_address: str = BURN_ADDRESS

    def __post_init__(self) -> None:
        """Validate source chain configuration."""
        if not Web3.is_address(self.contract_address):
            raise ValueError(f"Invalid source contract address: {self.contract_address}")
        object.__setattr__(self, "contract_address", self.contract_address.lower())

        if self.contract_height < 0:
            raise ValueError(f"Contract height must be non-negative, got {self.contract_height}")

        if urlparse(self.indexer_api_base).scheme not in ("http", "https"):
            raise ValueError(f"Invalid indexer API URL: {self.indexer_api_base}")

        if not self.api_key:
            raise ValueError("Indexer API key is required (ETHERSCAN_API_KEY)")

        if self.proxy and urlparse(self.proxy).scheme not in ("http", "https", "socks5"):
            raise ValueError(f"Invalid proxy URL: {self.proxy}")


@dataclass(frozen=True, slots=True)
class TargetChainConfig:
    """Configuration for the destination Sapphire chain.

    Attributes:
        network: Network name (e.g. 'sapphire-testnet')
        contract_address: Checksummed address of the claims contract
    """
    network: str
    contract_address: str

    SUPPORTED_NETWORKS: ClassVar[set[str]] = {
        "sapphire",
        "sapphire-testnet",
        "sapphire-localnet",
    }

    def __post_init__(self) -> None:
        """Validate target chain configuration."""
        if self.network not in self.SUPPORTED_NETWORKS:
            raise ValueError(
                f"Unsupported network: {self.network}. "
                f"Supported networks: {', '.join(sorted(self.SUPPORTED_NETWORKS))}"
            )

        if not self.contract_address:
            raise ValueError("Target contract address is required (CONTRACT_ADDRESS)")

        if not Web3.is_address(self.contract_address):
            raise ValueError(f"Invalid target contract address: {self.contract_address}")

        object.__setattr__(self, "contract_address", Web3.to_checksum_address(self.contract_address))


@dataclass(frozen=True, slots=True)
class MonitoringConfig:
    """Pacing and paging settings for the relay loop."""
    cooldown_interval: int = 60  # seconds between iterations
    page_size: int = 500  # transfers per indexer page
    request_timeout: int = 30  # HTTP request timeout in seconds
    max_attempts: int = 5  # attempts per indexer request
    result_window: int = 10_000  # deepest offset the indexer serves
    amount_scale: int = 100  # source value / destination amount

    def __post_init__(self) -> None:
        """Validate monitoring configuration."""
        if self.cooldown_interval < 0:
            raise ValueError(f"Cooldown interval must be non-negative, got {self.cooldown_interval}")

        if not 0 < self.page_size <= self.result_window:
            raise ValueError(f"Page size must be in 1..{self.result_window}, got {self.page_size}")

        if self.request_timeout <= 0:
            raise ValueError(f"Request timeout must be positive, got {self.request_timeout}")

        if self.max_attempts <= 0:
            raise ValueError(f"Max attempts must be positive, got {self.max_attempts}")

        if self.amount_scale <= 0:
            raise ValueError(f"Amount scale must be positive, got {self.amount_scale}")


def _int_env(name: str, default: int) -> int:
    raw = os.environ.get(name, str(default))
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


@dataclass(frozen=True, slots=True)
class RelayerConfig:
    """Main configuration for the Burn Relayer.

    Attributes:
        source_chain: Source chain and indexer settings
        target_chain: Destination chain settings
        monitoring: Pacing and paging settings
        local_mode: Sign locally instead of through the ROFL daemon
        local_private_key: Signing key for local mode
    """
    source_chain: SourceChainConfig
    target_chain: TargetChainConfig
    monitoring: MonitoringConfig = field(default_factory=MonitoringConfig)
    local_mode: bool = False
    local_private_key: str | None = None

    def __post_init__(self) -> None:
        """Validate relayer configuration."""
        if self.local_mode and not self.local_private_key:
            raise ValueError("Local mode requires LOCAL_PRIVATE_KEY environment variable")

        if self.local_private_key:
            key = self.local_private_key.removeprefix("0x")
            if len(key) != 64:
                raise ValueError(f"Invalid private key length. Expected 64 hex characters, got {len(key)}")
            try:
                int(key, 16)
            except ValueError:
                raise ValueError("Invalid private key format. Must be hexadecimal") from None

    @classmethod
    def from_env(cls, local_mode: bool = False) -> "RelayerConfig":
        """
        Load configuration from environment variables.

        Args:
            local_mode: Whether to sign with a local private key

        Returns:
            RelayerConfig: Validated configuration

        Raises:
            ValueError: If required environment variables are missing or invalid
        """
        network_name = os.environ.get("NETWORK", "")
        if not network_name:
            raise ValueError(
                "NETWORK environment variable is required. "
                f"Supported networks: {', '.join(sorted(NETWORKS))}"
            )

        preset = NETWORKS.get(network_name)
        if preset is None:
            raise ValueError(f"Network {network_name} is not supported")

        api_key = os.environ.get("ETHERSCAN_API_KEY", "")
        if not api_key:
            raise ValueError("ETHERSCAN_API_KEY environment variable is required")

        source_chain = SourceChainConfig(
            contract_address=preset.contract_address,
            contract_height=preset.contract_height,
            indexer_api_base=preset.indexer_api_base,
            api_key=api_key,
            proxy=os.environ.get("HTTP_PROXY") or None,
        )

        target_contract = os.environ.get("CONTRACT_ADDRESS", "")
        if not target_contract:
            raise ValueError(
                "CONTRACT_ADDRESS environment variable is required. "
                "This should be the burn claims contract address on Sapphire."
            )

        target_chain = TargetChainConfig(
            network=os.environ.get("TARGET_NETWORK", "sapphire-testnet"),
            contract_address=target_contract,
        )

        monitoring = MonitoringConfig(
            cooldown_interval=_int_env("COOLDOWN_INTERVAL", 60),
            page_size=_int_env("PAGE_SIZE", 500),
            request_timeout=_int_env("REQUEST_TIMEOUT", 30),
            amount_scale=_int_env("AMOUNT_SCALE", 100),
        )

        return cls(
            source_chain=source_chain,
            target_chain=target_chain,
            monitoring=monitoring,
            local_mode=local_mode,
            local_private_key=os.environ.get("LOCAL_PRIVATE_KEY") if local_mode else None,
        )

    def log_config(self) -> None:
        """Log configuration settings (hiding sensitive data)."""
        logger.info("=== Burn Relayer Configuration ===")
        logger.info(f"Mode: {'LOCAL' if self.local_mode else 'ROFL'}")
        logger.info(f"Source contract: {self.source_chain.contract_address} (from block {self.source_chain.contract_height})")
        logger.info(f"Indexer: {self.source_chain.indexer_api_base}")
        logger.info(f"Proxy: {self.source_chain.proxy or '[NONE]'}")
        logger.info(f"Target network: {self.target_chain.network}")
        logger.info(f"Claims contract: {self.target_chain.contract_address}")
        logger.info(f"Private key: {'[SET]' if self.local_private_key else '[NOT SET]'}")
        logger.info(f"Cooldown: {self.monitoring.cooldown_interval}s, page size: {self.monitoring.page_size}")
        logger.info(f"Amount scale: {self.monitoring.amount_scale}")
