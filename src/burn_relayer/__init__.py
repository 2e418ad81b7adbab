"""
Burn Relayer package.

Relays ERC-20 burn transfers from an Etherscan-style indexer to a claims
contract on Oasis Sapphire.
"""

from .block_reader import BlockStream
from .config import RelayerConfig
from .models import Block, BurnClaim, TokenTransaction
from .relayer import BurnRelayer

__all__ = ["Block", "BlockStream", "BurnClaim", "BurnRelayer", "RelayerConfig", "TokenTransaction"]
__version__ = "0.1.0"
