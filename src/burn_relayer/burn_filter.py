"""
Burn detection and claim building.
"""

import logging

from hexbytes import HexBytes
from web3 import Web3

from .models import Block, BurnClaim, TokenTransaction

logger = logging.getLogger(__name__)


def check_block(block: Block, contract: str) -> None:
    """
    Verify that every transfer in ``block`` belongs to it and to ``contract``.

    Raises:
        AssertionError: On an empty block or any mismatch
    """
    if not block.transactions:
        raise AssertionError(f"Block {block.number} has no transactions")

    expected = contract.lower()
    for tx in block.transactions:
        if tx.block_number != block.number:
            raise AssertionError(f"Transaction {tx.hash} is in block {tx.block_number}, not {block.number}")
        if tx.contract_address != expected:
            logger.error(f"Contract address mismatch ({tx.contract_address} != {expected})")
            raise AssertionError(f"Contract address mismatch in {tx.hash}: {tx.contract_address} != {expected}")


def find_burns(block: Block, burn_address: str) -> list[TokenTransaction]:
    sink = burn_address.lower()
    return [tx for tx in block.transactions if tx.to_address == sink]


def build_claim(tx: TokenTransaction, scale: int) -> BurnClaim:
    return BurnClaim(
        address=Web3.to_checksum_address(tx.from_address),
        amount=tx.value // scale,
        tx_hash=HexBytes(tx.hash),
    )


def extract_claims(block: Block, contract: str, burn_address: str, scale: int) -> list[BurnClaim]:
    """
    Build destination claims for every burn in ``block``.

    Args:
        block: A complete source block
        contract: Expected ERC-20 contract address
        burn_address: Burn sink address
        scale: Divisor from source to destination precision

    Returns:
        Claims in block order; empty if the block holds no burns

    Raises:
        AssertionError: If the block is empty or holds foreign transfers
    """
    check_block(block, contract)
    return [build_claim(tx, scale) for tx in find_burns(block, burn_address)]
