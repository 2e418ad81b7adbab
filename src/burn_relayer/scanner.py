"""
Read-only audit of the burn history.

Walks the whole transfer history of the token contract through the same
block-aligned reader the relay loop uses, logging every burn as a CSV line
``block,hash,from,value``. Nothing is submitted.
"""

import logging
from dataclasses import dataclass

from .block_reader import DEFAULT_PAGE_SIZE, BlockStream
from .burn_filter import check_block, find_burns
from .indexer_client import IndexerClient
from .utils.retry import with_retry

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ScanSummary:
    burn_count: int
    raw_count: int
    last_block: int


async def scan_window(
    client: IndexerClient,
    start_height: int,
    contract: str,
    burn_address: str,
    page_size: int = DEFAULT_PAGE_SIZE
) -> ScanSummary:
    """Scan one reader window from ``start_height`` up to the current height."""
    height = await with_retry(client.read_height)
    logger.info(f"Will read transactions from block {start_height} to {height}")

    stream = BlockStream(client, start_height, height, contract, page_size=page_size)
    burn_count = raw_count = 0

    async for block in stream:
        check_block(block, contract)
        burns = find_burns(block, burn_address)
        for tx in burns:
            logger.info(f"{tx.block_number},{tx.hash},{tx.from_address},{tx.value}")

        logger.info(f"Read {len(burns)} burn of {len(block)} raw transactions at {block.number}")
        burn_count += len(burns)
        raw_count += len(block)

    if stream.exhausted:
        logger.info(f"Window drained up to block {stream.last_block}")
    else:
        logger.info(f"Window stopped at the result window; resuming after block {stream.last_block}")
    logger.info(f"Read {burn_count} burn of {raw_count} raw transactions in this window")
    return ScanSummary(burn_count=burn_count, raw_count=raw_count, last_block=stream.last_block)


async def scan_burns(
    client: IndexerClient,
    contract: str,
    contract_height: int,
    burn_address: str,
    page_size: int = DEFAULT_PAGE_SIZE
) -> ScanSummary:
    """
    Scan windows back to back until one yields no transactions.

    Args:
        client: Indexer client
        contract: ERC-20 contract address
        contract_height: Block the contract was deployed in
        burn_address: Burn sink address
        page_size: Transfers per indexer page

    Returns:
        Totals over the whole session
    """
    total_burn = total_raw = 0
    next_block = contract_height
    last_block = contract_height

    while True:
        window = await scan_window(client, next_block, contract, burn_address, page_size)
        if window.raw_count == 0:
            break

        total_burn += window.burn_count
        total_raw += window.raw_count
        last_block = window.last_block
        next_block = window.last_block + 1

    logger.info(f"Session read all {total_burn} burn of {total_raw} raw transactions")
    return ScanSummary(burn_count=total_burn, raw_count=total_raw, last_block=last_block)
