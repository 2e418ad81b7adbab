"""
Burn Relayer implementation.

This module contains the relay loop that reads complete source blocks from the
indexer, records their burns on the destination ledger and advances the
watermark one block at a time.
"""

import asyncio
import logging
from contextlib import aclosing

from .block_reader import BlockStream
from .burn_filter import extract_claims, find_burns
from .claim_submitter import ClaimSubmitter, DuplicateClaimError
from .config import RelayerConfig
from .indexer_client import IndexerClient
from .models import Block
from .utils.contract_utility import ContractUtility
from .utils.retry import with_retry
from .utils.rofl_utility import RoflUtility

logger = logging.getLogger(__name__)


class BurnRelayer:
    """
    Relay loop moving burns from the source indexer to the claims contract.

    The watermark (highest source block known to be recorded) is carried as an
    explicit value between iterations and re-derived from the destination on
    every iteration, so a restart resumes where the destination left off.
    """

    def __init__(self, config: RelayerConfig, indexer: IndexerClient, submitter: ClaimSubmitter):
        """
        Initialize the Burn Relayer.

        Args:
            config: Relayer configuration
            indexer: Client for the source chain indexer
            submitter: Destination ledger collaborator
        """
        self.config = config
        self.indexer = indexer
        self.submitter = submitter
        self.running = False
        self.shutdown_event = asyncio.Event()

    @classmethod
    def create(cls, config: RelayerConfig) -> "BurnRelayer":
        """
        Build a relayer and its collaborators from configuration.

        Args:
            config: Relayer configuration

        Returns:
            Configured BurnRelayer instance
        """
        indexer = IndexerClient(
            api_key=config.source_chain.api_key,
            endpoint=config.source_chain.indexer_api_base,
            proxy=config.source_chain.proxy,
            timeout=config.monitoring.request_timeout
        )

        contract_util = ContractUtility(
            network_name=config.target_chain.network,
            secret=config.local_private_key if config.local_mode else ""
        )

        submitter = ClaimSubmitter(
            contract_util=contract_util,
            rofl_util=None if config.local_mode else RoflUtility(),
            contract_address=config.target_chain.contract_address
        )

        logger.debug("Clients initialized")
        return cls(config, indexer, submitter)

    async def next_start_block(self, watermark: int) -> int:
        """First source block not yet recorded, never below the destination's end height."""
        end_height = await self.submitter.query_end_height()
        return max(watermark + 1, end_height + 1, self.config.source_chain.contract_height)

    async def read_next_block(self, start_block: int) -> Block | None:
        """Read the earliest complete block at or after ``start_block``."""
        source = self.config.source_chain
        monitoring = self.config.monitoring

        height = await with_retry(self.indexer.read_height, max_attempts=monitoring.max_attempts)
        if start_block > height:
            logger.debug(f"Start block {start_block} is ahead of source height {height}")
            return None

        logger.info(f"Reading burn transactions from block {start_block} to block {height}")
        stream = BlockStream(
            self.indexer,
            start_height=start_block,
            end_height=height,
            contract=source.contract_address,
            page_size=monitoring.page_size,
            max_attempts=monitoring.max_attempts,
            result_window=monitoring.result_window
        )

        async with aclosing(aiter(stream)) as blocks:
            async for block in blocks:
                return block
        return None

    async def relay_block(self, block: Block) -> None:
        """Submit the claims of one complete block; duplicates count as success."""
        source = self.config.source_chain
        claims = extract_claims(
            block,
            contract=source.contract_address,
            burn_address=source.burn_address,
            scale=self.config.monitoring.amount_scale
        )

        if not claims:
            logger.debug(f"No burns in block {block.number} ({len(block)} transfers)")
            return

        logger.info(f"In source block {block.number}:")
        for tx, claim in zip(find_burns(block, source.burn_address), claims):
            logger.info(f" Found transaction {tx.hash} from {tx.from_address} @ {claim.amount}")

        try:
            receipt = await self.submitter.submit(block.number, claims)
            logger.info(f"Written {len(claims)} burn transactions of block {block.number} ({receipt})")
        except DuplicateClaimError:
            logger.info(f"Skipping already existing transactions of block {block.number}")

    async def relay_once(self, watermark: int) -> int:
        """
        Run one relay iteration.

        Args:
            watermark: Last block this loop relayed (0 when unknown)

        Returns:
            The new watermark; unchanged if no complete block was available
        """
        start_block = await self.next_start_block(watermark)
        logger.debug(f"Forward transactions starting from block {start_block}")

        block = await self.read_next_block(start_block)
        if block is None:
            logger.debug(f"No complete block available, watermark stays at {watermark}")
            return watermark

        await self.relay_block(block)
        return block.number

    async def _cooldown(self) -> None:
        try:
            await asyncio.wait_for(self.shutdown_event.wait(), timeout=self.config.monitoring.cooldown_interval)
        except asyncio.TimeoutError:
            pass  # Cooldown elapsed

    async def run(self) -> None:
        """Main loop for the relayer service."""
        self.running = True
        logger.info("Burn Relayer starting...")
        logger.info(f"Cooldown interval: {self.config.monitoring.cooldown_interval}s")

        watermark = 0
        try:
            while self.running:
                watermark = await self.relay_once(watermark)
                logger.debug(f"Watermark at block {watermark}")
                await self._cooldown()
        except Exception as e:
            logger.error(f"Error in main loop: {e}", exc_info=True)
            raise
        finally:
            self.running = False
            await self.close()
            logger.info("Burn Relayer stopped")

    async def close(self) -> None:
        """Release the indexer HTTP client."""
        await self.indexer.aclose()

    def stop(self) -> None:
        """Stop the relayer service."""
        self.running = False
        self.shutdown_event.set()
