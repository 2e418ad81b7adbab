"""
Block-aligned reading of indexer pages.

The indexer paginates by transfer count, not by block, so one block's transfers
may be split across two pages. ``BlockStream`` buffers transfers per block and
only releases a block once a later block has been seen (pages are sorted
ascending) or the window has been read to the end.
"""

import logging
from collections.abc import AsyncIterator
from functools import partial

from .indexer_client import IndexerClient, NoTransactionsError
from .models import Block, TokenTransaction
from .utils.retry import DEFAULT_MAX_ATTEMPTS, with_retry

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 500
RESULT_WINDOW = 10_000


def _is_end_of_data(error: Exception) -> bool:
    return isinstance(error, NoTransactionsError)


class BlockStream:
    """
    Async iterable of complete blocks in ``[start_height, end_height]``.

    Each ``async for`` over the stream starts a fresh read from page 1. After
    (or during) iteration ``last_block`` holds the last block number emitted,
    or ``start_height`` if nothing was emitted; callers resume from there.
    """

    def __init__(
        self,
        client: IndexerClient,
        start_height: int,
        end_height: int,
        contract: str,
        page_size: int = DEFAULT_PAGE_SIZE,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        result_window: int = RESULT_WINDOW
    ) -> None:
        self.client = client
        self.start_height = start_height
        self.end_height = end_height
        self.contract = contract
        self.page_size = page_size
        self.max_attempts = max_attempts
        self.result_window = result_window
        self.last_block = start_height
        self.exhausted = False

    def __aiter__(self) -> AsyncIterator[Block]:
        return self._blocks()

    async def _fetch(self, page: int) -> list[TokenTransaction]:
        return await with_retry(
            partial(self.client.read_page, page, self.page_size, self.end_height, self.start_height, self.contract),
            _is_end_of_data,
            self.max_attempts,
        )

    def _emit(self, backlog: dict[int, list[TokenTransaction]]) -> Block:
        number = min(backlog)
        block = Block(number=number, transactions=tuple(backlog.pop(number)))
        self.last_block = number
        logger.debug(f"Emitting {block}")
        return block

    async def _blocks(self) -> AsyncIterator[Block]:
        backlog: dict[int, list[TokenTransaction]] = {}
        emitted: int | None = None
        page = 1
        self.last_block = self.start_height
        self.exhausted = False

        while True:
            while len(backlog) <= 1:
                if page * self.page_size > self.result_window:
                    logger.warning(
                        f"Result window of {self.result_window} exhausted at page {page} "
                        f"with {len(backlog)} pending block(s); stopping at block {self.last_block}"
                    )
                    return

                try:
                    transactions = await self._fetch(page)
                except NoTransactionsError:
                    logger.debug(f"No more transactions after page {page - 1}")
                    self.exhausted = True
                    if backlog:
                        yield self._emit(backlog)
                    return

                for tx in transactions:
                    if emitted is not None and tx.block_number <= emitted:
                        raise AssertionError(
                            f"Page {page} returned block {tx.block_number} after block {emitted} was emitted"
                        )
                    backlog.setdefault(tx.block_number, []).append(tx)

                if len(backlog) == 1 and len(transactions) == self.page_size:
                    logger.debug(f"Page {page} is filled by block {next(iter(backlog))}; reading on")

                logger.debug(
                    f"Read page {page}: {len(transactions)} transactions, {len(backlog)} pending block(s)"
                )
                page += 1

            block = self._emit(backlog)
            emitted = block.number
            yield block
