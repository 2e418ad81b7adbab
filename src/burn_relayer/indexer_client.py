"""
Indexer API client for the Burn Relayer.

This module talks to an Etherscan-compatible indexing API and classifies its
responses. The API is known to answer the same condition with different shapes
(for example ``result: null`` where an empty array is expected), so every
payload is validated strictly instead of being coerced.
"""

import logging
from typing import Any

import httpx
from web3 import Web3

from .models import TokenTransaction, TransactionDecodeError

logger = logging.getLogger(__name__)


class IndexerError(Exception):
    """Base class for errors reported by the indexer client."""


class TransportError(IndexerError):
    """The HTTP request failed or returned a non-200 status."""


class ProtocolError(IndexerError):
    """The response did not match the expected schema."""


class ResultWindowTooLargeError(ProtocolError):
    """The requested page lies beyond the indexer's result window."""


class NoTransactionsError(IndexerError):
    """The queried window holds no (more) transactions."""


class IndexerClient:
    """
    Async client for the ``account/tokentx`` and ``proxy/eth_blockNumber``
    endpoints.
    """

    def __init__(
        self,
        api_key: str,
        endpoint: str,
        proxy: str | None = None,
        timeout: float = 30,
        transport: httpx.AsyncBaseTransport | None = None
    ) -> None:
        """
        Initialize the indexer client.

        Args:
            api_key: Indexer API key, sent with every request
            endpoint: API base URL (e.g. https://api.etherscan.io/api)
            proxy: Optional HTTP proxy URL
            timeout: Request timeout in seconds
            transport: Optional httpx transport, mainly for tests
        """
        self.api_key = api_key
        self.endpoint = endpoint
        self._client = httpx.AsyncClient(proxy=proxy, timeout=timeout, transport=transport)

    async def __aenter__(self) -> "IndexerClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _get(self, action: str, module: str, params: dict[str, str] | None = None) -> httpx.Response:
        query = {"action": action, "module": module, **(params or {})}
        logger.debug(f"GET {self.endpoint} {query}")

        try:
            return await self._client.get(self.endpoint, params={**query, "apikey": self.api_key})
        except httpx.HTTPError as e:
            raise TransportError(f"Request {module}/{action} failed: {e}") from e

    @staticmethod
    def _json(resp: httpx.Response) -> Any:
        try:
            return resp.json()
        except ValueError as e:
            raise ProtocolError(f"Response is not JSON: {resp.text[:200]!r}") from e

    async def read_height(self) -> int:
        """
        Read the latest block number of the source chain.

        Raises:
            TransportError: On network failure or non-200 status
            ProtocolError: If the response carries no hex string result
        """
        resp = await self._get("eth_blockNumber", "proxy")
        if resp.status_code != 200:
            raise TransportError(f"HTTP Error {resp.status_code}: {resp.reason_phrase}")

        data = self._json(resp)
        result = data.get("result") if isinstance(data, dict) else None
        if not isinstance(result, str):
            raise ProtocolError(f"Invalid server response: {data!r}")

        try:
            return Web3.to_int(hexstr=result)
        except ValueError as e:
            raise ProtocolError(f"Invalid block number {result!r}") from e

    async def read_page(
        self,
        page: int,
        page_size: int,
        end_height: int,
        start_height: int,
        contract: str
    ) -> list[TokenTransaction]:
        """
        Read one page of token transfers, sorted ascending by block.

        Args:
            page: 1-indexed page number
            page_size: Transfers per page
            end_height: Last block to include
            start_height: First block to include
            contract: ERC-20 contract address

        Returns:
            Non-empty list of decoded transfers

        Raises:
            NoTransactionsError: If the window holds no more transfers
            ResultWindowTooLargeError: If the page lies beyond the result window
            ProtocolError: If the payload or any record is malformed
            TransportError: On network failure or non-200 status
        """
        resp = await self._get("tokentx", "account", {
            "contractaddress": contract,
            "endblock": str(end_height),
            "page": str(page),
            "offset": str(page_size),
            "sort": "asc",
            "startblock": str(start_height),
        })

        if resp.status_code != 200:
            raise TransportError(f"HTTP Error {resp.status_code}: {resp.reason_phrase}")

        data = self._json(resp)
        if not isinstance(data, dict):
            raise ProtocolError(f"Unexpected payload type {type(data).__name__}")

        status = data.get("status")
        message = data.get("message")
        result = data.get("result")

        if not isinstance(status, str) or not isinstance(message, str):
            raise ProtocolError(f"Malformed status/message in response: {data!r}")

        match status, result:
            case ("1" | "0", []):
                logger.debug(f"Remote returned no transactions: {message}")
                raise NoTransactionsError(message or "No transactions found")
            case ("1", list()) if message != "OK":
                raise ProtocolError(f"Unexpected message {message!r} for status {status}")
            case ("1", list()):
                pass
            case ("0", None):
                raise ResultWindowTooLargeError(
                    f"Page {page} (offset {page_size}) rejected: {message}"
                )
            case ("0", str() as reason):
                # Rate limits and invalid keys arrive here as NOTOK + text
                raise ProtocolError(f"Remote error: {message}: {reason}")
            case _:
                raise ProtocolError(f"Unexpected response status={status!r} result={type(result).__name__}")

        try:
            return [TokenTransaction.from_api(raw) for raw in result]
        except TransactionDecodeError as e:
            raise ProtocolError(f"Malformed transaction on page {page}: {e}") from e
