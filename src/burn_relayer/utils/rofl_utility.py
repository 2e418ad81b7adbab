import codecs
import json
import logging
import typing
from typing import Any, Dict

import cbor2
import httpx
from web3.types import TxParams

logger = logging.getLogger(__name__)


class RoflSubmissionError(Exception):
    """The ROFL daemon rejected or failed a transaction."""

    def __init__(self, message: str, data: str | None = None):
        super().__init__(message)
        self.data = data


class RoflUtility:
    ROFL_SOCKET_PATH = "/run/rofl-appd.sock"

    def __init__(self, url: str = ''):
        self.url = url

    async def _appd_post(self, path: str, payload: typing.Any) -> typing.Any:
        transport = None
        if self.url and not self.url.startswith('http'):
            transport = httpx.AsyncHTTPTransport(uds=self.url)
            logger.debug(f"Using HTTP socket: {self.url}")
        elif not self.url:
            transport = httpx.AsyncHTTPTransport(uds=self.ROFL_SOCKET_PATH)
            logger.debug(f"Using unix domain socket: {self.ROFL_SOCKET_PATH}")

        async with httpx.AsyncClient(transport=transport) as client:
            url = self.url if self.url and self.url.startswith('http') else "http://localhost"
            logger.debug(f"Posting to {url+path}: {json.dumps(payload)}")
            response = await client.post(url + path, json=payload, timeout=None)
            response.raise_for_status()
            return response.json()

    @staticmethod
    def _decode_cbor_response(response_hex: str) -> Dict[str, Any]:
        """
        Decode CBOR response from ROFL service.

        Args:
            response_hex: Hex-encoded CBOR response

        Returns:
            Decoded CBOR data as dictionary

        Raises:
            RoflSubmissionError: If the payload is not valid hex-encoded CBOR
        """
        try:
            data_bytes = codecs.decode(response_hex, "hex")
            cbor_result = cbor2.loads(data_bytes)
        except (ValueError, cbor2.CBORDecodeError) as decode_error:
            raise RoflSubmissionError(f"Undecodable ROFL response {response_hex!r}: {decode_error}") from decode_error

        logger.debug(f"Decoded CBOR: {cbor_result}")
        return cbor_result if isinstance(cbor_result, dict) else {"data": cbor_result}

    async def submit_tx(self, tx: TxParams) -> Dict[str, Any]:
        """
        Sign and submit a transaction via ROFL.

        Args:
            tx: Built transaction parameters

        Returns:
            The decoded ``ok`` payload

        Raises:
            RoflSubmissionError: If ROFL returns a failed call or an error
        """
        payload = {
            "tx": {
                "kind": "eth",
                "data": {
                    "gas_limit": tx["gas"],
                    "to": tx["to"].removeprefix("0x"),
                    "value": tx["value"],
                    "data": tx["data"].removeprefix("0x"),
                },
            },
            "encrypt": False,
        }

        path = '/rofl/v1/tx/sign-submit'

        response = await self._appd_post(path, payload)
        response_hex = response["data"]
        logger.debug(f"ROFL raw response: {response_hex}")

        decoded_response = self._decode_cbor_response(response_hex)

        if 'ok' in decoded_response:
            logger.info("Transaction submitted successfully to ROFL")
            return decoded_response
        if 'fail' in decoded_response or 'error' in decoded_response:
            error_msg = decoded_response.get('fail') or decoded_response.get('error')
            logger.error(f"ROFL transaction failed: {error_msg}")
            detail = error_msg.get('message') if isinstance(error_msg, dict) else None
            raise RoflSubmissionError(f"ROFL transaction failed: {error_msg}", data=detail)

        logger.warning(f"Unknown ROFL response format: {decoded_response}")
        raise RoflSubmissionError(f"Unknown ROFL response format: {decoded_response}")
