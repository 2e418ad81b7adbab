"""Claim submission to the destination ledger.

This module records burn claims on the claims contract on Oasis Sapphire,
supporting both local (private key) and production (ROFL) signing, and reads
the contract's recorded end height.
"""

import base64
import binascii
import logging
from typing import TYPE_CHECKING, Any, Sequence

from web3 import Web3
from web3.contract import Contract
from web3.contract.contract import ContractFunction
from web3.exceptions import ContractLogicError
from web3.types import HexBytes, TxParams, TxReceipt, Wei

from .models import BurnClaim
from .utils.rofl_utility import RoflSubmissionError

if TYPE_CHECKING:
    from .utils.contract_utility import ContractUtility
    from .utils.rofl_utility import RoflUtility

logger = logging.getLogger(__name__)

REVERTED_PREFIX = "reverted: "


class SubmissionError(Exception):
    """The destination ledger rejected or failed a claim submission."""


class DuplicateClaimError(SubmissionError):
    """The destination ledger already recorded these claims."""


class ClaimSubmitter:
    """Handles burn claim submission to the claims contract."""

    CONTRACT_NAME = "BurnClaims"
    DUPLICATE_ERROR = "TxHashAlreadyExist"
    GAS_BASE = 300_000
    GAS_PER_CLAIM = 80_000

    def __init__(
        self,
        contract_util: "ContractUtility",
        rofl_util: "RoflUtility | None",
        contract_address: str,
        receipt_timeout: int = 120
    ) -> None:
        """
        Initialize the ClaimSubmitter.

        Args:
            contract_util: Utility holding the destination Web3 connection
            rofl_util: ROFL utility for transaction submission (None for local mode)
            contract_address: Address of the claims contract
            receipt_timeout: Seconds to wait for a receipt in local mode
        """
        self.contract_util: ContractUtility = contract_util
        self.rofl_util: RoflUtility | None = rofl_util
        self.contract_address: str = Web3.to_checksum_address(contract_address)
        self.receipt_timeout = receipt_timeout

        self.contract: Contract = self.contract_util.w3.eth.contract(
            address=self.contract_address,
            abi=self.contract_util.get_contract_abi(self.CONTRACT_NAME)
        )
        self.duplicate_selector: str = Web3.to_hex(Web3.keccak(text=f"{self.DUPLICATE_ERROR}(bytes32)")[:4])

        mode = "ROFL production" if rofl_util else "local testing"
        logger.info(f"ClaimSubmitter initialized in {mode} mode")
        logger.info(f"  Claims contract: {self.contract_address}")

    async def query_end_height(self) -> int:
        """Highest source block already recorded on the destination."""
        height: int = self.contract.functions.endHeight().call()
        logger.debug(f"Destination end height: {height}")
        return height

    @staticmethod
    def _revert_data(data: Any) -> bytes | None:
        """
        Raw revert bytes from error data.

        web3 hands out hex strings; the ROFL daemon reports ``reverted: <base64>``.
        """
        if not isinstance(data, str):
            return None
        try:
            if data.startswith(REVERTED_PREFIX):
                return base64.b64decode(data.removeprefix(REVERTED_PREFIX), validate=True)
            return bytes.fromhex(data.removeprefix("0x"))
        except (binascii.Error, ValueError):
            return None

    def is_duplicate(self, error: Exception) -> bool:
        """Whether ``error`` is the contract's already-recorded revert."""
        if self.DUPLICATE_ERROR.lower() in str(error).lower():
            return True
        revert_data = self._revert_data(getattr(error, 'data', None))
        return revert_data is not None and revert_data[:4] == bytes.fromhex(self.duplicate_selector[2:])

    def _classify(self, error: Exception, height: int) -> SubmissionError:
        if self.is_duplicate(error):
            return DuplicateClaimError(f"Claims of block {height} already recorded: {error}")
        return SubmissionError(f"Submission of block {height} failed: {error}")

    async def submit(self, height: int, claims: Sequence[BurnClaim]) -> str:
        """
        Record the claims of one source block.

        Args:
            height: Source block number the claims belong to
            claims: Claims in block order

        Returns:
            Hex string identifying the submitted transaction

        Raises:
            DuplicateClaimError: If the destination already holds these claims
            SubmissionError: On any other failure
        """
        logger.info(f"Submitting {len(claims)} claim(s) for block {height}")
        function = self.contract.functions.storeErc20BurnedTransactions(
            height,
            [claim.to_contract_args() for claim in claims]
        )

        match self.rofl_util:
            case None:
                return self._submit_local(function, height)
            case rofl_util:
                return await self._submit_rofl(rofl_util, function, height, len(claims))

    def _submit_local(self, function: ContractFunction, height: int) -> str:
        logger.debug("LOCAL MODE: Submitting transaction directly")

        try:
            gas: int = function.estimate_gas()
        except ContractLogicError as e:
            raise self._classify(e, height) from e

        tx_hash: HexBytes = function.transact({
            'gas': gas,
            'gasPrice': self.contract_util.w3.eth.gas_price
        })
        logger.info(f"Transaction submitted: {Web3.to_hex(tx_hash)}")

        receipt: TxReceipt = self.contract_util.w3.eth.wait_for_transaction_receipt(
            tx_hash, timeout=self.receipt_timeout
        )
        if (status := receipt.get('status', 0)) != 1:
            raise SubmissionError(f"Transaction {Web3.to_hex(tx_hash)} for block {height} failed with status={status}")

        logger.info(f"Transaction confirmed in block {receipt['blockNumber']}")
        return Web3.to_hex(tx_hash)

    async def _submit_rofl(self, rofl_util: "RoflUtility", function: ContractFunction, height: int, count: int) -> str:
        tx_params: TxParams = {
            'from': '0x0000000000000000000000000000000000000000',  # ROFL will override
            'gas': self.GAS_BASE + self.GAS_PER_CLAIM * count,
            'gasPrice': self.contract_util.w3.eth.gas_price,
            'value': Wei(0)
        }
        tx_data: dict[str, Any] = function.build_transaction(tx_params)
        logger.debug(f"Submitting transaction to ROFL with gas={tx_params.get('gas')}")

        try:
            response = await rofl_util.submit_tx(tx_data)
        except RoflSubmissionError as e:
            raise self._classify(e, height) from e

        match response.get('ok'):
            case bytes() as ok:
                return Web3.to_hex(ok)
            case ok:
                return str(ok)
