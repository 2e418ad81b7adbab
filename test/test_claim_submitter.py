"""Unit tests for ClaimSubmitter."""

import base64
from unittest.mock import AsyncMock, MagicMock

import pytest
from hexbytes import HexBytes
from web3 import Web3
from web3.exceptions import ContractCustomError, ContractLogicError
from web3.types import Wei

from burn_relayer.claim_submitter import ClaimSubmitter, DuplicateClaimError, SubmissionError
from burn_relayer.models import BurnClaim
from burn_relayer.utils.contract_utility import ContractUtility
from burn_relayer.utils.rofl_utility import RoflSubmissionError

CLAIMS_CONTRACT = "0x9f983F759d511D0f404582b0bdc1994edb5db856"
TX_HASH = HexBytes("0x" + "12" * 32)
DUPLICATE_SELECTOR = bytes(Web3.keccak(text="TxHashAlreadyExist(bytes32)")[:4])


@pytest.fixture
def mock_contract():
    """Mock claims contract with a mock storeErc20BurnedTransactions function."""
    contract = MagicMock()
    contract.functions.endHeight.return_value.call.return_value = 1234
    function = contract.functions.storeErc20BurnedTransactions.return_value
    function.estimate_gas.return_value = 150_000
    function.transact.return_value = TX_HASH
    function.build_transaction.return_value = {
        "to": CLAIMS_CONTRACT,
        "data": "0xdeadbeef",
        "gas": 460_000,
        "value": 0,
    }
    return contract


@pytest.fixture
def mock_contract_util(mock_contract):
    """Mock ContractUtility whose Web3 hands out ``mock_contract``."""
    util = MagicMock()
    util.w3.eth.contract.return_value = mock_contract
    util.w3.eth.gas_price = Wei(1_000_000_000)
    util.w3.eth.wait_for_transaction_receipt.return_value = {"status": 1, "blockNumber": 77}
    util.get_contract_abi.return_value = []
    return util


@pytest.fixture
def claims():
    return [
        BurnClaim(address=Web3.to_checksum_address("0x742d35cc6634c0532925a3b844bc9e7595f0beb7"),
                  amount=50, tx_hash=HexBytes("0x" + "ab" * 32)),
        BurnClaim(address=Web3.to_checksum_address("0x1f54b7af3a462aabed01d5910a3e5911e76d4b51"),
                  amount=7, tx_hash=HexBytes("0x" + "cd" * 32)),
    ]


def test_claims_abi_is_bundled():
    abi = ContractUtility.get_contract_abi(ClaimSubmitter.CONTRACT_NAME)

    names = {entry["name"] for entry in abi}
    assert {"endHeight", "storeErc20BurnedTransactions", "TxHashAlreadyExist"} <= names


class TestLocalMode:
    """Test suite for direct (private key) submission."""

    @pytest.mark.asyncio
    async def test_query_end_height(self, mock_contract_util):
        submitter = ClaimSubmitter(mock_contract_util, None, CLAIMS_CONTRACT)

        assert await submitter.query_end_height() == 1234

    @pytest.mark.asyncio
    async def test_submit_success(self, mock_contract_util, mock_contract, claims):
        submitter = ClaimSubmitter(mock_contract_util, None, CLAIMS_CONTRACT)

        result = await submitter.submit(1001, claims)

        assert result == Web3.to_hex(TX_HASH)
        mock_contract.functions.storeErc20BurnedTransactions.assert_called_once_with(
            1001, [claim.to_contract_args() for claim in claims]
        )
        function = mock_contract.functions.storeErc20BurnedTransactions.return_value
        function.transact.assert_called_once_with({"gas": 150_000, "gasPrice": Wei(1_000_000_000)})

    @pytest.mark.asyncio
    async def test_revert_reason_duplicate(self, mock_contract_util, mock_contract, claims):
        function = mock_contract.functions.storeErc20BurnedTransactions.return_value
        function.estimate_gas.side_effect = ContractLogicError("execution reverted: TxHashAlreadyExist")
        submitter = ClaimSubmitter(mock_contract_util, None, CLAIMS_CONTRACT)

        with pytest.raises(DuplicateClaimError):
            await submitter.submit(1001, claims)

        function.transact.assert_not_called()

    @pytest.mark.asyncio
    async def test_custom_error_selector_duplicate(self, mock_contract_util, mock_contract, claims):
        selector = Web3.to_hex(Web3.keccak(text="TxHashAlreadyExist(bytes32)")[:4])
        function = mock_contract.functions.storeErc20BurnedTransactions.return_value
        function.estimate_gas.side_effect = ContractCustomError(selector + "ab" * 32, data=selector + "ab" * 32)
        submitter = ClaimSubmitter(mock_contract_util, None, CLAIMS_CONTRACT)

        with pytest.raises(DuplicateClaimError):
            await submitter.submit(1001, claims)

    @pytest.mark.asyncio
    async def test_other_revert_is_submission_error(self, mock_contract_util, mock_contract, claims):
        function = mock_contract.functions.storeErc20BurnedTransactions.return_value
        function.estimate_gas.side_effect = ContractLogicError("execution reverted: Unauthorized")
        submitter = ClaimSubmitter(mock_contract_util, None, CLAIMS_CONTRACT)

        with pytest.raises(SubmissionError) as exc_info:
            await submitter.submit(1001, claims)

        assert not isinstance(exc_info.value, DuplicateClaimError)

    @pytest.mark.asyncio
    async def test_failed_receipt_is_submission_error(self, mock_contract_util, claims):
        mock_contract_util.w3.eth.wait_for_transaction_receipt.return_value = {"status": 0, "blockNumber": 77}
        submitter = ClaimSubmitter(mock_contract_util, None, CLAIMS_CONTRACT)

        with pytest.raises(SubmissionError, match="status=0"):
            await submitter.submit(1001, claims)


class TestRoflMode:
    """Test suite for submission through the ROFL daemon."""

    @pytest.mark.asyncio
    async def test_submit_via_rofl(self, mock_contract_util, mock_contract, claims):
        rofl_util = AsyncMock()
        rofl_util.submit_tx = AsyncMock(return_value={"ok": b"\x01\x02"})
        submitter = ClaimSubmitter(mock_contract_util, rofl_util, CLAIMS_CONTRACT)

        assert await submitter.submit(1001, claims) == "0x0102"

        function = mock_contract.functions.storeErc20BurnedTransactions.return_value
        tx_params = function.build_transaction.call_args.args[0]
        assert tx_params["gas"] == ClaimSubmitter.GAS_BASE + 2 * ClaimSubmitter.GAS_PER_CLAIM
        rofl_util.submit_tx.assert_awaited_once_with(function.build_transaction.return_value)
        function.transact.assert_not_called()

    @pytest.mark.asyncio
    async def test_rofl_duplicate(self, mock_contract_util, claims):
        rofl_util = AsyncMock()
        rofl_util.submit_tx = AsyncMock(side_effect=RoflSubmissionError(
            "ROFL transaction failed: {'module': 'evm', 'message': 'reverted: TxHashAlreadyExist'}"
        ))
        submitter = ClaimSubmitter(mock_contract_util, rofl_util, CLAIMS_CONTRACT)

        with pytest.raises(DuplicateClaimError):
            await submitter.submit(1001, claims)

    @pytest.mark.asyncio
    async def test_rofl_failure(self, mock_contract_util, claims):
        rofl_util = AsyncMock()
        rofl_util.submit_tx = AsyncMock(side_effect=RoflSubmissionError("ROFL transaction failed: out of gas"))
        submitter = ClaimSubmitter(mock_contract_util, rofl_util, CLAIMS_CONTRACT)

        with pytest.raises(SubmissionError) as exc_info:
            await submitter.submit(1001, claims)

        assert not isinstance(exc_info.value, DuplicateClaimError)

    @pytest.mark.asyncio
    async def test_rofl_base64_revert_duplicate(self, mock_contract_util, claims):
        revert = base64.b64encode(DUPLICATE_SELECTOR + b"\xab" * 32).decode()
        rofl_util = AsyncMock()
        rofl_util.submit_tx = AsyncMock(side_effect=RoflSubmissionError(
            f"ROFL transaction failed: {{'module': 'evm', 'code': 8, 'message': 'reverted: {revert}'}}",
            data=f"reverted: {revert}",
        ))
        submitter = ClaimSubmitter(mock_contract_util, rofl_util, CLAIMS_CONTRACT)

        with pytest.raises(DuplicateClaimError):
            await submitter.submit(1001, claims)

    @pytest.mark.asyncio
    async def test_rofl_base64_revert_other_error(self, mock_contract_util, claims):
        revert = base64.b64encode(bytes.fromhex("82b42900")).decode()
        rofl_util = AsyncMock()
        rofl_util.submit_tx = AsyncMock(side_effect=RoflSubmissionError(
            f"ROFL transaction failed: {{'module': 'evm', 'code': 8, 'message': 'reverted: {revert}'}}",
            data=f"reverted: {revert}",
        ))
        submitter = ClaimSubmitter(mock_contract_util, rofl_util, CLAIMS_CONTRACT)

        with pytest.raises(SubmissionError) as exc_info:
            await submitter.submit(1001, claims)

        assert not isinstance(exc_info.value, DuplicateClaimError)


class TestIsDuplicate:
    """Test suite for duplicate revert detection."""

    def test_selector_in_message_only_is_not_duplicate(self, mock_contract_util):
        submitter = ClaimSubmitter(mock_contract_util, None, CLAIMS_CONTRACT)
        error = ContractLogicError(
            f"execution reverted: 0x08c379a0{DUPLICATE_SELECTOR.hex()}",
            data="0x08c379a0" + "00" * 32,
        )

        assert not submitter.is_duplicate(error)

    def test_selector_prefixed_data_is_duplicate(self, mock_contract_util):
        submitter = ClaimSubmitter(mock_contract_util, None, CLAIMS_CONTRACT)
        error = ContractCustomError("execution reverted", data="0x" + DUPLICATE_SELECTOR.hex() + "ab" * 32)

        assert submitter.is_duplicate(error)

    def test_undecodable_data_is_not_duplicate(self, mock_contract_util):
        submitter = ClaimSubmitter(mock_contract_util, None, CLAIMS_CONTRACT)

        assert not submitter.is_duplicate(RoflSubmissionError("ROFL transaction failed", data="reverted: !!"))


def test_contract_utility_read_only_mode():
    util = ContractUtility("sapphire-localnet")

    assert util.account is None
    assert util.network == "http://localhost:8545"
