"""Unit tests for transaction decoding."""

import dataclasses

import pytest

from burn_relayer.models import Block, TokenTransaction, TransactionDecodeError
from conftest import CONTRACT, SENDER, raw_transaction


class TestTokenTransaction:
    """Test suite for TokenTransaction.from_api."""

    def test_decodes_valid_record(self):
        raw = raw_transaction(1001, value=123456789012345678901234567890)

        tx = TokenTransaction.from_api(raw)

        assert tx.block_number == 1001
        assert tx.contract_address == CONTRACT
        assert tx.from_address == SENDER
        assert tx.value == 123456789012345678901234567890
        assert tx.hash == raw["hash"]

    def test_normalises_addresses_to_lower_case(self):
        raw = raw_transaction(5)
        raw["to"] = "0x000000000000000000000000000000000000DEAD"

        tx = TokenTransaction.from_api(raw)

        assert tx.to_address == "0x000000000000000000000000000000000000dead"

    def test_is_immutable(self):
        tx = TokenTransaction.from_api(raw_transaction(5))

        with pytest.raises(dataclasses.FrozenInstanceError):
            tx.value = 0

    @pytest.mark.parametrize("field,value", [
        ("blockNumber", "-1"),
        ("blockNumber", "0x10"),
        ("blockNumber", "1.5"),
        ("blockNumber", ""),
        ("blockNumber", 1001),
        ("value", "1e18"),
        ("value", " 100"),
        ("value", None),
        ("from", "0x1234"),
        ("to", "742d35cc6634c0532925a3b844bc9e7595f0beb7"),
        ("contractAddress", "0xZZ5ba91642f10282b576d91922ae6448c9d52f4e"),
        ("hash", "0xabc"),
    ])
    def test_rejects_malformed_fields(self, field, value):
        raw = raw_transaction(1001)
        raw[field] = value

        with pytest.raises(TransactionDecodeError):
            TokenTransaction.from_api(raw)

    def test_rejects_missing_field(self):
        raw = raw_transaction(1001)
        del raw["hash"]

        with pytest.raises(TransactionDecodeError):
            TokenTransaction.from_api(raw)

    def test_rejects_non_object(self):
        with pytest.raises(TransactionDecodeError):
            TokenTransaction.from_api(["1001"])


def test_block_length_and_str():
    txs = tuple(TokenTransaction.from_api(raw_transaction(7, index=i)) for i in range(3))
    block = Block(number=7, transactions=txs)

    assert len(block) == 3
    assert str(block) == "Block(number=7, transactions=3)"
