"""
Shared data models for the Burn Relayer.

This module contains the immutable records passed between the indexer client,
the block reader and the claim submitter.
"""

import re
from dataclasses import dataclass
from typing import Any

from hexbytes import HexBytes

_ADDRESS_PATTERN = re.compile(r"^0x[0-9a-fA-F]{40}$")
_TX_HASH_PATTERN = re.compile(r"^0x[0-9a-fA-F]{64}$")
_INTEGER_LITERAL_PATTERN = re.compile(r"^\d+$")


class TransactionDecodeError(ValueError):
    """Raised when an indexer transaction record fails validation."""


def _require_str(raw: dict[str, Any], key: str) -> str:
    value = raw.get(key)
    if not isinstance(value, str):
        raise TransactionDecodeError(f"Field {key!r} must be a string, got {type(value).__name__}")
    return value


def _decode_integer(raw: dict[str, Any], key: str) -> int:
    value = _require_str(raw, key)
    if not _INTEGER_LITERAL_PATTERN.fullmatch(value):
        raise TransactionDecodeError(f"Field {key!r} is not a non-negative integer: {value!r}")
    return int(value)


def _decode_hex(raw: dict[str, Any], key: str, pattern: re.Pattern[str]) -> str:
    value = _require_str(raw, key)
    if not pattern.fullmatch(value):
        raise TransactionDecodeError(f"Field {key!r} is malformed: {value!r}")
    return value.lower()


@dataclass(frozen=True, slots=True)
class TokenTransaction:
    """An ERC-20 transfer as reported by the indexer.

    Attributes:
        block_number: Block in which the transfer was mined
        contract_address: Token contract address (lower case)
        from_address: Sender address (lower case)
        to_address: Recipient address (lower case)
        hash: Transaction hash (lower case, 0x prefixed)
        value: Transferred amount in the token's smallest unit
    """
    block_number: int
    contract_address: str
    from_address: str
    to_address: str
    hash: str
    value: int

    @classmethod
    def from_api(cls, raw: Any) -> "TokenTransaction":
        """
        Decode one entry of a ``tokentx`` result array.

        Raises:
            TransactionDecodeError: If any field is missing or malformed
        """
        if not isinstance(raw, dict):
            raise TransactionDecodeError(f"Transaction record must be an object, got {type(raw).__name__}")

        return cls(
            block_number=_decode_integer(raw, "blockNumber"),
            contract_address=_decode_hex(raw, "contractAddress", _ADDRESS_PATTERN),
            from_address=_decode_hex(raw, "from", _ADDRESS_PATTERN),
            to_address=_decode_hex(raw, "to", _ADDRESS_PATTERN),
            hash=_decode_hex(raw, "hash", _TX_HASH_PATTERN),
            value=_decode_integer(raw, "value"),
        )


@dataclass(frozen=True, slots=True)
class Block:
    """All indexed transfers of one source block, in indexer order."""
    number: int
    transactions: tuple[TokenTransaction, ...]

    def __len__(self) -> int:
        return len(self.transactions)

    def __str__(self) -> str:
        return f"Block(number={self.number}, transactions={len(self.transactions)})"


@dataclass(frozen=True, slots=True)
class BurnClaim:
    """A burn ready to be recorded on the destination ledger.

    Attributes:
        address: Checksummed source address that burned the tokens
        amount: Burned amount in destination precision
        tx_hash: Source transaction hash as 32 bytes
    """
    address: str
    amount: int
    tx_hash: HexBytes

    def to_contract_args(self) -> tuple[bytes, str, int]:
        """Argument tuple matching the claims contract's struct layout."""
        return (bytes(self.tx_hash), self.address, self.amount)
