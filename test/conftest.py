"""Shared helpers for the Burn Relayer tests."""

CONTRACT = "0x6c5ba91642f10282b576d91922ae6448c9d52f4e"
BURN_ADDRESS = "0x000000000000000000000000000000000000dead"
SENDER = "0x742d35cc6634c0532925a3b844bc9e7595f0beb7"
OTHER = "0x1f54b7af3a462aabed01d5910a3e5911e76d4b51"


def raw_transaction(block_number: int, index: int = 0, to: str = OTHER, value: int = 10_000,
                    contract: str = CONTRACT) -> dict:
    """Indexer-shaped transfer record with a hash unique per (block, index)."""
    return {
        "blockNumber": str(block_number),
        "contractAddress": contract,
        "from": SENDER,
        "to": to,
        "hash": "0x" + f"{block_number:032x}{index:032x}",
        "value": str(value),
    }
