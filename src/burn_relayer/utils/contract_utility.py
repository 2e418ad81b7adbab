import json
from pathlib import Path

from eth_account import Account
from eth_account.signers.local import LocalAccount
from sapphirepy import sapphire
from web3 import Web3
from web3.middleware import SignAndSendRawMiddlewareBuilder


class ContractUtility:
    """
    Utility for destination chain connections and ABI loading.

    Can be used in two modes:
    1. Signing mode: initialize with a secret to send transactions directly
    2. Read-only mode: no secret; transactions are signed elsewhere (ROFL)
    """

    NETWORKS = {
        "sapphire": "https://sapphire.oasis.io",
        "sapphire-testnet": "https://testnet.sapphire.oasis.io",
        "sapphire-localnet": "http://localhost:8545",
    }

    def __init__(self, network_name: str, secret: str = ""):
        """
        Initialize the ContractUtility.

        Args:
            network_name: Name of the network (or an HTTP RPC URL) to connect to
            secret: Private key for transactions (optional for read-only mode)
        """
        self.network = self.NETWORKS.get(network_name, network_name)
        self.account: LocalAccount | None = Account.from_key(secret) if secret else None
        self.w3 = self.setup_web3_middleware()

    def setup_web3_middleware(self) -> Web3:
        w3 = Web3(Web3.HTTPProvider(self.network))
        if self.account is not None:
            w3.middleware_onion.add(SignAndSendRawMiddlewareBuilder.build(self.account))
            w3 = sapphire.wrap(w3, self.account)
            w3.eth.default_account = self.account.address
        return w3

    @staticmethod
    def get_contract_abi(contract_name: str) -> list:
        """Fetches ABI of the given contract from the contracts folder"""
        contract_path = (Path(__file__).parent.parent / "contracts" / f"{contract_name}.json").resolve()

        with contract_path.open() as file:
            contract_data = json.load(file)

        return contract_data["abi"]
