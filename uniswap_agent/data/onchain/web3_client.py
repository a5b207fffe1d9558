import asyncio
from typing import Any, List, Optional, Sequence, Tuple

from eth_account import Account
from eth_account.signers.local import LocalAccount
from loguru import logger
from web3 import Web3
from web3.middleware import ExtraDataToPOAMiddleware

from ..config import Settings
from ...exceptions import ContractCallError, TransactionSubmissionError, describe_error
from ...execution.confirmation_manager import ConfirmationManager

ContractCall = Tuple[str, list, str, Sequence[Any]]


def make_w3(url: str, timeout: int = 30) -> Web3:
    w3 = Web3(Web3.HTTPProvider(url, request_kwargs={"timeout": timeout}))
    # Celo headers carry extra data that web3 rejects without this
    w3.middleware_onion.inject(ExtraDataToPOAMiddleware, layer=0)
    return w3


class ChainClient:
    """
    Read and write access to one chain.

    Reads go through the public RPC endpoint, transactions are signed
    locally with the configured key and broadcast through the provider
    endpoint. Nothing is retried: an RPC failure is raised to the caller.
    """

    def __init__(
        self,
        read_w3: Web3,
        write_w3: Web3,
        account: LocalAccount,
        chain_id: int,
        gas_price_multiplier: float = 1.1,
        receipt_timeout: Optional[float] = 300.0,
    ):
        self.read_w3 = read_w3
        self.write_w3 = write_w3
        self.account = account
        self._chain_id = chain_id
        self.gas_price_multiplier = gas_price_multiplier
        self.confirmations = ConfirmationManager(write_w3, timeout=receipt_timeout)

    @classmethod
    def from_settings(cls, settings: Settings) -> "ChainClient":
        account = Account.from_key(settings.wallet_private_key)
        client = cls(
            read_w3=make_w3(settings.public_rpc_url),
            write_w3=make_w3(settings.rpc_provider_url),
            account=account,
            chain_id=settings.chain_id,
            gas_price_multiplier=settings.gas_price_multiplier,
            receipt_timeout=settings.receipt_timeout,
        )
        logger.info(f"Chain client ready for chain {settings.chain_id}, wallet {account.address}")
        return client

    @property
    def address(self) -> str:
        return self.account.address

    @property
    def chain_id(self) -> int:
        return self._chain_id

    def check_connection(self) -> int:
        """Verify the provider is reachable and on the expected chain."""
        try:
            actual = self.write_w3.eth.chain_id
        except Exception as e:
            raise ContractCallError(f"Cannot reach RPC provider: {describe_error(e)}") from e
        if actual != self._chain_id:
            raise ContractCallError(f"Chain ID mismatch: expected {self._chain_id}, got {actual}")
        return actual

    def _contract(self, w3: Web3, address: str, abi: list):
        return w3.eth.contract(address=Web3.to_checksum_address(address), abi=abi)

    def read(self, address: str, abi: list, function_name: str, args: Sequence[Any] = ()) -> Any:
        """Call a view/pure (or simulated) contract function."""
        try:
            contract = self._contract(self.read_w3, address, abi)
            return getattr(contract.functions, function_name)(*args).call()
        except Exception as e:
            raise ContractCallError(
                f"Call to {function_name} on {address} failed: {describe_error(e)}",
                address=address,
                function_name=function_name,
            ) from e

    async def read_many(self, calls: Sequence[ContractCall]) -> List[Any]:
        """Issue several reads concurrently and return their results in order."""
        return list(await asyncio.gather(*(asyncio.to_thread(self.read, *call) for call in calls)))

    def encode(self, address: str, abi: list, function_name: str, args: Sequence[Any] = ()) -> bytes:
        """ABI-encode a call without sending it (used for router multicalls)."""
        contract = self._contract(self.write_w3, address, abi)
        return Web3.to_bytes(hexstr=contract.encode_abi(function_name, args=list(args)))

    def send(
        self, address: str, abi: list, function_name: str, args: Sequence[Any] = (), value: int = 0
    ) -> str:
        """Build, sign and broadcast a transaction. Returns the 0x-prefixed hash."""
        try:
            w3 = self.write_w3
            contract = self._contract(w3, address, abi)
            txn = getattr(contract.functions, function_name)(*args).build_transaction({
                "from": self.address,
                "value": value,
                "chainId": self._chain_id,
                "gasPrice": int(w3.eth.gas_price * self.gas_price_multiplier),
                "nonce": w3.eth.get_transaction_count(self.address, "pending"),
            })
            signed = self.account.sign_transaction(txn)
            tx_hash = Web3.to_hex(w3.eth.send_raw_transaction(signed.raw_transaction))
        except Exception as e:
            raise TransactionSubmissionError(
                f"Failed to submit {function_name} to {address}: {describe_error(e)}"
            ) from e
        logger.info(f"📤 Transaction sent: {function_name} -> {address} ({tx_hash})")
        return tx_hash

    async def wait_for_receipt(self, tx_hash: str) -> Any:
        return await self.confirmations.wait_for_receipt(tx_hash)
