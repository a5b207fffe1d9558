import asyncio
import time
from typing import Any, Dict, Optional

from loguru import logger
from web3 import Web3
from web3.exceptions import TransactionNotFound

from ..exceptions import ReceiptTimeoutError, TransactionSubmissionError


class ConfirmationManager:
    """
    Waits for submitted transactions to be mined.

    Polls the node for the receipt until it shows up. A timeout of 0 (or
    None) waits forever.
    """

    def __init__(self, w3: Web3, timeout: Optional[float] = 300.0, poll_interval: float = 1.0):
        self.w3 = w3
        self.timeout = timeout or None
        self.poll_interval = poll_interval
        self.pending_txs: Dict[str, float] = {}

    async def wait_for_receipt(self, tx_hash: str) -> Any:
        """Poll until the transaction is mined and return its receipt."""
        started = time.monotonic()
        self.pending_txs[tx_hash] = started
        logger.info(f"Waiting for receipt of {tx_hash}")
        try:
            while True:
                try:
                    receipt = self.w3.eth.get_transaction_receipt(tx_hash)
                except TransactionNotFound:
                    receipt = None
                except Exception as e:
                    raise TransactionSubmissionError(
                        f"Failed to fetch receipt for {tx_hash}: {e}", tx_hash=tx_hash
                    ) from e

                if receipt is not None:
                    elapsed = time.monotonic() - started
                    logger.info(
                        f"TX {tx_hash} mined in block {receipt['blockNumber']} "
                        f"after {elapsed:.2f}s (status={receipt['status']})"
                    )
                    return receipt

                if self.timeout is not None and time.monotonic() - started >= self.timeout:
                    raise ReceiptTimeoutError(
                        f"Transaction {tx_hash} was not mined within {self.timeout:.0f}s", tx_hash=tx_hash
                    )
                logger.debug(f"TX {tx_hash} not mined yet")
                await asyncio.sleep(self.poll_interval)
        finally:
            self.pending_txs.pop(tx_hash, None)

    def get_pending_count(self) -> int:
        return len(self.pending_txs)
