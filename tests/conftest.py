"""
Shared fixtures: an in-memory chain client and a healthy CELO/cUSD pool
"""

from typing import Any, Dict, List

import pytest

from uniswap_agent.data.config import CHAIN_ID, SWAP_ROUTER_ADDRESS, ZERO_ADDRESS
from uniswap_agent.data.registry import CELO_NATIVE, CUSD
from uniswap_agent.exceptions import ContractCallError
from uniswap_agent.execution.uniswap_service import UniswapService

WALLET = "0x90F8bf6A479f320ead074411a4B0e7944Ea8c9C1"
EXISTING_POOL = "0x1111111111111111111111111111111111111111"
SQRT_PRICE_ONE = 2 ** 96


class FakeChainClient:
    """Answers contract reads from a table of handlers keyed by function name.

    A handler is a plain value, an exception instance to raise, or a
    callable taking (address, args).
    """

    def __init__(self, handlers: Dict[str, Any]):
        self.handlers = handlers
        self.address = WALLET
        self.chain_id = CHAIN_ID
        self.reads: List[tuple] = []
        self.encoded: List[tuple] = []
        self.sent: List[tuple] = []
        self.waited: List[str] = []
        self.receipt_status: Dict[str, int] = {}

    def read(self, address, abi, function_name, args=()):
        self.reads.append((address, function_name, list(args)))
        handler = self.handlers.get(function_name)
        if handler is None:
            raise ContractCallError(f"no handler for {function_name}", address=address, function_name=function_name)
        if isinstance(handler, Exception):
            raise handler
        if callable(handler):
            return handler(address, list(args))
        return handler

    async def read_many(self, calls):
        return [self.read(*call) for call in calls]

    def reads_of(self, function_name):
        return [r for r in self.reads if r[1] == function_name]

    def encode(self, address, abi, function_name, args=()):
        self.encoded.append((function_name, list(args)))
        return b"encoded:" + function_name.encode()

    def send(self, address, abi, function_name, args=(), value=0):
        self.sent.append((address, function_name, list(args)))
        return "0x" + f"{len(self.sent):064x}"

    async def wait_for_receipt(self, tx_hash):
        self.waited.append(tx_hash)
        return {
            "transactionHash": tx_hash,
            "status": self.receipt_status.get(tx_hash, 1),
            "blockNumber": 100,
            "gasUsed": 120000,
            "from": self.address,
            "to": SWAP_ROUTER_ADDRESS,
        }


def healthy_pool_handlers(**overrides) -> Dict[str, Any]:
    """CELO/cUSD pool at the 0.01% tier quoting 2 cUSD per CELO"""
    handlers = {
        "token0": CELO_NATIVE.address,
        "token1": CUSD.address,
        "fee": 100,
        "slot0": [SQRT_PRICE_ONE, 0, 0, 1, 1, 0, True],
        "liquidity": 10 ** 22,
        "quoteExactInputSingle": lambda address, args: [args[0]["amountIn"] * 2, SQRT_PRICE_ONE, 1, 80000],
        "allowance": 0,
        "getPool": lambda address, args: EXISTING_POOL,
    }
    handlers.update(overrides)
    return handlers


def pool_only_at(fee):
    return lambda address, args: EXISTING_POOL if args[2] == fee else ZERO_ADDRESS


@pytest.fixture
def chain():
    return FakeChainClient(healthy_pool_handlers())


@pytest.fixture
def service(chain):
    return UniswapService(chain)
