from enum import Enum, IntEnum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class FeeAmount(IntEnum):
    """Uniswap V3 fee tiers, in hundredths of a basis point"""
    LOWEST = 100
    LOW = 500
    MEDIUM = 3000
    HIGH = 10000


class SwapType(str, Enum):
    EXACT_INPUT = "EXACT_INPUT"
    EXACT_OUTPUT = "EXACT_OUTPUT"


class Routing(str, Enum):
    CLASSIC = "CLASSIC"


class TxStatus(str, Enum):
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"


class TokenInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    chain_id: int
    symbol: str
    name: str
    address: str
    decimals: int


class PoolConstants(BaseModel):
    token0: str
    token1: str
    fee: int


class RouteHop(BaseModel):
    token_in: str
    token_out: str
    fee: int


class Quote(BaseModel):
    chain_id: int
    token_in: str
    token_out: str
    amount_in: str
    amount_out: str
    amount_in_readable: Optional[str] = None
    amount_out_readable: Optional[str] = None
    fee: int
    price_impact: float = 0
    pool_address: str
    has_liquidity: bool = True
    route: List[RouteHop] = Field(default_factory=list)


class SwapTransaction(BaseModel):
    hash: str
    from_address: str
    to_address: Optional[str] = None
    token_in: str
    token_out: str
    amount_in: str
    estimated_amount_out: str
    minimum_amount_out: str
    gas_used: str
    fee: int
    deadline: int
    approval_hash: Optional[str] = None
    explorer_url: Optional[str] = None


class SwapResult(BaseModel):
    transaction: SwapTransaction
    status: TxStatus


class ToolInvocation(BaseModel):
    """One tool call made by the model during a turn"""
    tool: str
    arguments: dict = Field(default_factory=dict)
    result: Optional[dict] = None
    error: Optional[str] = None
