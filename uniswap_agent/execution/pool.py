"""
Pool identity and amount arithmetic for Uniswap V3.

Everything here is pure: no RPC calls.
"""

import math
import re
import time
from decimal import Decimal
from typing import Optional, Tuple, Union

from eth_abi import encode
from eth_utils import keccak, to_bytes, to_checksum_address

from ..data.config import POOL_FACTORY_CONTRACT_ADDRESS, POOL_INIT_CODE_HASH
from ..data.models import FeeAmount, TokenInfo
from ..exceptions import InvalidAmountError

AddressLike = Union[str, TokenInfo]

MAX_UINT256 = 2 ** 256 - 1


def _address(token: AddressLike) -> str:
    return token.address if isinstance(token, TokenInfo) else token


def sort_tokens(token_a: AddressLike, token_b: AddressLike) -> Tuple[str, str]:
    """Return the two addresses as (token0, token1), lower address first."""
    a = to_checksum_address(_address(token_a))
    b = to_checksum_address(_address(token_b))
    if a == b:
        raise ValueError(f"Pool tokens must differ, got {a} twice")
    return (a, b) if int(a, 16) < int(b, 16) else (b, a)


def token_pair_key(token_a: AddressLike, token_b: AddressLike, fee: int) -> str:
    """Order-independent key for a pool: token0:token1:fee"""
    token0, token1 = sort_tokens(token_a, token_b)
    return f"{token0}:{token1}:{int(fee)}"


def compute_pool_address(
    token_a: AddressLike,
    token_b: AddressLike,
    fee: Union[int, FeeAmount],
    factory_address: str = POOL_FACTORY_CONTRACT_ADDRESS,
    init_code_hash: str = POOL_INIT_CODE_HASH,
) -> str:
    """
    CREATE2 address of the pool for (token_a, token_b, fee).

    salt = keccak256(abi.encode(token0, token1, fee)), and the address is the
    last 20 bytes of keccak256(0xff ++ factory ++ salt ++ init_code_hash).
    """
    token0, token1 = sort_tokens(token_a, token_b)
    salt = keccak(encode(["address", "address", "uint24"], [token0, token1, int(fee)]))
    digest = keccak(
        b"\xff" + to_bytes(hexstr=factory_address) + salt + to_bytes(hexstr=init_code_hash)
    )
    return to_checksum_address(digest[12:])


def parse_amount(amount: Union[str, int]) -> int:
    """Parse a non-negative integer amount given in base units."""
    if isinstance(amount, bool):
        raise InvalidAmountError(f"Invalid amount: {amount!r}")
    if isinstance(amount, int):
        value = amount
    else:
        text = str(amount).strip()
        if not re.fullmatch(r"[0-9]+", text):
            raise InvalidAmountError(
                f"Invalid amount {amount!r}: expected a non-negative integer in base units"
            )
        if len(text.lstrip("0")) > len(str(MAX_UINT256)):
            raise InvalidAmountError(f"Invalid amount {amount!r}: exceeds the uint256 maximum")
        value = int(text)
    if value < 0:
        raise InvalidAmountError(f"Invalid amount {amount!r}: must not be negative")
    if value > MAX_UINT256:
        raise InvalidAmountError(f"Invalid amount {amount!r}: exceeds the uint256 maximum")
    return value


def slippage_to_bps(slippage_percent: float) -> int:
    if slippage_percent is None or not 0 <= slippage_percent <= 100:
        raise InvalidAmountError(f"Slippage tolerance must be between 0 and 100 percent, got {slippage_percent}")
    return math.floor(slippage_percent * 100)


def minimum_amount_out(amount_out: int, slippage_percent: float) -> int:
    """amount_out reduced by the slippage tolerance, rounded in favour of the trader."""
    bps = slippage_to_bps(slippage_percent)
    return amount_out - (amount_out * bps) // 10000


def compute_deadline(deadline_minutes: float, now: Optional[float] = None) -> int:
    """Absolute unix timestamp deadline_minutes from now."""
    if deadline_minutes is None or deadline_minutes <= 0:
        raise InvalidAmountError(f"Deadline must be a positive number of minutes, got {deadline_minutes}")
    current = int(time.time() if now is None else now)
    return current + int(deadline_minutes * 60)


def to_readable_amount(raw_amount: int, decimals: int) -> str:
    """Base units to a human readable decimal string (wei -> token)."""
    value = Decimal(int(raw_amount)).scaleb(-decimals)
    text = format(value.normalize(), "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text or "0"

