"""
Exceptions raised by the chain adapter and the Uniswap tool set.
"""

from typing import Optional

from web3.exceptions import ContractCustomError, ContractLogicError


class UniswapAgentError(Exception):
    """Base exception for every error raised by this package."""


class ConfigurationError(UniswapAgentError):
    """Raised when required settings are missing or malformed."""


class UnsupportedTokenError(UniswapAgentError):
    """Raised when a token symbol is not in the supported token table."""

    def __init__(self, symbol: str, message: Optional[str] = None):
        self.symbol = symbol
        super().__init__(message or f"Unsupported token symbol: {symbol}")


class InvalidAmountError(UniswapAgentError):
    """Raised when an amount or slippage value cannot be used."""


class UnsupportedSwapTypeError(UniswapAgentError):
    """Raised when a quote is requested for a trade type that is not wired."""


class PoolNotFoundError(UniswapAgentError):
    """Raised when the pool contract cannot be read."""


class PoolUninitializedError(UniswapAgentError):
    """Raised when the pool exists but has no price set."""


class QuoteFailedError(UniswapAgentError):
    """Raised when the quoter contract reverts."""


class ContractCallError(UniswapAgentError):
    """Raised when a read-only contract call is rejected by the node."""

    def __init__(self, message: str, address: Optional[str] = None, function_name: Optional[str] = None):
        self.address = address
        self.function_name = function_name
        super().__init__(message)


class TransactionSubmissionError(UniswapAgentError):
    """Raised when a transaction cannot be built, signed or broadcast."""

    def __init__(self, message: str, tx_hash: Optional[str] = None):
        self.tx_hash = tx_hash
        super().__init__(message)


class ReceiptTimeoutError(TransactionSubmissionError):
    """Raised when a transaction is not mined within the configured timeout."""


class SwapExecutionError(UniswapAgentError):
    """Raised when any step of a swap fails."""


class NoLiquidityError(SwapExecutionError):
    """Raised when the quoted output amount is zero."""


class NoPoolError(SwapExecutionError):
    """Raised when the factory has no pool at any tried fee tier."""


def _revert_reason(error: BaseException) -> Optional[str]:
    """Walk the exception chain looking for a contract revert."""
    seen = set()
    current: Optional[BaseException] = error
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        if isinstance(current, (ContractLogicError, ContractCustomError)):
            reason = getattr(current, "message", None)
            if not reason and current.args:
                reason = current.args[0]
            return str(reason or current)
        current = current.__cause__
    return None


def describe_error(error: BaseException, default: str = "Unknown error") -> str:
    """
    Readable one-line message for an error.

    Our own domain errors already carry a message meant for the user. RPC
    level failures are reported with the contract revert reason when the
    node returned one.
    """
    if isinstance(error, UniswapAgentError) and not isinstance(
        error, (ContractCallError, TransactionSubmissionError)
    ):
        return str(error) or default
    reason = _revert_reason(error)
    if reason:
        return f"Contract call reverted: {reason}"
    message = str(error)
    return message or default
