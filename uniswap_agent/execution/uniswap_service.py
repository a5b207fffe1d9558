from typing import Any, Dict, Optional, Tuple, Union

from loguru import logger

from ..data.config import (
    DEFAULT_DEADLINE_MINUTES,
    DEFAULT_SLIPPAGE_TOLERANCE,
    EXPLORER_TX_URL,
    POOL_FACTORY_CONTRACT_ADDRESS,
    QUOTER_CONTRACT_ADDRESS,
    SWAP_ROUTER_ADDRESS,
    ZERO_ADDRESS,
)
from ..data.models import (
    FeeAmount,
    PoolConstants,
    Quote,
    RouteHop,
    Routing,
    SwapResult,
    SwapTransaction,
    SwapType,
    TokenInfo,
    TxStatus,
)
from ..data.onchain.abis import ERC20_ABI, FACTORY_ABI, POOL_ABI, QUOTER_ABI, SWAP_ROUTER_ABI
from ..data.onchain.web3_client import ChainClient
from ..data.registry import TokenRegistry, registry
from ..exceptions import (
    ContractCallError,
    NoLiquidityError,
    NoPoolError,
    PoolNotFoundError,
    PoolUninitializedError,
    QuoteFailedError,
    SwapExecutionError,
    TransactionSubmissionError,
    UnsupportedSwapTypeError,
    UnsupportedTokenError,
    describe_error,
)
from .pool import (
    compute_deadline,
    compute_pool_address,
    minimum_amount_out,
    parse_amount,
    slippage_to_bps,
    to_readable_amount,
    token_pair_key,
)

# getPool is tried at these tiers, in order
POOL_FEE_FALLBACK = (FeeAmount.LOWEST, FeeAmount.MEDIUM)


def _hex(value: Any) -> str:
    if isinstance(value, (bytes, bytearray)):
        return "0x" + bytes(value).hex()
    return str(value)


class UniswapService:
    """
    Quotes and swaps against the Uniswap V3 deployment on Celo.

    Quotes are always priced against the lowest fee tier pool. Swaps re-quote
    first, approve the router when the allowance is short, then route through
    SwapRouter02 with the deadline enforced by its multicall wrapper.
    """

    def __init__(
        self,
        chain: ChainClient,
        tokens: TokenRegistry = registry,
        factory_address: str = POOL_FACTORY_CONTRACT_ADDRESS,
        quoter_address: str = QUOTER_CONTRACT_ADDRESS,
        router_address: str = SWAP_ROUTER_ADDRESS,
    ):
        self.chain = chain
        self.tokens = tokens
        self.factory_address = factory_address
        self.quoter_address = quoter_address
        self.router_address = router_address
        # CREATE2 addresses never change, keyed by token0:token1:fee
        self._pool_addresses: Dict[str, str] = {}

    def _resolve_pair(self, token_in: str, token_out: str) -> Tuple[TokenInfo, TokenInfo]:
        t_in = self.tokens.resolve(token_in)
        t_out = self.tokens.resolve(token_out)
        if t_in.address == t_out.address:
            raise UnsupportedTokenError(token_out, f"Cannot swap {t_in.symbol} for itself")
        return t_in, t_out

    def get_pool_address(self, token_a: TokenInfo, token_b: TokenInfo, fee: int = FeeAmount.LOWEST) -> str:
        key = token_pair_key(token_a, token_b, fee)
        if key not in self._pool_addresses:
            self._pool_addresses[key] = compute_pool_address(
                token_a, token_b, fee, factory_address=self.factory_address
            )
        return self._pool_addresses[key]

    async def get_pool_constants(self, pool_address: str) -> PoolConstants:
        token0, token1, fee = await self.chain.read_many([
            (pool_address, POOL_ABI, "token0", ()),
            (pool_address, POOL_ABI, "token1", ()),
            (pool_address, POOL_ABI, "fee", ()),
        ])
        return PoolConstants(token0=token0, token1=token1, fee=int(fee))

    async def get_quote(
        self,
        token_in: str,
        token_out: str,
        amount: Union[str, int],
        swap_type: Union[str, SwapType] = SwapType.EXACT_INPUT,
        routing_preference: Union[str, Routing] = Routing.CLASSIC,
        token_out_chain_id: Optional[int] = None,
    ) -> Quote:
        """
        Price an exact-input swap of `amount` base units of token_in.

        Validation happens before any RPC call. Pool reads and the quoter
        call raise typed errors that name the likely cause.
        """
        t_in, t_out = self._resolve_pair(token_in, token_out)
        amount_in = parse_amount(amount)

        try:
            swap_type = SwapType(swap_type)
        except ValueError:
            raise UnsupportedSwapTypeError(f"Unknown swap type: {swap_type}")
        if swap_type != SwapType.EXACT_INPUT:
            raise UnsupportedSwapTypeError(f"Only {SwapType.EXACT_INPUT.value} quotes are supported")
        try:
            Routing(routing_preference)
        except ValueError:
            raise UnsupportedSwapTypeError(f"Unknown routing preference: {routing_preference}")
        if token_out_chain_id is not None and int(token_out_chain_id) != self.chain.chain_id:
            raise UnsupportedTokenError(
                token_out, f"Cross-chain quotes are not supported (chain {token_out_chain_id})"
            )

        pool_address = self.get_pool_address(t_in, t_out)
        logger.info(f"Quote request: {amount_in} {t_in.symbol} -> {t_out.symbol} via pool {pool_address}")

        try:
            constants = await self.get_pool_constants(pool_address)
        except ContractCallError as e:
            raise PoolNotFoundError(
                f"Failed to read pool {pool_address} for {t_in.symbol}/{t_out.symbol}. "
                f"The pool may not exist: {describe_error(e)}"
            ) from e
        logger.debug(f"Pool constants: {constants.model_dump()}")

        try:
            slot0 = self.chain.read(pool_address, POOL_ABI, "slot0")
        except ContractCallError as e:
            raise PoolUninitializedError(
                f"Failed to read slot0 of pool {pool_address}. The pool may not be initialized: "
                f"{describe_error(e)}"
            ) from e
        if int(slot0[0]) == 0:
            raise PoolUninitializedError(f"Pool {pool_address} is not initialized (sqrtPriceX96 is 0)")

        try:
            liquidity = int(self.chain.read(pool_address, POOL_ABI, "liquidity"))
        except ContractCallError as e:
            raise PoolNotFoundError(
                f"Failed to read liquidity of pool {pool_address}. The pool may not exist: "
                f"{describe_error(e)}"
            ) from e
        if liquidity == 0:
            logger.warning(f"⚠️ Pool {pool_address} has zero liquidity")

        if amount_in == 0:
            amount_out = 0
            logger.info("Zero input amount, skipping quoter call")
        else:
            params = {
                "tokenIn": t_in.address,
                "tokenOut": t_out.address,
                "amountIn": amount_in,
                "fee": constants.fee,
                "sqrtPriceLimitX96": 0,
            }
            try:
                result = self.chain.read(self.quoter_address, QUOTER_ABI, "quoteExactInputSingle", [params])
            except ContractCallError as e:
                raise QuoteFailedError(
                    f"Quoting {t_in.symbol} -> {t_out.symbol} failed, likely insufficient liquidity: "
                    f"{describe_error(e)}"
                ) from e
            amount_out = int(result[0] if isinstance(result, (list, tuple)) else result)

        logger.info(f"Quote: {amount_in} {t_in.symbol} -> {amount_out} {t_out.symbol} (fee {constants.fee})")
        return Quote(
            chain_id=self.chain.chain_id,
            token_in=token_in,
            token_out=token_out,
            amount_in=str(amount_in),
            amount_out=str(amount_out),
            amount_in_readable=to_readable_amount(amount_in, t_in.decimals),
            amount_out_readable=to_readable_amount(amount_out, t_out.decimals),
            fee=constants.fee,
            price_impact=0,
            pool_address=pool_address,
            has_liquidity=liquidity > 0 and amount_out > 0,
            route=[RouteHop(token_in=t_in.address, token_out=t_out.address, fee=constants.fee)],
        )

    async def ensure_allowance(self, token: TokenInfo, spender: str, amount: int) -> Optional[str]:
        """Approve `spender` for `amount` if the current allowance is short. Returns the approval hash."""
        current = int(self.chain.read(token.address, ERC20_ABI, "allowance", [self.chain.address, spender]))
        if current >= amount:
            logger.debug(f"Allowance for {token.symbol} is sufficient ({current} >= {amount})")
            return None

        logger.info(f"Approving {amount} {token.symbol} for router {spender}")
        tx_hash = self.chain.send(token.address, ERC20_ABI, "approve", [spender, amount])
        receipt = await self.chain.wait_for_receipt(tx_hash)
        if receipt["status"] != 1:
            raise TransactionSubmissionError(f"Approval transaction {tx_hash} failed", tx_hash=tx_hash)
        logger.info(f"✅ Approval confirmed: {tx_hash}")
        return tx_hash

    def find_pool_fee(self, token_in: TokenInfo, token_out: TokenInfo) -> Tuple[FeeAmount, str]:
        """Ask the factory for a pool, falling back from the lowest to the medium tier once."""
        for fee in POOL_FEE_FALLBACK:
            pool = self.chain.read(
                self.factory_address, FACTORY_ABI, "getPool", [token_in.address, token_out.address, int(fee)]
            )
            if pool and str(pool).lower() != ZERO_ADDRESS:
                logger.debug(f"Found pool {pool} at fee tier {int(fee)}")
                return fee, pool
            logger.warning(f"No {token_in.symbol}/{token_out.symbol} pool at fee tier {int(fee)}")
        raise NoPoolError(f"No liquidity pool found for {token_in.symbol}/{token_out.symbol}")

    async def execute_swap(
        self,
        token_in: str,
        token_out: str,
        amount: Union[str, int],
        slippage_tolerance: Optional[float] = None,
        deadline: Optional[float] = None,
    ) -> SwapResult:
        """
        Swap `amount` base units of token_in for token_out and wait for the receipt.

        Unknown symbols and bad amounts are raised as-is. Anything that goes
        wrong after that is raised as SwapExecutionError with the original
        exception chained.
        """
        t_in, t_out = self._resolve_pair(token_in, token_out)
        amount_in = parse_amount(amount)
        slippage = DEFAULT_SLIPPAGE_TOLERANCE if slippage_tolerance is None else float(slippage_tolerance)
        slippage_to_bps(slippage)
        deadline_minutes = DEFAULT_DEADLINE_MINUTES if deadline is None else float(deadline)
        deadline_ts = compute_deadline(deadline_minutes)

        logger.info(
            f"Swap request: {amount_in} {t_in.symbol} -> {t_out.symbol} "
            f"(slippage {slippage}%, deadline {deadline_ts})"
        )
        try:
            # 1. QUOTE
            quote = await self.get_quote(token_in, token_out, amount_in)
            amount_out = int(quote.amount_out)
            min_out = minimum_amount_out(amount_out, slippage)
            if amount_out == 0:
                raise NoLiquidityError(f"No liquidity available for {t_in.symbol} -> {t_out.symbol}")

            # 2. APPROVAL
            approval_hash = await self.ensure_allowance(t_in, self.router_address, amount_in)

            # 3. POOL LOOKUP
            fee, _pool = self.find_pool_fee(t_in, t_out)

            # 4. SWAP
            params = {
                "tokenIn": t_in.address,
                "tokenOut": t_out.address,
                "fee": int(fee),
                "recipient": self.chain.address,
                "amountIn": amount_in,
                "amountOutMinimum": min_out,
                "sqrtPriceLimitX96": 0,
            }
            calldata = self.chain.encode(self.router_address, SWAP_ROUTER_ABI, "exactInputSingle", [params])
            tx_hash = self.chain.send(self.router_address, SWAP_ROUTER_ABI, "multicall", [deadline_ts, [calldata]])
            receipt = await self.chain.wait_for_receipt(tx_hash)
        except SwapExecutionError:
            raise
        except Exception as e:
            message = describe_error(e)
            logger.error(f"❌ Swap {t_in.symbol} -> {t_out.symbol} failed: {message}")
            raise SwapExecutionError(f"Failed to execute swap: {message}") from e

        status = TxStatus.SUCCESS if receipt["status"] == 1 else TxStatus.FAILED
        tx_hash = _hex(receipt.get("transactionHash") or tx_hash)
        log = logger.info if status == TxStatus.SUCCESS else logger.error
        log(f"Swap {tx_hash} finished with status {status.value}")

        return SwapResult(
            transaction=SwapTransaction(
                hash=tx_hash,
                from_address=receipt.get("from") or self.chain.address,
                to_address=receipt.get("to"),
                token_in=token_in,
                token_out=token_out,
                amount_in=str(amount_in),
                estimated_amount_out=str(amount_out),
                minimum_amount_out=str(min_out),
                gas_used=str(receipt.get("gasUsed", 0)),
                fee=int(fee),
                deadline=deadline_ts,
                approval_hash=approval_hash,
                explorer_url=EXPLORER_TX_URL.format(tx_hash),
            ),
            status=status,
        )
