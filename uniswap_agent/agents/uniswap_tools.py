"""
LLM tools over the Uniswap service: quoting and swapping on Celo.
"""

from typing import Any, Dict, Optional

from loguru import logger
from pydantic import Field
from spoon_ai.tools import ToolManager
from spoon_ai.tools.base import BaseTool

from ..data.models import Routing, SwapType
from ..data.registry import registry
from ..execution.uniswap_service import UniswapService

SUPPORTED_SYMBOLS = ", ".join(registry.symbols())


class GetQuoteTool(BaseTool):
    """Price an exact-input swap against the lowest fee tier pool"""

    name: str = "uniswap_get_quote"
    description: str = f"Get the quote for a swap using Uniswap V3. Supported token symbols: {SUPPORTED_SYMBOLS}."
    parameters: dict = {
        "type": "object",
        "properties": {
            "tokenIn": {
                "type": "string",
                "description": "Symbol of the token to sell"
            },
            "tokenOut": {
                "type": "string",
                "description": "Symbol of the token to buy"
            },
            "amount": {
                "type": "string",
                "description": "Amount of tokenIn in base units (wei), as an integer string"
            },
            "tokenOutChainId": {
                "type": "integer",
                "description": "Chain ID of tokenOut, defaults to the current chain"
            },
            "type": {
                "type": "string",
                "description": "Trade type",
                "enum": [t.value for t in SwapType],
                "default": SwapType.EXACT_INPUT.value
            },
            "routingPreference": {
                "type": "string",
                "description": "Routing preference",
                "enum": [r.value for r in Routing],
                "default": Routing.CLASSIC.value
            }
        },
        "required": ["tokenIn", "tokenOut", "amount"]
    }

    service: Any = Field(default=None, exclude=True)

    async def execute(
        self,
        tokenIn: str,
        tokenOut: str,
        amount: str,
        tokenOutChainId: Optional[int] = None,
        type: str = SwapType.EXACT_INPUT.value,
        routingPreference: str = Routing.CLASSIC.value,
    ) -> Dict[str, Any]:
        logger.info(f"🔧 {self.name}: {amount} {tokenIn} -> {tokenOut}")
        quote = await self.service.get_quote(
            tokenIn,
            tokenOut,
            amount,
            swap_type=type,
            routing_preference=routingPreference,
            token_out_chain_id=tokenOutChainId,
        )
        return quote.model_dump(mode="json")


class ExecuteSwapTool(BaseTool):
    """Execute an exact-input swap through SwapRouter02"""

    name: str = "uniswap_execute_swap"
    description: str = f"Execute a token swap using Uniswap V3. Supported token symbols: {SUPPORTED_SYMBOLS}."
    parameters: dict = {
        "type": "object",
        "properties": {
            "tokenIn": {
                "type": "string",
                "description": "Symbol of the token to sell"
            },
            "tokenOut": {
                "type": "string",
                "description": "Symbol of the token to buy"
            },
            "amount": {
                "type": "string",
                "description": "Amount of tokenIn in base units (wei), as an integer string"
            },
            "slippageTolerance": {
                "type": "number",
                "description": "Maximum acceptable slippage in percent",
                "default": 1
            },
            "deadline": {
                "type": "number",
                "description": "Minutes until the swap expires",
                "default": 20
            }
        },
        "required": ["tokenIn", "tokenOut", "amount"]
    }

    service: Any = Field(default=None, exclude=True)

    async def execute(
        self,
        tokenIn: str,
        tokenOut: str,
        amount: str,
        slippageTolerance: Optional[float] = None,
        deadline: Optional[float] = None,
    ) -> Dict[str, Any]:
        logger.info(f"🔧 {self.name}: {amount} {tokenIn} -> {tokenOut}")
        result = await self.service.execute_swap(
            tokenIn,
            tokenOut,
            amount,
            slippage_tolerance=slippageTolerance,
            deadline=deadline,
        )
        return result.model_dump(mode="json")


def build_tool_manager(service: UniswapService) -> ToolManager:
    return ToolManager([
        GetQuoteTool(service=service),
        ExecuteSwapTool(service=service),
    ])
