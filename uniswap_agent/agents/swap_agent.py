"""
Swap Agent - drives the model through quoting and swapping on Celo
"""

import json
from typing import Any, Callable, Dict, List, Optional

from loguru import logger
from openai import AsyncOpenAI
from spoon_ai.tools import ToolManager

from ..data.config import DEFAULT_MAX_STEPS, Settings
from ..data.models import ToolInvocation

DEFAULT_SYSTEM_PROMPT = """
You are a trading assistant for Uniswap V3 on the Celo blockchain.
You can get swap quotes and execute swaps between the supported tokens
(CELO, cUSD, cEUR). Amounts are always integer strings in base units
(18 decimals, so 1 CELO is "1000000000000000000").

Quote before swapping when the user asks about prices. Only execute a swap
when the user clearly asks for one. Report transaction hashes and amounts
exactly as returned by the tools.
""".strip()

StepCallback = Callable[[ToolInvocation], None]


class SwapAgent:
    """
    Tool-calling loop over the OpenAI chat completions API.

    One call to `run` is one user turn. Every model call counts as a step;
    the turn ends when the model answers without tool calls or when
    `max_steps` is reached.
    """

    def __init__(
        self,
        tools: ToolManager,
        client: AsyncOpenAI,
        model: str = "gpt-4o-mini",
        max_steps: int = DEFAULT_MAX_STEPS,
        system_prompt: Optional[str] = None,
        on_step: Optional[StepCallback] = None,
        temperature: float = 0.1,
    ):
        self.tools = tools
        self.client = client
        self.model = model
        self.max_steps = max_steps
        self.system_prompt = system_prompt or DEFAULT_SYSTEM_PROMPT
        self.on_step = on_step
        self.temperature = temperature
        self._tool_map = {t.name: t for t in tools.tools}

    @classmethod
    def from_settings(cls, settings: Settings, tools: ToolManager, **kwargs) -> "SwapAgent":
        settings.require_llm()
        client = AsyncOpenAI(api_key=settings.openai_api_key, base_url=settings.openai_base_url)
        return cls(tools, client, model=settings.openai_model, max_steps=settings.max_steps, **kwargs)

    def tool_schemas(self) -> List[Dict[str, Any]]:
        return [{
            "type": "function",
            "function": {
                "name": t.name,
                "description": t.description,
                "parameters": t.parameters
            }
        } for t in self.tools.tools]

    async def run(self, prompt: str) -> Dict[str, Any]:
        """Run one turn. Returns the final text, the tool invocations and the step count."""
        messages: List[Dict[str, Any]] = [
            {"role": "system", "content": self.system_prompt},
            {"role": "user", "content": prompt},
        ]
        schemas = self.tool_schemas()
        invocations: List[ToolInvocation] = []
        content = ""

        for step in range(1, self.max_steps + 1):
            logger.debug(f"Agent step {step}/{self.max_steps}")
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=messages,
                tools=schemas,
                tool_choice="auto",
                temperature=self.temperature,
            )
            msg = response.choices[0].message
            content = msg.content or ""
            tool_calls = msg.tool_calls or []
            if not tool_calls:
                return {"content": content, "tool_calls": invocations, "steps": step}

            messages.append({
                "role": "assistant",
                "content": content or None,
                "tool_calls": [{
                    "id": tc.id,
                    "type": "function",
                    "function": {"name": tc.function.name, "arguments": tc.function.arguments or "{}"}
                } for tc in tool_calls],
            })
            for tc in tool_calls:
                invocation = await self._dispatch(tc.function.name, tc.function.arguments)
                invocations.append(invocation)
                if self.on_step:
                    self.on_step(invocation)
                payload = invocation.result if invocation.error is None else {"error": invocation.error}
                messages.append({"role": "tool", "tool_call_id": tc.id, "content": json.dumps(payload)})

        logger.warning(f"Agent stopped after reaching the step limit ({self.max_steps})")
        return {"content": content, "tool_calls": invocations, "steps": self.max_steps}

    async def _dispatch(self, name: str, raw_arguments: Optional[str]) -> ToolInvocation:
        try:
            arguments = json.loads(raw_arguments or "{}")
        except json.JSONDecodeError:
            logger.warning(f"Undecodable arguments for {name}: {raw_arguments!r}")
            arguments = {}
        if not isinstance(arguments, dict):
            arguments = {}

        tool = self._tool_map.get(name)
        if tool is None:
            logger.warning(f"Model requested unknown tool {name}")
            return ToolInvocation(tool=name, arguments=arguments, error=f"Unknown tool: {name}")

        logger.info(f"Calling tool {name} with {arguments}")
        result = await tool.execute(**arguments)
        return ToolInvocation(tool=name, arguments=arguments, result=result)
