"""
Agent loop and REPL behaviour with a scripted model
"""

import io
import json
from types import SimpleNamespace
from unittest.mock import AsyncMock, Mock

import pytest
from rich.console import Console

from uniswap_agent.agents.swap_agent import SwapAgent
from uniswap_agent.agents.uniswap_tools import build_tool_manager
from uniswap_agent.cli.main import PROMPT_TEXT, print_invocation, run_repl
from uniswap_agent.data.models import ToolInvocation
from uniswap_agent.exceptions import UnsupportedTokenError


def completion(content=None, tool_calls=None):
    message = SimpleNamespace(content=content, tool_calls=tool_calls)
    return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def tool_call(name, arguments, call_id="call_1"):
    return SimpleNamespace(
        id=call_id,
        type="function",
        function=SimpleNamespace(name=name, arguments=json.dumps(arguments) if isinstance(arguments, dict) else arguments),
    )


QUOTE_CALL = tool_call("uniswap_get_quote", {"tokenIn": "CELO", "tokenOut": "cUSD", "amount": "1000"})


def mock_llm(*responses, repeat=None):
    client = Mock()
    if repeat is not None:
        client.chat.completions.create = AsyncMock(return_value=repeat)
    else:
        client.chat.completions.create = AsyncMock(side_effect=list(responses))
    return client


class TestSwapAgent:
    """Multi-step tool calling"""

    @pytest.fixture
    def tools(self, service):
        return build_tool_manager(service)

    @pytest.mark.asyncio
    async def test_answer_without_tools(self, tools):
        client = mock_llm(completion("Hello"))
        agent = SwapAgent(tools, client)

        result = await agent.run("hi")

        assert result["content"] == "Hello"
        assert result["tool_calls"] == []
        assert result["steps"] == 1

    @pytest.mark.asyncio
    async def test_tool_result_sent_back_to_model(self, tools):
        client = mock_llm(completion(tool_calls=[QUOTE_CALL]), completion("1000 wei CELO buys 2000 wei cUSD"))
        steps = []
        agent = SwapAgent(tools, client, on_step=steps.append)

        result = await agent.run("quote 1000 wei of CELO to cUSD")

        assert result["content"] == "1000 wei CELO buys 2000 wei cUSD"
        assert result["steps"] == 2
        assert len(steps) == 1
        assert steps[0].tool == "uniswap_get_quote"
        assert steps[0].result["amount_out"] == "2000"
        assert result["tool_calls"] == steps

        messages = client.chat.completions.create.call_args.kwargs["messages"]
        assert messages[0]["role"] == "system"
        assert messages[2]["tool_calls"][0]["function"]["name"] == "uniswap_get_quote"
        assert messages[3]["role"] == "tool"
        assert messages[3]["tool_call_id"] == "call_1"
        assert json.loads(messages[3]["content"])["fee"] == 100

    @pytest.mark.asyncio
    async def test_tool_schemas(self, tools):
        client = mock_llm(completion("ok"))
        agent = SwapAgent(tools, client)
        await agent.run("hi")

        schemas = client.chat.completions.create.call_args.kwargs["tools"]
        assert [s["function"]["name"] for s in schemas] == ["uniswap_get_quote", "uniswap_execute_swap"]
        assert all(s["type"] == "function" for s in schemas)

    @pytest.mark.asyncio
    async def test_default_step_cap_is_ten(self, tools):
        client = mock_llm(repeat=completion(tool_calls=[QUOTE_CALL]))
        agent = SwapAgent(tools, client)

        result = await agent.run("loop forever")

        assert client.chat.completions.create.await_count == 10
        assert result["steps"] == 10
        assert len(result["tool_calls"]) == 10

    @pytest.mark.asyncio
    async def test_custom_step_cap(self, tools):
        client = mock_llm(repeat=completion(tool_calls=[QUOTE_CALL]))
        agent = SwapAgent(tools, client, max_steps=3)

        await agent.run("loop forever")

        assert client.chat.completions.create.await_count == 3

    @pytest.mark.asyncio
    async def test_unknown_tool_gets_error_payload(self, tools):
        client = mock_llm(completion(tool_calls=[tool_call("transfer_all", {})]), completion("sorry"))
        agent = SwapAgent(tools, client)

        result = await agent.run("send everything away")

        assert result["tool_calls"][0].error == "Unknown tool: transfer_all"
        messages = client.chat.completions.create.call_args.kwargs["messages"]
        assert json.loads(messages[3]["content"]) == {"error": "Unknown tool: transfer_all"}

    @pytest.mark.asyncio
    async def test_undecodable_arguments_become_empty(self, tools):
        agent = SwapAgent(tools, mock_llm())
        invocation = await agent._dispatch("transfer_all", "{not json")
        assert invocation.arguments == {}

    @pytest.mark.asyncio
    async def test_tool_error_aborts_turn(self, tools):
        bad_call = tool_call("uniswap_get_quote", {"tokenIn": "DOGE", "tokenOut": "cUSD", "amount": "1"})
        client = mock_llm(completion(tool_calls=[bad_call]), completion("unreachable"))
        agent = SwapAgent(tools, client)

        with pytest.raises(UnsupportedTokenError):
            await agent.run("quote DOGE")
        assert client.chat.completions.create.await_count == 1


class TestRepl:
    """Prompt loop"""

    @pytest.fixture
    def out(self):
        return Console(file=io.StringIO(), width=120, color_system=None)

    @staticmethod
    def agent_returning(*results):
        agent = Mock()
        agent.run = AsyncMock(side_effect=list(results))
        return agent

    @staticmethod
    def lines(*values):
        it = iter(values)
        return lambda: next(it)

    @pytest.mark.asyncio
    async def test_exits_only_on_exit(self, out):
        reply = {"content": "hi", "tool_calls": [], "steps": 1}
        agent = self.agent_returning(reply, reply, reply)

        await run_repl(agent, self.lines("Exit", "quit", "exit", "never read"), out)

        assert [c.args[0] for c in agent.run.await_args_list] == ["Exit", "quit"]

    @pytest.mark.asyncio
    async def test_padded_exit_is_a_prompt(self, out):
        reply = {"content": "hi", "tool_calls": [], "steps": 1}
        agent = self.agent_returning(reply, reply, reply)

        await run_repl(agent, self.lines(" exit", "exit ", " exit\t", "exit", "never read"), out)

        assert agent.run.await_count == 3

    @pytest.mark.asyncio
    async def test_survives_errors(self, out):
        agent = self.agent_returning(RuntimeError("boom"), {"content": "fine", "tool_calls": [], "steps": 1})

        await run_repl(agent, self.lines("first", "second", "exit"), out)

        assert agent.run.await_count == 2
        text = out.file.getvalue()
        assert "Error: boom" in text
        assert "fine" in text

    @pytest.mark.asyncio
    async def test_end_of_input_ends_session(self, out):
        agent = self.agent_returning()

        def read_line():
            raise EOFError

        await run_repl(agent, read_line, out)
        assert agent.run.await_count == 0

    @pytest.mark.asyncio
    async def test_blank_lines_are_skipped(self, out):
        agent = self.agent_returning()
        await run_repl(agent, self.lines("", "   ", "exit"), out)
        assert agent.run.await_count == 0

    @pytest.mark.asyncio
    async def test_prints_sections(self, out):
        agent = self.agent_returning({"content": "Swap done", "tool_calls": [], "steps": 1})

        await run_repl(agent, self.lines("swap", "exit"), out)

        text = out.file.getvalue()
        assert text.index("TOOLS CALLED") < text.index("RESPONSE") < text.index("Swap done")

    def test_print_invocation(self, out):
        print_invocation(
            ToolInvocation(tool="uniswap_get_quote", arguments={"amount": "1"}, result={"amount_out": "2"}),
            out,
        )
        text = out.file.getvalue()
        assert "uniswap_get_quote" in text
        assert '"amount_out": "2"' in text

    def test_prompt_text(self):
        assert PROMPT_TEXT == 'Enter your prompt (or "exit" to quit)'
