"""
Interactive command line for the Uniswap swap agent.
"""

import asyncio
import json
import os
import sys
from pathlib import Path
from typing import Callable, Optional

import click
from loguru import logger
from rich.console import Console
from rich.panel import Panel
from rich.prompt import Prompt

from ..agents.swap_agent import SwapAgent
from ..agents.uniswap_tools import build_tool_manager
from ..data.config import CHAIN_NAME, Settings
from ..data.models import ToolInvocation
from ..data.onchain.web3_client import ChainClient
from ..execution.uniswap_service import UniswapService

console = Console()

PROMPT_TEXT = 'Enter your prompt (or "exit" to quit)'
EXIT_COMMAND = "exit"


def setup_logging(level: str = "INFO", log_dir: str = "logs") -> None:
    logger.remove()
    logger.add(
        sys.stderr,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level>",
        level=level,
        colorize=True
    )
    path = Path(log_dir)
    path.mkdir(parents=True, exist_ok=True)
    logger.add(
        path / "uniswap_agent_{time:YYYY-MM-DD}.log",
        rotation="1 day",
        retention="30 days",
        format="{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {name}:{function}:{line} - {message}",
        level="DEBUG"
    )
    logger.info("Logging system configured")


def print_banner(settings: Settings, wallet: str) -> None:
    banner = Panel.fit(
        f"""[bold cyan]🦄 Uniswap V3 Swap Agent[/bold cyan]
[green]Chain: {CHAIN_NAME} ({settings.chain_id}) • Model: {settings.openai_model}[/green]
[yellow]Wallet: {wallet}[/yellow]

[dim]Ask for quotes or swaps between CELO, cUSD and cEUR[/dim]""",
        border_style="bright_blue"
    )
    console.print(banner)


def print_invocation(invocation: ToolInvocation, out: Optional[Console] = None) -> None:
    out = out or console
    out.print(f"[bold cyan]🔧 {invocation.tool}[/bold cyan] {json.dumps(invocation.arguments)}")
    if invocation.error is not None:
        out.print(invocation.error, style="red", markup=False)
    else:
        out.print_json(data=invocation.result)


async def run_turn(agent: SwapAgent, prompt: str, out: Optional[Console] = None) -> None:
    out = out or console
    out.rule("[bold]TOOLS CALLED[/bold]")
    result = await agent.run(prompt)
    if not result["tool_calls"]:
        out.print("[dim]No tools called[/dim]")
    out.rule("[bold]RESPONSE[/bold]")
    if result["content"]:
        out.print(result["content"], markup=False)
    else:
        out.print("[dim](no response)[/dim]")
    out.rule()


async def run_repl(
    agent: SwapAgent,
    read_line: Optional[Callable[[], str]] = None,
    out: Optional[Console] = None,
) -> None:
    """
    Read prompts until the user types exit.

    A failing turn is reported and the loop keeps going. End of input and
    Ctrl-C also end the session.
    """
    out = out or console
    read_line = read_line or (lambda: Prompt.ask(PROMPT_TEXT, console=out))
    while True:
        try:
            line = read_line()
        except (EOFError, KeyboardInterrupt):
            out.print("\n[yellow]Goodbye[/yellow]")
            break
        if line is None:
            break
        if line == EXIT_COMMAND:
            out.print("[yellow]Goodbye[/yellow]")
            break
        prompt = line.strip()
        if not prompt:
            continue
        try:
            await run_turn(agent, prompt, out)
        except Exception as e:
            logger.error(f"Turn failed: {type(e).__name__}: {e}")
            out.print(f"Error: {e}", style="red", markup=False)


@click.command()
@click.option('--debug', is_flag=True, help='Enable debug logging')
def cli(debug):
    """Chat with an agent that quotes and swaps tokens on Uniswap V3 (Celo)"""
    if debug:
        os.environ['DEBUG'] = 'true'
    settings = Settings.from_env()
    setup_logging(settings.log_level, settings.log_dir)
    settings.require_llm()

    chain = ChainClient.from_settings(settings)
    chain.check_connection()
    service = UniswapService(chain)
    agent = SwapAgent.from_settings(settings, build_tool_manager(service), on_step=print_invocation)

    print_banner(settings, chain.address)
    asyncio.run(run_repl(agent))


def main():
    try:
        cli()
    except KeyboardInterrupt:
        console.print("\n[yellow]Operation cancelled by user[/yellow]")
        sys.exit(0)
    except Exception as e:
        logger.error(f"Unexpected error: {e}")
        console.print(f"Error: {e}", style="red", markup=False)
        sys.exit(1)


if __name__ == "__main__":
    main()
