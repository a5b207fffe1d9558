"""
Uniswap Swap Agent - Quick Start Script
"""

import os

from dotenv import load_dotenv
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from uniswap_agent.cli.main import main as run_cli

console = Console()

REQUIRED_VARS = ["WALLET_PRIVATE_KEY", "RPC_PROVIDER_URL", "OPENAI_API_KEY"]
OPTIONAL_VARS = ["CELO_PUBLIC_RPC_URL", "OPENAI_MODEL", "OPENAI_BASE_URL"]


def mask(var: str, value: str) -> str:
    if "KEY" in var:
        return f"{value[:6]}...{value[-4:]}" if len(value) > 12 else "****"
    return value[:50] + "..." if len(value) > 50 else value


def check_environment() -> bool:
    """Check if environment is properly configured"""
    console.print("\n[bold blue]🔍 Checking Environment Configuration[/bold blue]")

    table = Table(title="Environment Configuration Status")
    table.add_column("Variable", style="cyan")
    table.add_column("Status", style="white")
    table.add_column("Value", style="dim")

    missing = []
    for var in REQUIRED_VARS + OPTIONAL_VARS:
        value = os.getenv(var)
        if value:
            table.add_row(var, "[green]✅ Set[/green]", mask(var, value))
        elif var in REQUIRED_VARS:
            missing.append(var)
            table.add_row(var, "[red]❌ Missing[/red]", "Not configured")
        else:
            table.add_row(var, "[dim]Default[/dim]", "")

    console.print(table)

    if missing:
        console.print(f"\n[yellow]⚠️  Missing required environment variables: {', '.join(missing)}[/yellow]")
        console.print("[dim]Please configure them in your .env file or as environment variables.[/dim]")
        return False
    console.print("\n[green]✅ All required environment variables are configured![/green]")
    return True


def display_welcome():
    console.print(Panel(
        """[bold blue]🦄 Uniswap V3 Swap Agent on Celo[/bold blue]

Talk to the agent in plain language to:
• Get quotes between CELO, cUSD and cEUR
• Execute swaps from your configured wallet

[dim]Swaps are real transactions. Always test with small amounts first![/dim]""",
        title="Uniswap Swap Agent",
        border_style="blue",
        padding=1,
    ))


if __name__ == "__main__":
    load_dotenv()
    display_welcome()
    if check_environment():
        run_cli()
