"""
Operator commands for the SNAKEPILL backend.
"""

import asyncio
import json
import math
import sys
from typing import Any, Awaitable, Callable, Dict

import typer
from rich.console import Console
from rich.table import Table

from snakepill.core.config import get_settings
from snakepill.core.logging import setup_logging
from snakepill.services.container import ServiceContainer
from snakepill.utils.helpers import format_sol, format_usd
from snakepill.utils.validation import validate_wallet_address


console = Console()
app = typer.Typer(help="SNAKEPILL backend operator commands")


def _run(command: Callable[[ServiceContainer], Awaitable[Dict[str, Any]]]) -> Dict[str, Any]:
    """Run `command` against a started service container and print its JSON result."""
    async def _main():
        settings = get_settings()
        setup_logging(settings)
        async with ServiceContainer(settings) as services:
            return await command(services)

    result = asyncio.run(_main())
    console.print_json(json.dumps(result, default=str))
    return result


@app.command()
def reconcile():
    """Run one eligibility reconciliation pass."""
    async def _reconcile(services: ServiceContainer) -> Dict[str, Any]:
        result = await services.reconciler.check_all_eligibility()
        return result.to_dict()

    result = _run(_reconcile)
    if result["errors"]:
        console.print(f"⚠️ {result['errors']} wallet(s) failed, see logs")


@app.command()
def distribute(
    tax_sol: float = typer.Argument(..., help="Total tax collected, in SOL"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation")
):
    """Distribute the pool share of TAX_SOL to every eligible wallet."""
    settings = get_settings()
    if not math.isfinite(tax_sol) or tax_sol <= 0:
        console.print("❌ Tax amount must be positive")
        raise typer.Exit(code=2)

    pool = tax_sol * settings.tax_distribution_rate
    if not yes and not typer.confirm(f"Distribute {format_sol(pool)} SOL to eligible players?"):
        console.print("❌ Operation cancelled")
        return

    async def _distribute(services: ServiceContainer) -> Dict[str, Any]:
        result = await services.distributor.distribute(tax_sol)
        return result.to_dict()

    result = _run(_distribute)
    if not result["success"]:
        console.print(f"❌ Distribution not performed: {result['reason']}")
        sys.exit(1)
    if result["audit_error"]:
        console.print(f"⚠️ Payouts sent but not recorded: {result['audit_error']}")
    console.print(f"✅ Paid {result['success_count']} wallet(s), {result['fail_count']} failed")


@app.command()
def status():
    """Show system counters and distributor balance."""
    async def _status(services: ServiceContainer) -> Dict[str, Any]:
        settings = services.settings
        data = await services.store.get_system_status(settings.online_timeout_seconds)
        data["distribution"] = await services.distributor.get_distribution_stats()
        return data

    result = _run(_status)

    table = Table(title="SNAKEPILL status")
    table.add_column("Metric")
    table.add_column("Value", justify="right")
    table.add_row("Players", str(result["total_players"]))
    table.add_row("Games", str(result["total_games"]))
    table.add_row("Online", str(result["online_count"]))
    table.add_row("Eligible", str(result["eligible_count"]))
    table.add_row("Distributor balance", f"{format_sol(result['distribution']['wallet_balance'])} SOL")
    console.print(table)


@app.command()
def check(wallet: str = typer.Argument(..., help="Wallet address")):
    """Check a wallet's live token holding against the eligibility minimum."""
    if not validate_wallet_address(wallet):
        console.print("❌ Invalid wallet address")
        raise typer.Exit(code=2)

    async def _check(services: ServiceContainer) -> Dict[str, Any]:
        result = await services.reconciler.check_player_eligibility(wallet)
        return result.to_dict()

    result = _run(_check)
    mark = "✅" if result["is_eligible"] else "❌"
    console.print(
        f"{mark} holding {format_usd(result['holding_usd'])}, "
        f"minimum {format_usd(result['min_required'])}"
    )


def main():
    app()


if __name__ == "__main__":
    main()
