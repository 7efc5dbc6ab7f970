#!/usr/bin/env python3
"""
Command-line view of the Alpaca account gateway.
"""
from __future__ import annotations

import asyncio
from decimal import Decimal
from typing import Annotated, Any, Awaitable, Callable, Optional

import typer
from rich.console import Console
from rich.table import Table

from alpaca_gateway.account import AccountGateway
from alpaca_gateway.utils.error_handling import GatewayError
from alpaca_gateway.utils.logger import setup_logger
from config import Config

console = Console()

app = typer.Typer(
    name="alpaca-gateway",
    help="Read-only Alpaca account viewer",
    rich_markup_mode="rich",
    add_completion=False
)

TransportOption = Annotated[
    Optional[str], typer.Option("--transport", "-t", help="Provider transport: sdk or rest")
]
TimeoutOption = Annotated[
    Optional[float], typer.Option("--timeout", help="Seconds to wait for the provider")
]
RetriesOption = Annotated[
    Optional[int], typer.Option("--retries", help="Retries on transport failures")
]


def _money(value: Decimal | None) -> str:
    return "N/A" if value is None else f"${value:,.2f}"


def _run(fetch: Callable[[AccountGateway], Awaitable[Any]], transport: Optional[str],
         timeout: Optional[float], retries: Optional[int]) -> Any:
    """Run one gateway operation, turning any gateway failure into exit code 1"""
    setup_logger(level=Config.LOG_LEVEL, log_file=Config.LOG_FILE)

    async def _fetch() -> Any:
        async with AccountGateway.from_config(
            transport=transport, timeout=timeout, max_retries=retries
        ) as gateway:
            return await fetch(gateway)

    try:
        with console.status("[bold blue]Contacting Alpaca...", spinner="dots"):
            return asyncio.run(_fetch())
    except GatewayError as e:
        console.print(f"[red]❌ {type(e).__name__}: {e.message}[/red]")
        raise typer.Exit(1)


@app.command("account")
def account(transport: TransportOption = None, timeout: TimeoutOption = None,
            retries: RetriesOption = None) -> None:
    """💼 Display the account snapshot"""
    snapshot = _run(lambda gw: gw.get_account(), transport, timeout, retries)

    table = Table(title="💼 Account Information", show_header=True, header_style="bold blue")
    table.add_column("Metric", style="cyan", width=24)
    table.add_column("Value", style="green")

    table.add_row("Account Number", snapshot.account_number or "N/A")
    table.add_row("Status", snapshot.status or "N/A")
    table.add_row("Cash", _money(snapshot.cash))
    table.add_row("Buying Power", _money(snapshot.buying_power))
    table.add_row("Equity", _money(snapshot.equity))
    table.add_row("Portfolio Value", _money(snapshot.portfolio_value))
    table.add_row("Day Trading BP", _money(snapshot.daytrading_buying_power))
    if snapshot.equity_change is not None:
        table.add_row("Daily Change", _money(snapshot.equity_change))
    table.add_row("PDT", "Yes" if snapshot.pattern_day_trader else "No")

    console.print(table)
    console.print(f"\nLast updated: {snapshot.fetched_at:%Y-%m-%d %H:%M:%S}")


@app.command("cash")
def cash(transport: TransportOption = None, timeout: TimeoutOption = None,
         retries: RetriesOption = None) -> None:
    """💵 Display tradable cash"""
    value = _run(lambda gw: gw.get_cash(), transport, timeout, retries)
    console.print(f"Cash: {_money(value)}")


@app.command("buying-power")
def buying_power(transport: TransportOption = None, timeout: TimeoutOption = None,
                 retries: RetriesOption = None) -> None:
    """💰 Display buying power"""
    value = _run(lambda gw: gw.get_buying_power(), transport, timeout, retries)
    console.print(f"Buying Power: {_money(value)}")


@app.command("positions")
def positions(transport: TransportOption = None, timeout: TimeoutOption = None,
              retries: RetriesOption = None) -> None:
    """📈 Display open positions"""
    held = _run(lambda gw: gw.get_positions(), transport, timeout, retries)

    if not held:
        console.print("No open positions")
        return

    table = Table(title="📈 Current Positions", show_header=True, header_style="bold blue")
    table.add_column("Symbol", style="cyan")
    table.add_column("Qty", justify="right")
    table.add_column("Market Value", justify="right")
    table.add_column("Unrealized P&L", justify="right")

    for position in held:
        pnl_style = "green" if position.unrealized_pnl >= 0 else "red"
        table.add_row(
            position.display_symbol,
            f"{position.quantity:f}",
            _money(position.market_value),
            f"[{pnl_style}]{_money(position.unrealized_pnl)}[/{pnl_style}]"
        )

    total = sum((p.market_value for p in held), Decimal("0"))
    console.print(table)
    console.print(f"\nTotal market value: {_money(total)}")


if __name__ == "__main__":
    app()
