"""Typer-based CLI for inspecting exchange adapters."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Awaitable, Callable, Optional, TypeVar

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from .errors import ErrorKind, ExchangeAdapterError

if TYPE_CHECKING:
    from .exchanges.base import BaseExchangeAdapter

T = TypeVar("T")

# sysexits EX_TEMPFAIL: the operator (or a wrapper script) may retry
EXIT_TRANSIENT = 75


# Import with local function to avoid circular imports
def _load_settings(config_path: Optional[Path] = None):
    from .config import load_settings
    return load_settings(config_path)


def _create_exchange_adapter(exchange: str, settings):
    from .exchanges.factory import create_exchange_adapter
    exchange_settings = settings.exchanges.get(exchange)
    if exchange_settings is None:
        from .errors import AdapterConfigurationError
        raise AdapterConfigurationError(f"Exchange '{exchange}' not configured")
    return create_exchange_adapter(exchange, exchange_settings.adapter_settings(exchange))


def _configure_logging(log_dir: Path | None = None, verbose: bool = False):
    from .logging import configure_logging
    return configure_logging(log_dir, level="DEBUG" if verbose else None)


app = typer.Typer(help="Exchange adapter diagnostics CLI")
console = Console()
logger = logging.getLogger(__name__)


def run_cli(argv: list[str] | None = None) -> None:
    """Run CLI with optional argv parameter."""
    app(argv)


@app.callback()
def main_callback(
    log_dir: Optional[Path] = typer.Option(None, help="Directory for rotating log files"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log requests at DEBUG level"),
) -> None:
    _configure_logging(log_dir, verbose)


def init_adapter(exchange: str, config_path: Optional[Path] = None) -> "BaseExchangeAdapter":
    """Load settings and build the adapter for ``exchange``."""
    settings = _load_settings(config_path)
    logger.debug("Loaded settings: %s", settings.redacted())
    return _create_exchange_adapter(exchange, settings)


def _run(exchange: str, config: Optional[Path], call: Callable[["BaseExchangeAdapter"], Awaitable[T]]) -> T:
    """Build the adapter, run one operation and map failures to exit codes."""

    async def _with_adapter() -> T:
        adapter = init_adapter(exchange, config)
        try:
            return await call(adapter)
        finally:
            await adapter.close()

    try:
        return asyncio.run(_with_adapter())
    except ExchangeAdapterError as e:
        logger.error("%s failed (%s): %s", exchange, e.kind.value, e)
        if e.kind is ErrorKind.TRANSIENT:
            console.print(f"[yellow]Exchange unreachable, try again:[/yellow] {escape(str(e))}")
            raise typer.Exit(EXIT_TRANSIENT)
        console.print(f"[red]Error ({e.kind.value}):[/red] {escape(str(e))}")
        raise typer.Exit(1)


@app.command()
def info(
    exchange: str = typer.Argument(..., help="Exchange name"),
    market: str = typer.Option("XBTUSD", help="Market id for the fee lookup"),
    config: Optional[Path] = typer.Option(None, help="Path to config file"),
) -> None:
    """Show adapter name and fees (no network access)."""

    async def _info(adapter: "BaseExchangeAdapter") -> None:
        buy_fee = adapter.get_percentage_of_buy_order_taken_for_exchange_fee(market)
        sell_fee = adapter.get_percentage_of_sell_order_taken_for_exchange_fee(market)
        console.print(Panel.fit(
            f"Adapter: [cyan]{adapter.get_impl_name()}[/cyan]\n"
            f"Buy fee: [bold]{buy_fee}[/bold]\n"
            f"Sell fee: [bold]{sell_fee}[/bold]",
            title="Adapter Info"
        ))

    _run(exchange, config, _info)


@app.command()
def ticker(
    exchange: str = typer.Argument(..., help="Exchange name"),
    market: str = typer.Argument(..., help="Market id, e.g. XBTUSD"),
    config: Optional[Path] = typer.Option(None, help="Path to config file"),
) -> None:
    """Show the last traded price."""
    price = _run(exchange, config, lambda adapter: adapter.get_latest_market_price(market))
    console.print(f"[cyan]{exchange}[/cyan] [green]{market}[/green] last price: [bold]{price}[/bold]")


@app.command()
def book(
    exchange: str = typer.Argument(..., help="Exchange name"),
    market: str = typer.Argument(..., help="Market id, e.g. XBTUSD"),
    depth: int = typer.Option(10, min=1, help="Levels to display per side"),
    config: Optional[Path] = typer.Option(None, help="Path to config file"),
) -> None:
    """Show the top of the order book."""
    order_book = _run(exchange, config, lambda adapter: adapter.get_market_orders(market))

    table = Table(title=f"{exchange} {market} order book")
    table.add_column("Bid qty", style="green", justify="right")
    table.add_column("Bid", style="green", justify="right")
    table.add_column("Ask", style="red", justify="right")
    table.add_column("Ask qty", style="red", justify="right")

    bids = order_book.buy_orders[:depth]
    asks = order_book.sell_orders[:depth]
    for i in range(max(len(bids), len(asks))):
        bid = bids[i] if i < len(bids) else None
        ask = asks[i] if i < len(asks) else None
        table.add_row(
            str(bid.quantity) if bid else "",
            str(bid.price) if bid else "",
            str(ask.price) if ask else "",
            str(ask.quantity) if ask else "",
        )

    console.print(table)
    console.print(
        f"\n[bold]Levels:[/bold] {len(order_book.buy_orders)} bids, {len(order_book.sell_orders)} asks"
    )


@app.command()
def balances(
    exchange: str = typer.Argument(..., help="Exchange name"),
    config: Optional[Path] = typer.Option(None, help="Path to config file"),
) -> None:
    """Show available and on-hold balances."""
    balance_info = _run(exchange, config, lambda adapter: adapter.get_balance_info())

    table = Table(title=f"{exchange} balances")
    table.add_column("Currency", style="cyan")
    table.add_column("Available", justify="right")
    table.add_column("On hold", justify="right")

    for currency, amount in balance_info.balances_available.items():
        on_hold = balance_info.balances_on_hold.get(currency)
        table.add_row(currency, str(amount), "n/a" if on_hold is None else str(on_hold))

    console.print(table)


@app.command()
def orders(
    exchange: str = typer.Argument(..., help="Exchange name"),
    market: str = typer.Argument(..., help="Market id, e.g. XBTUSD"),
    config: Optional[Path] = typer.Option(None, help="Path to config file"),
) -> None:
    """List your open orders."""
    open_orders = _run(exchange, config, lambda adapter: adapter.get_your_open_orders(market))

    if not open_orders:
        console.print(f"[yellow]No open orders on {exchange} for {market}[/yellow]")
        return

    table = Table(title=f"{exchange} {market} open orders")
    table.add_column("Id", style="magenta")
    table.add_column("Side", style="cyan")
    table.add_column("Created", style="dim")
    table.add_column("Price", justify="right")
    table.add_column("Remaining", justify="right")
    table.add_column("Original", justify="right")
    table.add_column("Total", justify="right")

    for order in open_orders:
        table.add_row(
            order.id,
            order.type.value,
            order.creation_date.isoformat(),
            str(order.price),
            str(order.quantity),
            str(order.original_quantity),
            str(order.total),
        )

    console.print(table)


@app.command()
def cancel(
    exchange: str = typer.Argument(..., help="Exchange name"),
    order_id: str = typer.Argument(..., help="Order id to cancel"),
    market: Optional[str] = typer.Option(None, help="Market id (only some exchanges need it)"),
    config: Optional[Path] = typer.Option(None, help="Path to config file"),
) -> None:
    """Cancel an open order."""
    cancelled = _run(exchange, config, lambda adapter: adapter.cancel_order(order_id, market))

    if not cancelled:
        console.print(f"[red]✗ {exchange} did not accept cancellation of {order_id}[/red]")
        raise typer.Exit(1)
    console.print(f"[green]✓ Cancelled order {order_id}[/green]")


def main():
    """CLI main entry point."""
    app()


if __name__ == "__main__":
    main()
