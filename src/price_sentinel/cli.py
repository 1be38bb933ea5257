"""Click-based CLI for price-sentinel.

Thin wrapper around library modules. Zero business logic: every operation
delegates to the API factory or the price router.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os

import click
from rich.console import Console
from rich.table import Table

console = Console(stderr=True)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _run_async(coro):
    """Run an async coroutine from synchronous Click code."""
    return asyncio.run(coro)


def _load_config(ctx: click.Context):
    """Load config lazily, caching on first call."""
    if "config" not in ctx.obj:
        from price_sentinel.core import load_config

        ctx.obj["config"] = load_config(config_path=ctx.obj.get("config_path"))
    return ctx.obj["config"]


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
    )
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True),
    envvar="PRICE_SENTINEL_CONFIG",
    default=None,
    help="Path to price-sentinel.yml config file.",
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    default=False,
    help="Enable verbose output.",
)
@click.version_option(package_name="price-sentinel")
@click.pass_context
def cli(ctx: click.Context, config: str | None, verbose: bool) -> None:
    """Price Sentinel: threshold price alerts with live and push notifications."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config
    ctx.obj["verbose"] = verbose
    ctx.obj["console"] = console
    _configure_logging(verbose)


# ---------------------------------------------------------------------------
# quote
# ---------------------------------------------------------------------------


@cli.command()
@click.argument("symbol")
@click.option("--json", "as_json", is_flag=True, default=False, help="Emit JSON to stdout.")
@click.pass_context
def quote(ctx: click.Context, symbol: str, as_json: bool) -> None:
    """Fetch the current price of SYMBOL (e.g. AAPL, BINANCE:BTCUSDT)."""
    from price_sentinel.core.exceptions import FetchError
    from price_sentinel.prices import PriceRouter

    config = _load_config(ctx)

    async def _run():
        async with PriceRouter(config.provider) as router:
            return await router.get_quote(symbol)

    try:
        result = _run_async(_run())
    except FetchError as e:
        console.print(f"[red]{e}[/red]")
        if ctx.obj["verbose"] and e.context.get("reason"):
            console.print(f"[dim]{e.context['reason']}[/dim]")
        raise SystemExit(1)

    if as_json:
        click.echo(json.dumps(result.model_dump(mode="json"), indent=2))
        return

    table = Table(title="Quote")
    table.add_column("Symbol", style="bold")
    table.add_column("Price", justify="right")
    table.add_column("Source")
    table.add_column("Time")
    table.add_row(
        result.symbol,
        f"{result.price:,.6g}",
        result.source,
        result.timestamp.isoformat(timespec="seconds"),
    )
    console.print(table)


# ---------------------------------------------------------------------------
# serve
# ---------------------------------------------------------------------------


@cli.command()
@click.option("--host", type=str, default=None, help="Bind address (default from config).")
@click.option("--port", "-p", type=int, default=None, help="Port number (default from config).")
@click.option("--reload", is_flag=True, default=False, help="Auto-reload on code changes.")
@click.pass_context
def serve(ctx: click.Context, host: str | None, port: int | None, reload: bool) -> None:
    """Start the REST API server and the alert poller."""
    import uvicorn

    config = _load_config(ctx)
    host = host or config.api.host
    port = port or config.api.port

    if not config.push.enabled:
        console.print("[yellow]VAPID keys not set; push notifications disabled.[/yellow]")

    console.print(f"Starting price-sentinel on [bold]{host}:{port}[/bold]")
    console.print(
        f"Polling every {config.poller.interval_seconds:g}s"
        if config.poller.enabled
        else "[yellow]Poller disabled[/yellow]"
    )
    console.print(f"API docs: http://{host}:{port}/docs")

    # The app factory runs inside uvicorn and reads its config path from here
    if ctx.obj.get("config_path"):
        os.environ["PRICE_SENTINEL_CONFIG"] = ctx.obj["config_path"]

    uvicorn.run(
        "price_sentinel.api.app:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
        log_config=None,
    )


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main() -> None:
    """Main entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
