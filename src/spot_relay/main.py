"""CLI entry point for the spot relay."""

import asyncio
import json
import sys
from typing import Any, Awaitable, Callable

import click
from pydantic import ValidationError

from spot_relay import __version__
from spot_relay.config import Settings, get_settings
from spot_relay.errors import RelayError, UpstreamError
from spot_relay.exchange.client import BinanceRestClient
from spot_relay.exchange.schemas import OrderRequest
from spot_relay.market import MarketData
from spot_relay.orders import adjust_order_parameters, place_order
from spot_relay.positions import compute_break_even, compute_positions, list_balances
from spot_relay.utils.logging import get_logger, setup_logging

Action = Callable[[MarketData, Settings], Awaitable[Any]]


async def _with_market(settings: Settings, action: Action) -> Any:
    client = BinanceRestClient(settings)
    try:
        return await action(MarketData(client, settings), settings)
    finally:
        await client.aclose()


def _execute(action: Action, *, signed: bool) -> None:
    """Run one relay operation and print its JSON payload."""
    settings = get_settings()
    setup_logging(settings)
    logger = get_logger("spot_relay.main")

    if signed:
        missing = settings.validate_credentials()
        if missing:
            logger.error(
                "missing_required_config",
                missing_keys=missing,
                hint="set the API credentials in the .env file",
            )
            sys.exit(1)

    try:
        payload = asyncio.run(_with_market(settings, action))
    except UpstreamError as exc:
        logger.error("command_failed", error=str(exc), status_code=exc.status_code)
        click.echo(json.dumps(exc.to_payload()), err=True)
        sys.exit(1)
    except (RelayError, ValueError) as exc:
        logger.error("command_failed", error=str(exc))
        click.echo(json.dumps({"error": str(exc)}), err=True)
        sys.exit(1)

    click.echo(json.dumps(payload, indent=2))


@click.group(invoke_without_command=True)
@click.option("--version", "-v", is_flag=True, help="Show the version")
@click.pass_context
def cli(ctx: click.Context, version: bool) -> None:
    """Spot relay - signed exchange access with break-even and P&L analytics."""
    if version:
        click.echo(f"spot-relay version {__version__}")
        return

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


@cli.command()
def positions() -> None:
    """Open positions above the dust threshold with break-even and P&L."""

    async def _action(market: MarketData, settings: Settings) -> list[dict[str, str]]:
        return [p.to_payload() for p in await compute_positions(market, settings)]

    _execute(_action, signed=True)


@cli.command()
@click.argument("symbol")
def breakeven(symbol: str) -> None:
    """Break-even price and open quantity of SYMBOL."""

    async def _action(market: MarketData, settings: Settings) -> dict[str, str]:
        result = await compute_break_even(market, symbol, settings.binance_fee)
        return result.to_payload()

    _execute(_action, signed=True)


@cli.command()
def balances() -> None:
    """Assets with a non-zero balance."""

    async def _action(market: MarketData, settings: Settings) -> list[dict[str, str]]:
        return [b.to_payload() for b in await list_balances(market)]

    _execute(_action, signed=True)


@cli.command()
@click.argument("symbol")
@click.option("--quantity", "-q", type=float, default=None, help="Raw base quantity")
@click.option("--quote-amount", "-a", type=float, default=None, help="Amount in quote currency")
@click.option("--price", "-p", type=float, default=None, help="Raw limit price")
def adjust(symbol: str, quantity: float | None, quote_amount: float | None, price: float | None) -> None:
    """Round an order for SYMBOL to its lot size and tick size."""
    if (quantity is None) == (quote_amount is None):
        raise click.UsageError("pass exactly one of --quantity or --quote-amount")

    async def _action(market: MarketData, settings: Settings) -> dict[str, Any]:
        result = await adjust_order_parameters(
            market,
            symbol,
            quantity=quantity,
            quote_amount=quote_amount,
            price=price,
        )
        return result.to_payload()

    _execute(_action, signed=False)


@cli.command()
@click.argument("symbol")
@click.argument("side", type=click.Choice(["BUY", "SELL"], case_sensitive=False))
@click.option("--quantity", "-q", type=float, required=True, help="Raw base quantity")
@click.option(
    "--type",
    "order_type",
    type=click.Choice(["MARKET", "LIMIT"], case_sensitive=False),
    default="MARKET",
    help="Order type",
)
@click.option("--price", "-p", type=float, default=None, help="Limit price")
@click.option(
    "--time-in-force",
    type=click.Choice(["GTC", "IOC", "FOK"], case_sensitive=False),
    default="GTC",
    help="Time in force for LIMIT orders",
)
def order(
    symbol: str,
    side: str,
    quantity: float,
    order_type: str,
    price: float | None,
    time_in_force: str,
) -> None:
    """Adjust and submit an order for SYMBOL."""
    try:
        request = OrderRequest(
            symbol=symbol.upper(),
            side=side.upper(),
            quantity=quantity,
            type=order_type.upper(),
            price=price,
            time_in_force=time_in_force.upper(),
        )
    except ValidationError as exc:
        raise click.UsageError(exc.errors()[0]["msg"]) from exc

    async def _action(market: MarketData, settings: Settings) -> dict[str, Any]:
        return await place_order(market, request)

    _execute(_action, signed=True)


@cli.command()
def status() -> None:
    """Show a configuration summary."""
    settings = get_settings()
    setup_logging(settings)

    click.echo("=" * 50)
    click.echo("Spot Relay - Status")
    click.echo("=" * 50)
    click.echo()

    click.echo("[API Configuration]")
    key_status = "[OK] Configured" if settings.binance_api_key else "[--] Not configured"
    secret_status = "[OK] Configured" if settings.binance_api_secret else "[--] Not configured"
    click.echo(f"   API key: {key_status}")
    click.echo(f"   API secret: {secret_status}")
    click.echo(f"   Base URL: {settings.binance_base_url}")
    click.echo(f"   Timeout: {settings.request_timeout}s, retries: {settings.max_retries}")
    click.echo()

    click.echo("[Positions]")
    click.echo(f"   Fee rate: {settings.binance_fee}")
    click.echo(f"   Quote assets: {', '.join(settings.quote_assets)}")
    click.echo(f"   Dust threshold: {settings.min_position_value}")
    click.echo()

    click.echo("[Cache TTLs]")
    click.echo(f"   Account: {settings.account_ttl}s")
    click.echo(f"   Trades: {settings.trades_ttl}s")
    click.echo(f"   Price: {settings.price_ttl}s")
    click.echo(f"   Exchange info: {settings.exchange_info_ttl}s")
    click.echo()

    missing = settings.validate_credentials()
    if missing:
        click.echo("[ERROR] Signed commands unavailable, missing:")
        for key in missing:
            click.echo(f"   - {key}")
    else:
        click.echo("[OK] Credentials configured")

    click.echo()
    click.echo("=" * 50)


# Support python -m spot_relay.main
if __name__ == "__main__":
    cli()
