"""Open position aggregation across the account's assets."""

from __future__ import annotations

import asyncio

from spot_relay.accounting.cost_basis import (
    break_even_price,
    compute_open_position,
    evaluate_position,
    is_dust,
)
from spot_relay.config import Settings
from spot_relay.errors import SymbolResolutionFailure, UpstreamError
from spot_relay.market import MarketData
from spot_relay.types import Balance, BreakEven, Position, Trade
from spot_relay.utils.logging import get_logger

_logger = get_logger("spot_relay.positions")


async def list_balances(market: MarketData) -> list[Balance]:
    """Balances with a non-zero free + locked amount, in account order."""
    account = await market.account()
    return [balance for balance in account.to_balances() if balance.total > 0]


async def resolve_symbol(
    market: MarketData,
    asset: str,
    quote_assets: list[str],
) -> tuple[str, list[Trade], float]:
    """Pair ``asset`` with the first quote in priority order that has trade history.

    A failed fetch for one candidate moves on to the next. Raises
    SymbolResolutionFailure when no candidate has trades.
    """
    candidates = [f"{asset}{quote}" for quote in quote_assets]
    for symbol in candidates:
        try:
            trades = await market.trades(symbol)
            if not trades:
                continue
            price = await market.price(symbol)
        except UpstreamError as exc:
            _logger.debug(
                "symbol_candidate_failed",
                asset=asset,
                symbol=symbol,
                status_code=exc.status_code,
                error=str(exc),
            )
            continue
        return symbol, trades, price
    raise SymbolResolutionFailure(asset, candidates)


async def _position_for(market: MarketData, balance: Balance, settings: Settings) -> Position | None:
    try:
        symbol, trades, price = await resolve_symbol(market, balance.asset, settings.quote_assets)
    except SymbolResolutionFailure as exc:
        _logger.debug("position_skipped_unresolved", asset=exc.asset, candidates=exc.candidates)
        return None

    state = compute_open_position(symbol, trades, settings.binance_fee)
    position = evaluate_position(state, price)
    if position is None:
        return None
    if is_dust(position, settings.min_position_value):
        _logger.debug(
            "position_skipped_dust",
            symbol=symbol,
            market_value=round(position.market_value, 2),
        )
        return None
    return position


async def compute_positions(market: MarketData, settings: Settings) -> list[Position]:
    """Open positions above the dust threshold, in the account's asset order.

    A failure fetching the account snapshot aborts the whole computation.
    """
    account = await market.account()
    quotes = set(settings.quote_assets)
    held = [
        balance
        for balance in account.to_balances()
        if balance.total > 0 and balance.asset not in quotes
    ]
    _logger.info("computing_positions", account_type=account.account_type, assets=len(held))

    results = await asyncio.gather(*(_position_for(market, balance, settings) for balance in held))
    return [position for position in results if position is not None]


async def compute_break_even(market: MarketData, symbol: str, fee_rate: float) -> BreakEven:
    """Break-even and open quantity of one symbol, using the same engine as positions."""
    symbol = symbol.upper()
    trades = await market.trades(symbol)
    state = compute_open_position(symbol, trades, fee_rate)
    return BreakEven(
        symbol=symbol,
        break_even=break_even_price(state),
        total_quantity=state.open_quantity,
    )
