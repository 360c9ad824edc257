"""Average-cost open position accounting.

Trades are netted in arrival order. Buys add quantity and fee-inclusive cost;
sells remove quantity at the running average cost. This is a weighted-average
approximation of FIFO, not per-lot matching, and the fee is only capitalized
on the buy side. Both behaviors are kept as-is so break-even figures stay
reproducible.
"""

from __future__ import annotations

from typing import Iterable

from spot_relay.types import OpenPositionState, Position, Trade

DEFAULT_FEE_RATE = 0.001
DEFAULT_MIN_POSITION_VALUE = 10.0


def compute_open_position(
    symbol: str,
    trades: Iterable[Trade],
    fee_rate: float = DEFAULT_FEE_RATE,
) -> OpenPositionState:
    """Net a chronological trade list into open quantity and open cost."""
    state = OpenPositionState(symbol=symbol)
    for trade in trades:
        notional = trade.quantity * trade.price
        if trade.is_buyer:
            state.open_quantity += trade.quantity
            state.open_cost += notional + notional * fee_rate
        elif state.open_quantity > 0:
            average = state.open_cost / state.open_quantity
            state.open_quantity -= trade.quantity
            state.open_cost -= trade.quantity * average
            if state.open_quantity <= 0:
                # oversell or full close: no negative inventory, no residual cost
                state.open_quantity = 0.0
                state.open_cost = 0.0
            elif state.open_cost < 0:
                state.open_cost = 0.0
        # a sell with nothing open closes a position older than the history
    return state


def break_even_price(state: OpenPositionState) -> float:
    """Average fee-inclusive cost per unit held, 0 when nothing is open."""
    if state.open_quantity <= 0:
        return 0.0
    return state.open_cost / state.open_quantity


def evaluate_position(state: OpenPositionState, current_price: float) -> Position | None:
    """Mark an open position to ``current_price``; None when nothing is open."""
    if state.open_quantity <= 0:
        return None
    break_even = break_even_price(state)
    return Position(
        symbol=state.symbol,
        position_amt=state.open_quantity,
        break_even=break_even,
        current_price=current_price,
        market_value=state.open_quantity * current_price,
        unrealized_pl=(current_price - break_even) * state.open_quantity,
    )


def is_dust(position: Position, min_value: float = DEFAULT_MIN_POSITION_VALUE) -> bool:
    """Display filter for positions worth less than ``min_value`` quote units."""
    return position.market_value < min_value
