"""Shared domain types for the relay."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(slots=True, frozen=True)
class Trade:
    """One fill from the account trade history."""

    symbol: str
    trade_id: int
    quantity: float
    price: float
    is_buyer: bool
    timestamp: int


@dataclass(slots=True, frozen=True)
class Balance:
    """Free and locked amounts of one asset."""

    asset: str
    free: float
    locked: float

    @property
    def total(self) -> float:
        return self.free + self.locked

    def to_payload(self) -> dict[str, str]:
        return {
            "asset": self.asset,
            "free": f"{self.free:.8f}",
            "locked": f"{self.locked:.8f}",
            "total": f"{self.total:.8f}",
        }


@dataclass(slots=True)
class OpenPositionState:
    """Open quantity and cost left after netting a trade history."""

    symbol: str
    open_quantity: float = 0.0
    open_cost: float = 0.0


@dataclass(slots=True, frozen=True)
class Position:
    """Read-only view of one open position."""

    symbol: str
    position_amt: float
    break_even: float
    current_price: float
    market_value: float
    unrealized_pl: float

    def to_payload(self) -> dict[str, str]:
        return {
            "symbol": self.symbol,
            "positionAmt": f"{self.position_amt:.8f}",
            "breakEven": f"{self.break_even:.8f}",
            "entryPrice": f"{self.break_even:.8f}",
            "currentPrice": f"{self.current_price:.8f}",
            "marketValue": f"{self.market_value:.2f}",
            "unrealizedPL": f"{self.unrealized_pl:.2f}",
        }


@dataclass(slots=True, frozen=True)
class BreakEven:
    """Break-even price of the quantity still held for a symbol."""

    symbol: str
    break_even: float
    total_quantity: float

    def to_payload(self) -> dict[str, str]:
        return {
            "symbol": self.symbol,
            "breakEven": f"{self.break_even:.8f}",
            "averagePrice": f"{self.break_even:.8f}",
            "totalQuantity": f"{self.total_quantity:.8f}",
        }


@dataclass(slots=True, frozen=True)
class TradingRule:
    """Lot size and price tick of a symbol."""

    symbol: str
    step_size: float
    min_qty: float
    tick_size: float


@dataclass(slots=True, frozen=True)
class OrderParameters:
    """Quantity and price rounded to the symbol's trading rule."""

    symbol: str
    quantity: str
    price: str | None = None

    def to_payload(self) -> dict[str, Any]:
        return {"symbol": self.symbol, "quantity": self.quantity, "price": self.price}
