"""Upstream payload schemas and strict parsing helpers."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from spot_relay.errors import InvalidFilterError, UpstreamError
from spot_relay.types import Balance, Trade, TradingRule


class _Payload(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class BalancePayload(_Payload):
    asset: str
    free: float = Field(ge=0.0)
    locked: float = Field(ge=0.0)


class AccountPayload(_Payload):
    account_type: str | None = Field(default=None, alias="accountType")
    balances: list[BalancePayload]

    def to_balances(self) -> list[Balance]:
        return [Balance(asset=b.asset, free=b.free, locked=b.locked) for b in self.balances]


class TradePayload(_Payload):
    symbol: str
    id: int
    price: float = Field(gt=0.0)
    qty: float = Field(gt=0.0)
    is_buyer: bool = Field(alias="isBuyer")
    time: int

    def to_trade(self) -> Trade:
        return Trade(
            symbol=self.symbol,
            trade_id=self.id,
            quantity=self.qty,
            price=self.price,
            is_buyer=self.is_buyer,
            timestamp=self.time,
        )


class TickerPricePayload(_Payload):
    symbol: str
    price: float = Field(gt=0.0)


class SymbolPayload(_Payload):
    symbol: str
    filters: list[dict[str, Any]] = Field(default_factory=list)

    def to_trading_rule(self) -> TradingRule:
        """Read LOT_SIZE and PRICE_FILTER. Missing or zero values are invalid."""
        lot = _find_filter(self.filters, "LOT_SIZE")
        price_filter = _find_filter(self.filters, "PRICE_FILTER")
        if lot is None or price_filter is None:
            raise InvalidFilterError(f"incomplete_filters: {self.symbol}")
        step_size = _filter_value(lot, "stepSize", self.symbol)
        tick_size = _filter_value(price_filter, "tickSize", self.symbol)
        min_qty = float(lot.get("minQty") or 0.0)
        if step_size <= 0 or tick_size <= 0:
            raise InvalidFilterError(f"zero_filter_increment: {self.symbol}")
        return TradingRule(
            symbol=self.symbol,
            step_size=step_size,
            min_qty=min_qty,
            tick_size=tick_size,
        )


class ExchangeInfoPayload(_Payload):
    symbols: list[SymbolPayload]

    def find_symbol(self, symbol: str) -> SymbolPayload | None:
        for entry in self.symbols:
            if entry.symbol == symbol:
                return entry
        return None


class OrderRequest(_Payload):
    """Order as accepted from the caller, before lot/tick adjustment."""

    symbol: str = Field(pattern=r"^[A-Z0-9]+$")
    side: Literal["BUY", "SELL"]
    quantity: float = Field(gt=0.0)
    type: Literal["MARKET", "LIMIT"] = "MARKET"
    price: float | None = Field(default=None, gt=0.0)
    time_in_force: Literal["GTC", "IOC", "FOK"] = Field(default="GTC", alias="timeInForce")

    @model_validator(mode="after")
    def _limit_requires_price(self) -> "OrderRequest":
        if self.type == "LIMIT" and self.price is None:
            raise ValueError("LIMIT requires price")
        return self


def parse_payload(model: type[_Payload], payload: Any, *, context: str) -> Any:
    """Validate an upstream payload. Any violation is an UpstreamError."""
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        raise UpstreamError(
            f"malformed_payload: {context}",
            detail=exc.errors()[0]["msg"],
        ) from exc


def parse_trades(payload: Any, *, context: str) -> list[Trade]:
    """Validate a trade list and return it in chronological order."""
    if not isinstance(payload, list):
        raise UpstreamError(f"malformed_payload: {context}", detail="expected a list")
    trades = [parse_payload(TradePayload, row, context=context).to_trade() for row in payload]
    trades.sort(key=lambda t: (t.timestamp, t.trade_id))
    return trades


def _find_filter(filters: list[dict[str, Any]], filter_type: str) -> dict[str, Any] | None:
    for entry in filters:
        if entry.get("filterType") == filter_type:
            return entry
    return None


def _filter_value(entry: dict[str, Any], key: str, symbol: str) -> float:
    raw = entry.get(key)
    if raw is None:
        raise InvalidFilterError(f"missing_{key}: {symbol}")
    try:
        return float(raw)
    except (TypeError, ValueError) as exc:
        raise InvalidFilterError(f"invalid_{key}: {symbol}") from exc
