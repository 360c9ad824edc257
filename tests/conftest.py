from __future__ import annotations

from itertools import count
from typing import Any, Callable

import pytest

from spot_relay.cache import TTLCache
from spot_relay.config import Settings
from spot_relay.errors import UpstreamError
from spot_relay.exchange.schemas import AccountPayload, ExchangeInfoPayload
from spot_relay.market import MarketData
from spot_relay.types import Trade


class FakeClock:
    def __init__(self, start: float = 1_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeExchangeClient:
    """In-memory exchange with call recording."""

    def __init__(self) -> None:
        self.balances: list[dict[str, str]] = []
        self.trades: dict[str, list[Trade]] = {}
        self.prices: dict[str, float] = {}
        self.symbols: list[dict[str, Any]] = []
        self.failing_symbols: set[str] = set()
        self.account_error: Exception | None = None
        self.calls: list[tuple[str, str | None]] = []
        self.orders: list[dict[str, Any]] = []
        self.closed = False

    async def get_account(self) -> AccountPayload:
        self.calls.append(("account", None))
        if self.account_error is not None:
            raise self.account_error
        return AccountPayload.model_validate({"accountType": "SPOT", "balances": self.balances})

    async def get_my_trades(self, symbol: str) -> list[Trade]:
        self.calls.append(("trades", symbol))
        if symbol in self.failing_symbols:
            raise UpstreamError(
                "upstream_rejected: GET /api/v3/myTrades",
                status_code=400,
                detail={"code": -1121, "msg": "Invalid symbol."},
            )
        return self.trades.get(symbol, [])

    async def get_ticker_price(self, symbol: str) -> float:
        self.calls.append(("price", symbol))
        if symbol not in self.prices:
            raise UpstreamError("upstream_rejected: GET /api/v3/ticker/price", status_code=400)
        return self.prices[symbol]

    async def get_exchange_info(self) -> ExchangeInfoPayload:
        self.calls.append(("exchange_info", None))
        return ExchangeInfoPayload.model_validate({"symbols": self.symbols})

    async def create_order(self, params: dict[str, Any]) -> dict[str, Any]:
        self.calls.append(("order", params["symbol"]))
        self.orders.append(params)
        return {"orderId": 42, "status": "NEW", **params}

    async def aclose(self) -> None:
        self.closed = True

    def count(self, kind: str, symbol: str | None = None) -> int:
        return sum(1 for call in self.calls if call == (kind, symbol))


def _lot_rules(symbol: str, step: str, min_qty: str, tick: str) -> dict[str, Any]:
    return {
        "symbol": symbol,
        "filters": [
            {"filterType": "PRICE_FILTER", "minPrice": tick, "maxPrice": "100000.0", "tickSize": tick},
            {"filterType": "LOT_SIZE", "minQty": min_qty, "maxQty": "9000.0", "stepSize": step},
        ],
    }


@pytest.fixture
def lot_rules() -> Callable[..., dict[str, Any]]:
    return _lot_rules


@pytest.fixture
def make_trade() -> Callable[..., Trade]:
    ids = count(1)

    def _make(symbol: str, side: str, qty: float, price: float) -> Trade:
        trade_id = next(ids)
        return Trade(
            symbol=symbol,
            trade_id=trade_id,
            quantity=qty,
            price=price,
            is_buyer=side == "buy",
            timestamp=1_700_000_000_000 + trade_id,
        )

    return _make


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        binance_api_key="test-key",
        binance_api_secret="test-secret",
        binance_fee=0.0,
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def fake_client() -> FakeExchangeClient:
    return FakeExchangeClient()


@pytest.fixture
def market(fake_client: FakeExchangeClient, settings: Settings, clock: FakeClock) -> MarketData:
    return MarketData(fake_client, settings, TTLCache(clock=clock))
