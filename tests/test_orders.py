from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any, Callable

import pytest
from pydantic import ValidationError

from spot_relay.errors import InvalidFilterError
from spot_relay.exchange.schemas import OrderRequest
from spot_relay.market import TRADES, MarketData
from spot_relay.orders import adjust_order_parameters, place_order
from spot_relay.types import Trade

if TYPE_CHECKING:
    from conftest import FakeExchangeClient


def test_adjust_quantity_and_price(
    fake_client: FakeExchangeClient,
    market: MarketData,
    lot_rules: Callable[..., dict[str, Any]],
) -> None:
    fake_client.symbols = [lot_rules("BTCUSDT", "0.00001000", "0.00001000", "0.01000000")]

    result = asyncio.run(
        adjust_order_parameters(market, "btcusdt", quantity=0.123456789, price=64_123.4567)
    )

    assert result.symbol == "BTCUSDT"
    assert result.quantity == "0.12345"
    assert result.price == "64123.45"


def test_adjust_quote_amount_uses_last_price(
    fake_client: FakeExchangeClient,
    market: MarketData,
    lot_rules: Callable[..., dict[str, Any]],
) -> None:
    fake_client.symbols = [lot_rules("ETHUSDT", "0.0001", "0.0001", "0.01")]
    fake_client.prices["ETHUSDT"] = 2_500.0

    result = asyncio.run(adjust_order_parameters(market, "ETHUSDT", quote_amount=100.0))

    assert result.quantity == "0.0400"
    assert result.price is None


def test_adjust_quote_amount_with_explicit_price(
    fake_client: FakeExchangeClient,
    market: MarketData,
    lot_rules: Callable[..., dict[str, Any]],
) -> None:
    fake_client.symbols = [lot_rules("ETHUSDT", "0.0001", "0.0001", "0.01")]

    result = asyncio.run(
        adjust_order_parameters(market, "ETHUSDT", quote_amount=100.0, price=2_000.009)
    )

    assert result.quantity == "0.0499"
    assert result.price == "2000.00"
    assert fake_client.count("price", "ETHUSDT") == 0


def test_adjust_raises_small_quantity_to_minimum(
    fake_client: FakeExchangeClient,
    market: MarketData,
    lot_rules: Callable[..., dict[str, Any]],
) -> None:
    fake_client.symbols = [lot_rules("DOGEUSDT", "1.00000000", "10.00000000", "0.00001000")]

    result = asyncio.run(adjust_order_parameters(market, "DOGEUSDT", quantity=3.7))

    assert result.quantity == "10"


def test_unknown_symbol_and_zero_filters_are_invalid(
    fake_client: FakeExchangeClient,
    market: MarketData,
    lot_rules: Callable[..., dict[str, Any]],
) -> None:
    fake_client.symbols = [lot_rules("BADUSDT", "0.00000000", "0.0", "0.01")]

    with pytest.raises(InvalidFilterError):
        asyncio.run(adjust_order_parameters(market, "NOPEUSDT", quantity=1.0))
    with pytest.raises(InvalidFilterError):
        asyncio.run(adjust_order_parameters(market, "BADUSDT", quantity=1.0))


def test_exchange_info_is_cached(
    fake_client: FakeExchangeClient,
    market: MarketData,
    lot_rules: Callable[..., dict[str, Any]],
) -> None:
    fake_client.symbols = [lot_rules("BTCUSDT", "0.00001", "0.00001", "0.01")]

    asyncio.run(adjust_order_parameters(market, "BTCUSDT", quantity=1.0))
    asyncio.run(adjust_order_parameters(market, "BTCUSDT", quantity=2.0))

    assert fake_client.count("exchange_info") == 1


def test_non_positive_price_is_rejected(
    fake_client: FakeExchangeClient,
    market: MarketData,
) -> None:
    with pytest.raises(ValueError, match="price_must_be_positive"):
        asyncio.run(adjust_order_parameters(market, "ETHUSDT", quote_amount=100.0, price=0.0))
    with pytest.raises(ValueError, match="price_must_be_positive"):
        asyncio.run(adjust_order_parameters(market, "ETHUSDT", quantity=1.0, price=-5.0))
    assert fake_client.count("exchange_info") == 0


def test_exactly_one_amount_is_required(market: MarketData) -> None:
    with pytest.raises(ValueError):
        asyncio.run(adjust_order_parameters(market, "BTCUSDT"))
    with pytest.raises(ValueError):
        asyncio.run(adjust_order_parameters(market, "BTCUSDT", quantity=1.0, quote_amount=5.0))


def test_place_limit_order_forwards_adjusted_params(
    fake_client: FakeExchangeClient,
    market: MarketData,
    lot_rules: Callable[..., dict[str, Any]],
    make_trade: Callable[..., Trade],
) -> None:
    fake_client.symbols = [lot_rules("BTCUSDT", "0.00001", "0.00001", "0.01")]
    fake_client.balances = [{"asset": "USDT", "free": "1000", "locked": "0"}]
    fake_client.trades["BTCUSDT"] = [make_trade("BTCUSDT", "buy", 1.0, 100.0)]

    async def _run() -> dict[str, object]:
        await market.account()
        await market.trades("BTCUSDT")
        request = OrderRequest(symbol="BTCUSDT", side="BUY", quantity=0.0123456, type="LIMIT", price=60_000.129)
        return await place_order(market, request)

    response = asyncio.run(_run())

    assert fake_client.orders == [
        {
            "symbol": "BTCUSDT",
            "side": "BUY",
            "type": "LIMIT",
            "quantity": "0.01234",
            "price": "60000.12",
            "timeInForce": "GTC",
        }
    ]
    assert response["orderId"] == 42
    assert market.cache.peek("account", "_") is None
    assert market.cache.peek(TRADES, "BTCUSDT") is None


def test_place_market_order_omits_price(
    fake_client: FakeExchangeClient,
    market: MarketData,
    lot_rules: Callable[..., dict[str, Any]],
) -> None:
    fake_client.symbols = [lot_rules("ETHUSDT", "0.0001", "0.0001", "0.01")]
    request = OrderRequest(symbol="ETHUSDT", side="SELL", quantity=0.5)

    asyncio.run(place_order(market, request))

    assert fake_client.orders == [
        {"symbol": "ETHUSDT", "side": "SELL", "type": "MARKET", "quantity": "0.5000"}
    ]


def test_limit_order_requires_price() -> None:
    with pytest.raises(ValidationError):
        OrderRequest(symbol="BTCUSDT", side="BUY", quantity=1.0, type="LIMIT")
