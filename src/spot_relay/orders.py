"""Order parameter adjustment to lot size and tick size, and order forwarding."""

from __future__ import annotations

from typing import Any

from spot_relay.exchange.schemas import OrderRequest
from spot_relay.market import TRADES, MarketData
from spot_relay.numeric import adjust_quantity, round_price_down
from spot_relay.types import OrderParameters
from spot_relay.utils.logging import get_logger, log_order_submission

_logger = get_logger("spot_relay.orders")


async def adjust_order_parameters(
    market: MarketData,
    symbol: str,
    *,
    quantity: float | None = None,
    quote_amount: float | None = None,
    price: float | None = None,
) -> OrderParameters:
    """Round a raw quantity (or a quote amount) and price to the symbol's trading rule.

    A quote amount is converted at ``price`` when given, otherwise at the last
    price. Quantities below the minimum lot are raised to it.
    """
    if (quantity is None) == (quote_amount is None):
        raise ValueError("exactly one of quantity or quote_amount is required")
    if price is not None and price <= 0:
        raise ValueError("price_must_be_positive")
    symbol = symbol.upper()
    rule = await market.trading_rule(symbol)

    if quote_amount is not None:
        if quote_amount <= 0:
            raise ValueError("quote_amount_must_be_positive")
        reference_price = price if price is not None else await market.price(symbol)
        quantity = quote_amount / reference_price
    elif quantity is not None and quantity <= 0:
        raise ValueError("quantity_must_be_positive")

    return OrderParameters(
        symbol=symbol,
        quantity=adjust_quantity(quantity, rule.step_size, rule.min_qty),
        price=round_price_down(price, rule.tick_size) if price is not None else None,
    )


async def place_order(market: MarketData, request: OrderRequest) -> dict[str, Any]:
    """Adjust an order to the trading rule and forward it to the exchange."""
    adjusted = await adjust_order_parameters(
        market,
        request.symbol,
        quantity=request.quantity,
        price=request.price if request.type == "LIMIT" else None,
    )
    params: dict[str, Any] = {
        "symbol": adjusted.symbol,
        "side": request.side,
        "type": request.type,
        "quantity": adjusted.quantity,
    }
    if request.type == "LIMIT":
        params["price"] = adjusted.price
        params["timeInForce"] = request.time_in_force

    response = await market.client.create_order(params)
    # balances and the symbol's fills have changed
    market.invalidate_account()
    market.cache.invalidate(TRADES, adjusted.symbol)

    log_order_submission(
        _logger,
        symbol=adjusted.symbol,
        side=request.side,
        quantity=adjusted.quantity,
        price=adjusted.price,
        order_id=response.get("orderId"),
        status=str(response.get("status", "submitted")),
        order_type=request.type,
    )
    return response
