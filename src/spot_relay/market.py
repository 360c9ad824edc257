"""Cache-backed access to account, trade, price and trading-rule data."""

from __future__ import annotations

from typing import Any, Protocol

from spot_relay.cache import TTLCache
from spot_relay.config import Settings
from spot_relay.errors import InvalidFilterError
from spot_relay.exchange.schemas import AccountPayload, ExchangeInfoPayload
from spot_relay.types import Trade, TradingRule

ACCOUNT = "account"
TRADES = "trades"
PRICE = "price"
EXCHANGE_INFO = "exchange_info"

_GLOBAL_KEY = "_"


class ExchangeClient(Protocol):
    """The upstream calls the relay depends on."""

    async def get_account(self) -> AccountPayload: ...

    async def get_my_trades(self, symbol: str) -> list[Trade]: ...

    async def get_ticker_price(self, symbol: str) -> float: ...

    async def get_exchange_info(self) -> ExchangeInfoPayload: ...

    async def create_order(self, params: dict[str, Any]) -> dict[str, Any]: ...


class MarketData:
    """Binds each data category to its fetcher and TTL."""

    def __init__(self, client: ExchangeClient, settings: Settings, cache: TTLCache | None = None) -> None:
        self.client = client
        self.settings = settings
        self.cache = cache if cache is not None else TTLCache()

    async def account(self) -> AccountPayload:
        return await self.cache.get(
            ACCOUNT, _GLOBAL_KEY, self.settings.account_ttl, self.client.get_account
        )

    async def trades(self, symbol: str) -> list[Trade]:
        return await self.cache.get(
            TRADES,
            symbol,
            self.settings.trades_ttl,
            lambda: self.client.get_my_trades(symbol),
        )

    async def price(self, symbol: str) -> float:
        return await self.cache.get(
            PRICE,
            symbol,
            self.settings.price_ttl,
            lambda: self.client.get_ticker_price(symbol),
        )

    async def exchange_info(self) -> ExchangeInfoPayload:
        return await self.cache.get(
            EXCHANGE_INFO,
            _GLOBAL_KEY,
            self.settings.exchange_info_ttl,
            self.client.get_exchange_info,
        )

    async def trading_rule(self, symbol: str) -> TradingRule:
        """Lot size and tick of ``symbol``; unknown symbols are invalid filters."""
        info = await self.exchange_info()
        entry = info.find_symbol(symbol)
        if entry is None:
            raise InvalidFilterError(f"unknown_symbol: {symbol}")
        return entry.to_trading_rule()

    def invalidate_account(self) -> None:
        self.cache.invalidate(ACCOUNT)
