"""Async REST client for the Binance.US spot API."""

from __future__ import annotations

import asyncio
import time
from time import perf_counter
from typing import Any, Callable

import httpx
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential
from tenacity.wait import wait_base

from spot_relay.config import Settings
from spot_relay.errors import ConfigurationError, TransientUpstreamError, UpstreamError
from spot_relay.exchange.schemas import (
    AccountPayload,
    ExchangeInfoPayload,
    TickerPricePayload,
    parse_payload,
    parse_trades,
)
from spot_relay.exchange.signing import sign_query
from spot_relay.types import Trade
from spot_relay.utils.logging import get_logger, log_upstream_call

_API_KEY_HEADER = "X-MBX-APIKEY"


class BinanceRestClient:
    """Signed and public calls with timeout, bounded retry and a concurrency cap.

    Reads are retried on timeouts, transport failures, 429 and 5xx. Order
    submission is sent once.
    """

    def __init__(
        self,
        settings: Settings,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        clock: Callable[[], float] = time.time,
        wait: wait_base | None = None,
    ) -> None:
        self._settings = settings
        self._logger = get_logger("spot_relay.exchange.client")
        self._clock = clock
        self._wait = wait or wait_exponential(multiplier=0.5, min=0.5, max=8)
        self._semaphore = asyncio.Semaphore(settings.max_concurrent_requests)
        self._client = httpx.AsyncClient(
            base_url=settings.binance_base_url,
            timeout=settings.request_timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "BinanceRestClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def get_account(self) -> AccountPayload:
        """Fetch per-asset free/locked balances (signed)."""
        payload = await self._read("/api/v3/account", signed=True)
        return parse_payload(AccountPayload, payload, context="account")

    async def get_my_trades(self, symbol: str) -> list[Trade]:
        """Fetch the account's trades for one symbol, oldest first (signed)."""
        payload = await self._read("/api/v3/myTrades", {"symbol": symbol}, signed=True)
        return parse_trades(payload, context=f"myTrades {symbol}")

    async def get_ticker_price(self, symbol: str) -> float:
        """Fetch the last traded price of one symbol."""
        payload = await self._read("/api/v3/ticker/price", {"symbol": symbol})
        return parse_payload(TickerPricePayload, payload, context=f"ticker {symbol}").price

    async def get_exchange_info(self) -> ExchangeInfoPayload:
        """Fetch symbol trading rules."""
        payload = await self._read("/api/v3/exchangeInfo")
        return parse_payload(ExchangeInfoPayload, payload, context="exchangeInfo")

    async def create_order(self, params: dict[str, Any]) -> dict[str, Any]:
        """Submit an order (signed, never retried)."""
        payload = await self._send("POST", "/api/v3/order", params, signed=True)
        if not isinstance(payload, dict):
            raise UpstreamError("malformed_payload: order", detail="expected an object")
        return payload

    async def _read(
        self,
        path: str,
        params: dict[str, Any] | None = None,
        *,
        signed: bool = False,
    ) -> Any:
        retrying = AsyncRetrying(
            retry=retry_if_exception_type(TransientUpstreamError),
            wait=self._wait,
            stop=stop_after_attempt(self._settings.max_retries),
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                return await self._send("GET", path, params or {}, signed=signed)
        raise AssertionError("unreachable")  # pragma: no cover

    async def _send(
        self,
        method: str,
        path: str,
        params: dict[str, Any],
        *,
        signed: bool,
    ) -> Any:
        headers: dict[str, str] = {}
        url = path
        query_params: dict[str, Any] | None = params or None
        if signed:
            if not self._settings.binance_api_key:
                raise ConfigurationError("missing_binance_api_key")
            # Timestamp is taken per attempt so retried calls are not rejected as stale.
            signed_query = sign_query(
                {**params, "timestamp": int(self._clock() * 1000)},
                self._settings.binance_api_secret,
            )
            url = f"{path}?{signed_query}"
            query_params = None
            headers[_API_KEY_HEADER] = self._settings.binance_api_key

        started = perf_counter()
        async with self._semaphore:
            try:
                response = await self._client.request(
                    method,
                    url,
                    params=query_params,
                    headers=headers,
                )
            except httpx.TransportError as exc:
                log_upstream_call(
                    self._logger,
                    method=method,
                    path=path,
                    success=False,
                    latency_ms=(perf_counter() - started) * 1000,
                    error=str(exc) or type(exc).__name__,
                )
                raise TransientUpstreamError(
                    f"transport_error: {method} {path}",
                    detail=str(exc) or type(exc).__name__,
                ) from exc

        elapsed_ms = (perf_counter() - started) * 1000
        status = response.status_code
        log_upstream_call(
            self._logger,
            method=method,
            path=path,
            success=status < 400,
            latency_ms=elapsed_ms,
            status_code=status,
        )
        if status == 429 or status >= 500:
            raise TransientUpstreamError(
                f"upstream_unavailable: {method} {path}",
                status_code=status,
                detail=_error_detail(response),
            )
        if status >= 400:
            raise UpstreamError(
                f"upstream_rejected: {method} {path}",
                status_code=status,
                detail=_error_detail(response),
            )
        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as exc:
            raise UpstreamError(
                f"malformed_payload: {method} {path}",
                status_code=status,
                detail=response.text[:500],
            ) from exc


def _error_detail(response: httpx.Response) -> Any:
    """Upstream error body; Binance usually sends {"code": ..., "msg": ...}."""
    try:
        return response.json()
    except ValueError:
        return response.text[:500]
