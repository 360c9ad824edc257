"""Relay error taxonomy."""

from __future__ import annotations

from typing import Any


class RelayError(Exception):
    """Base relay error."""


class ConfigurationError(RelayError):
    """Raised when credentials required for a signed call are missing."""


class UpstreamError(RelayError):
    """Raised when the exchange returns a non-success response or a malformed payload."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        detail: Any = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.detail = detail

    def to_payload(self) -> dict[str, Any]:
        """Error body for the caller, keeping the upstream detail when present."""
        payload: dict[str, Any] = {"error": str(self)}
        if self.status_code is not None:
            payload["status_code"] = self.status_code
        if self.detail is not None:
            payload["detail"] = self.detail
        return payload


class TransientUpstreamError(UpstreamError):
    """Timeout, transport failure, rate limit or 5xx. Safe to retry for reads."""


class InvalidFilterError(RelayError):
    """Raised when trading-rule metadata is missing or zero."""


class SymbolResolutionFailure(RelayError):
    """No quote pairing of an asset has trade history."""

    def __init__(self, asset: str, candidates: list[str]) -> None:
        super().__init__(f"no_trade_history: {asset} ({', '.join(candidates)})")
        self.asset = asset
        self.candidates = candidates
