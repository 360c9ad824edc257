"""HMAC-SHA256 query signing for authenticated exchange calls."""

from __future__ import annotations

import hashlib
import hmac
from typing import Any, Mapping
from urllib.parse import urlencode

from spot_relay.errors import ConfigurationError


def _encode_value(value: Any) -> Any:
    if isinstance(value, bool):
        return "true" if value else "false"
    return value


def encode_params(params: Mapping[str, Any]) -> str:
    """URL-encode params in insertion order, skipping None values."""
    return urlencode(
        [(key, _encode_value(value)) for key, value in params.items() if value is not None]
    )


def sign_query(params: Mapping[str, Any], secret: str | None) -> str:
    """Return ``<query>&signature=<hex digest>`` keyed by the API secret.

    Identical params (keys, values and ordering) and secret always produce
    the identical string; the exchange recomputes the digest server-side.
    """
    if not secret:
        raise ConfigurationError("missing_binance_api_secret")
    query = encode_params(params)
    signature = hmac.new(secret.encode("utf-8"), query.encode("utf-8"), hashlib.sha256).hexdigest()
    return f"{query}&signature={signature}"
