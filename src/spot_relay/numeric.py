"""Rounding of prices and quantities to exchange tick and lot granularity."""

from __future__ import annotations

from decimal import ROUND_CEILING, ROUND_FLOOR, Decimal, InvalidOperation

from spot_relay.errors import InvalidFilterError

Number = float | int | str | Decimal


def _to_decimal(value: Number) -> Decimal:
    # str() of a float is its shortest round-tripping repr, e.g. 1e-07 or 0.1
    try:
        result = Decimal(str(value).strip())
    except InvalidOperation as exc:
        raise ValueError(f"not_a_number: {value!r}") from exc
    if not result.is_finite():
        raise ValueError(f"not_a_number: {value!r}")
    return result


def _increment(value: Number | None, name: str) -> Decimal:
    if value is None:
        raise InvalidFilterError(f"missing_{name}")
    try:
        increment = _to_decimal(value)
    except ValueError as exc:
        raise InvalidFilterError(f"invalid_{name}: {value!r}") from exc
    if increment <= 0:
        raise InvalidFilterError(f"invalid_{name}: {value!r}")
    return increment


def decimal_places(value: Number) -> int:
    """Number of fractional digits in the canonical decimal form of ``value``.

    Plain and scientific notation agree: ``0.0000001`` and ``1e-7`` both give 7.
    """
    exponent = _to_decimal(value).normalize().as_tuple().exponent
    return max(0, -int(exponent))


def _floor_to_multiple(value: Decimal, increment: Decimal) -> Decimal:
    steps = (value / increment).to_integral_value(rounding=ROUND_FLOOR)
    return steps * increment


def round_price_down(price: Number, tick_size: Number | None) -> str:
    """Floor ``price`` to a multiple of ``tick_size``."""
    tick = _increment(tick_size, "tick_size")
    places = decimal_places(tick)
    floored = _floor_to_multiple(_to_decimal(price), tick)
    return f"{floored:.{places}f}"


def adjust_quantity(qty: Number, step_size: Number | None, min_qty: Number) -> str:
    """Floor ``qty`` to a multiple of ``step_size``, raising it to ``min_qty`` when below.

    Never rejects an order for being too small; the caller decides whether
    rounding up to the minimum tradable size is acceptable.
    """
    step = _increment(step_size, "step_size")
    places = decimal_places(step)
    floored = _floor_to_multiple(_to_decimal(qty), step)
    minimum = _to_decimal(min_qty)
    if floored < minimum:
        # smallest multiple of the step at or above the minimum lot
        floored = (minimum / step).to_integral_value(rounding=ROUND_CEILING) * step
    return f"{floored:.{places}f}"
