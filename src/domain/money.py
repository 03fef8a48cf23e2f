"""
Integer minor-unit arithmetic.

Every charge is held in pence.  Any multiplication by a rate, percentage
or surge multiplier goes through :func:`round_half_up`, so all charge
components round the same way (half away from zero, which for the
non-negative amounts handled here matches JavaScript's ``Math.round``).

Floats are converted through ``str`` before entering ``Decimal`` so that
``10.777 * 100`` is computed as ``1077.7`` rather than
``1077.6999999999998``.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

Number = int | float | Decimal | str

CURRENCY_SYMBOLS = {"GBP": "£", "EUR": "€", "USD": "$"}


def to_decimal(value: Number) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def round_half_up(numerator: Number, denominator: Number = 1) -> int:
    """Return ``numerator / denominator`` rounded half-up to an integer."""
    quotient = to_decimal(numerator) / to_decimal(denominator)
    return int(quotient.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def apply_rate(quantity: Number, rate: Number) -> int:
    """Charge for ``quantity`` units at ``rate`` minor units each."""
    return round_half_up(to_decimal(quantity) * to_decimal(rate))


def percentage_of(amount: int, percent: Number) -> int:
    return round_half_up(to_decimal(amount) * to_decimal(percent), 100)


def format_minor_units(amount: int, currency: str = "GBP") -> str:
    """``1500`` -> ``"£15.00"``."""
    symbol = CURRENCY_SYMBOLS.get(currency.upper(), f"{currency.upper()} ")
    pounds = (Decimal(amount) / 100).quantize(Decimal("0.01"))
    return f"{symbol}{pounds}"
