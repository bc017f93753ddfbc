"""Money helpers for Lilium.

All amounts are Iraqi dinar (IQD) held as ``Decimal`` and stored in
``Numeric(12, 2)`` columns. API payloads carry plain numbers.

Rounding is half-up to two places, applied once per computed figure
(line discount, commission, remittance) rather than on every intermediate.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Union

MONEY_PLACES: Decimal = Decimal("0.01")
ZERO: Decimal = Decimal("0.00")

Number = Union[Decimal, int, float, str]


def to_decimal(value: Number | None) -> Decimal:
    """Convert a number to Decimal without float artefacts (``0.1`` → ``Decimal('0.1')``)."""
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def to_money(value: Number | None) -> Decimal:
    """Round to two decimal places, half-up."""
    return to_decimal(value).quantize(MONEY_PLACES, rounding=ROUND_HALF_UP)


def sum_money(values: Iterable[Number]) -> Decimal:
    """Sum amounts and round the total."""
    return to_money(sum((to_decimal(v) for v in values), Decimal("0")))


def percent_of(amount: Number, percent: Number) -> Decimal:
    """Return ``percent``% of ``amount``, rounded. ``percent_of(20, 20) == 4.00``."""
    return to_money(to_decimal(amount) * to_decimal(percent) / Decimal("100"))


def apply_rate(amount: Number, rate: Number) -> Decimal:
    """Multiply an amount by a fractional rate (``0.1`` == 10%), rounded."""
    return to_money(to_decimal(amount) * to_decimal(rate))
