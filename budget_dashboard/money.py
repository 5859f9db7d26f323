"""Fixed-point monetary helpers.

All money inside the package is a :class:`decimal.Decimal` quantized to
cents.  Floats coming off the wire are converted through ``repr`` so that
``0.1`` becomes ``Decimal('0.10')`` rather than the binary expansion.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from numbers import Real
from typing import Iterable, Union

CENT = Decimal('0.01')
ZERO = Decimal('0.00')
HUNDRED = Decimal('100')
# Upper bound on the magnitude of any single amount
MAX_AMOUNT = Decimal('1000000000000')

MoneyLike = Union[int, float, Decimal]


def is_money_like(value: object) -> bool:
    """True for real numbers, excluding booleans and NaN/infinity."""
    if isinstance(value, bool):
        return False
    if isinstance(value, Decimal):
        return value.is_finite()
    if isinstance(value, Real):
        return value == value and value not in (float('inf'), float('-inf'))
    return False


def to_money(value: MoneyLike) -> Decimal:
    """Convert a number to a cent-quantized Decimal.

    Raises:
        TypeError: If ``value`` is not a finite real number.
        ValueError: If the magnitude exceeds :data:`MAX_AMOUNT`.
    """
    if not is_money_like(value):
        raise TypeError(f"Expected a finite number, got {value!r}")
    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, int):
        amount = Decimal(value)
    else:
        amount = Decimal(repr(float(value)))
    if abs(amount) > MAX_AMOUNT:
        raise ValueError(f"Amount {value!r} exceeds the supported maximum of {MAX_AMOUNT}")
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def sum_money(values: Iterable[Decimal]) -> Decimal:
    """Sum Decimal amounts, starting from ``0.00`` so empty input stays quantized."""
    total = ZERO
    for value in values:
        total += value
    return total.quantize(CENT, rounding=ROUND_HALF_UP)


def percentage(part: Decimal, whole: Decimal) -> Decimal:
    """Return ``part / whole * 100`` rounded to two places, or 0 when ``whole`` is 0."""
    if not whole:
        return ZERO
    return (part / whole * HUNDRED).quantize(CENT, rounding=ROUND_HALF_UP)
