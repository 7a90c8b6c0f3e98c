"""Currency conversion utilities for the storefront.

Storage unit: major units as fixed-point ``Decimal`` with two places
(``Numeric(12, 2)`` columns, e.g. ``Decimal("1150.00")`` = KES 1,150).
Comparison unit: integer minor units (cents), 100 minor = 1 major.

Gateways disagree on units: Paystack reports minor units, Pesapal reports
major units. Both are normalised to minor units before any comparison.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Union

MINOR_PER_MAJOR: int = 100
TWO_PLACES = Decimal("0.01")

Number = Union[Decimal, int, float, str]


def to_decimal(amount: Number) -> Decimal:
    """Coerce to a two-place Decimal (floats go through ``str`` first)."""
    if isinstance(amount, float):
        amount = str(amount)
    return Decimal(amount).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def to_minor_units(amount: Number) -> int:
    """Convert a major-unit amount to integer minor units (round half-up)."""
    return int(to_decimal(amount) * MINOR_PER_MAJOR)


def from_minor_units(minor: int) -> Decimal:
    """Convert integer minor units back to a two-place major-unit Decimal."""
    return (Decimal(minor) / MINOR_PER_MAJOR).quantize(TWO_PLACES)


def within_tolerance(paid_minor: int, expected_minor: int, tolerance_minor: int) -> bool:
    """True when ``paid`` lies in ``[expected - tolerance, expected + tolerance]``."""
    return abs(paid_minor - expected_minor) <= tolerance_minor
