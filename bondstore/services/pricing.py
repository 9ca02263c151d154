"""Currency helpers shared by distributions and reports."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from ..core.config import settings

TWOPLACES = Decimal("0.01")
ZERO = Decimal("0.00")


def to_decimal(value: Any) -> Decimal:
    """Best-effort conversion of stored values to ``Decimal``; input prices are validated by the crud layer."""

    if isinstance(value, Decimal):
        return value
    if value is None:
        return Decimal("0")
    if isinstance(value, (int, float)):
        return Decimal(str(value))
    if isinstance(value, str):
        cleaned = value.strip().replace("€", "").replace("$", "").replace(",", "")
        if not cleaned:
            return Decimal("0")
        try:
            return Decimal(cleaned)
        except InvalidOperation:
            return Decimal("0")
    return Decimal("0")


def quantize_currency(value: Decimal) -> Decimal:
    return value.quantize(TWOPLACES, rounding=ROUND_HALF_UP) if value else ZERO


def price_multiplier(representative: bool) -> Decimal:
    """Representatives pay the plain price; crew pay the configured markup on top."""

    if representative:
        return Decimal("1")
    return Decimal("1") + settings.CREW_MARKUP


def unit_price_with_tax(unit_price: Any, *, representative: bool) -> Decimal:
    """Display price per unit. Line totals do not multiply this rounded value."""

    return quantize_currency(to_decimal(unit_price) * price_multiplier(representative))


def line_total(quantity: int, unit_price: Any, *, representative: bool) -> Decimal:
    """Amount charged for one distribution line, rounded to cents."""

    amount = Decimal(int(quantity)) * to_decimal(unit_price) * price_multiplier(representative)
    return quantize_currency(amount)


__all__ = [
    "TWOPLACES",
    "ZERO",
    "line_total",
    "price_multiplier",
    "quantize_currency",
    "to_decimal",
    "unit_price_with_tax",
]
