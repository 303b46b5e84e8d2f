"""
Pure formatting helpers used by the document layouts.

Money is rounded half-up to two decimals here and nowhere else; the rest of
the system carries full Decimal precision. Separators and currency symbol
come from config (es-ES style by default: 24.550,00 €).
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Optional

import config
from domain.financials import TaxRate, to_money

PLACEHOLDER = "-"

_CENTS = Decimal("0.01")


def _group_thousands(digits: str) -> str:
    groups = []
    while len(digits) > 3:
        groups.insert(0, digits[-3:])
        digits = digits[:-3]
    groups.insert(0, digits)
    return config.THOUSANDS_SEPARATOR.join(groups)


def _format_number(value: Decimal, places: int) -> str:
    quantum = Decimal(1).scaleb(-places)
    rounded = value.quantize(quantum, rounding=ROUND_HALF_UP)
    sign = "-" if rounded < 0 else ""
    integer, _, fraction = f"{abs(rounded):.{places}f}".partition(".")
    text = _group_thousands(integer)
    if places:
        text = f"{text}{config.DECIMAL_SEPARATOR}{fraction}"
    return f"{sign}{text}"


def format_money(value: Any) -> str:
    """24550 -> '24.550,00 €'. Unparseable input formats as zero."""

    return f"{_format_number(to_money(value), 2)} {config.CURRENCY_SYMBOL}"


def format_percent(value: Any, places: int = 2) -> str:
    """12.345 -> '12,35%'."""

    return f"{_format_number(to_money(value), places)}%"


def format_tax_rate(rate: TaxRate) -> str:
    """'21%', '10,5%', '0%' or 'not applicable'."""

    if not rate.is_applicable:
        return rate.label
    normalized = rate.percent.normalize()
    places = max(0, -normalized.as_tuple().exponent)
    return f"{_format_number(rate.percent, places)}%"


def format_mileage(km: Optional[int]) -> str:
    if km is None:
        return PLACEHOLDER
    return f"{_format_number(Decimal(km), 0)} km"


def format_date(value: Optional[date]) -> str:
    """dd/mm/yyyy, or the placeholder when empty."""

    if value is None:
        return PLACEHOLDER
    if isinstance(value, datetime):
        value = value.date()
    return value.strftime("%d/%m/%Y")


def or_placeholder(value: Optional[str]) -> str:
    if value is None:
        return PLACEHOLDER
    text = str(value).strip()
    return text if text else PLACEHOLDER


def yes_no(value: bool) -> str:
    return "Yes" if value else "No"


__all__ = [
    "PLACEHOLDER",
    "format_money",
    "format_percent",
    "format_tax_rate",
    "format_mileage",
    "format_date",
    "or_placeholder",
    "yes_no",
]
