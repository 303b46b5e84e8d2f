"""
Tests for `documents/formatting.py`.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from documents.formatting import (
    PLACEHOLDER,
    format_date,
    format_mileage,
    format_money,
    format_percent,
    format_tax_rate,
    or_placeholder,
    yes_no,
)
from domain.financials import TaxRate


@pytest.mark.parametrize(
    "value,expected",
    [
        (Decimal("24550"), "24.550,00 €"),
        (Decimal("0.005"), "0,01 €"),
        (Decimal("1234567.891"), "1.234.567,89 €"),
        (Decimal("-500"), "-500,00 €"),
        ("garbage", "0,00 €"),
    ],
)
def test_format_money(value, expected: str) -> None:
    assert format_money(value) == expected


def test_format_percent() -> None:
    assert format_percent(Decimal("12.345")) == "12,35%"


@pytest.mark.parametrize(
    "rate,expected",
    [("21", "21%"), ("10.5", "10,5%"), ("0", "0%"), (None, "not applicable")],
)
def test_format_tax_rate(rate, expected: str) -> None:
    assert format_tax_rate(TaxRate.of(rate)) == expected


def test_format_mileage() -> None:
    assert format_mileage(45210) == "45.210 km"
    assert format_mileage(None) == PLACEHOLDER


def test_format_date() -> None:
    assert format_date(date(2026, 3, 5)) == "05/03/2026"
    assert format_date(datetime(2026, 3, 5, 23, 0, tzinfo=timezone.utc)) == "05/03/2026"
    assert format_date(None) == PLACEHOLDER


def test_placeholders() -> None:
    assert or_placeholder("  ") == PLACEHOLDER
    assert or_placeholder(None) == PLACEHOLDER
    assert or_placeholder(" Madrid ") == "Madrid"
    assert yes_no(True) == "Yes"
    assert yes_no(False) == "No"
