"""
Tests for `forms/models.py`.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from domain.errors import ValidationError
from domain.payment import PaymentMethod
from forms.models import ContractForm, DepositForm, InvoiceForm, PaymentForm, PricingForm, ProformaForm, parse_form


def test_parse_form_builds_the_model() -> None:
    form = parse_form(PricingForm, {"list_price": "24900.00", "discount": "500"})

    assert form.list_price == Decimal("24900.00")
    assert form.additional_expenses == Decimal("0")


def test_parse_form_reports_every_bad_field() -> None:
    with pytest.raises(ValidationError) as excinfo:
        parse_form(PricingForm, {"list_price": "-1", "discount": "abc"})

    problems = excinfo.value.problems
    assert len(problems) == 2
    assert any(problem.startswith("list_price") for problem in problems)
    assert any(problem.startswith("discount") for problem in problems)


def test_bank_transfer_is_not_offered_when_closing_a_sale() -> None:
    with pytest.raises(ValidationError):
        parse_form(PaymentForm, {"payment_method": "bank_transfer"})


def test_installment_count_must_be_positive() -> None:
    with pytest.raises(ValidationError):
        parse_form(PaymentForm, {"payment_method": "financing", "installment_count": 0})


def test_contract_form_defaults() -> None:
    form = parse_form(ContractForm, {"price_excl_tax": "20000"})

    assert form.tax_rate == Decimal("21")
    assert form.payment_method == PaymentMethod.CASH
    assert form.signing_date == date.today()
    assert form.has_warranty
    assert form.warranty_km == 12000
    assert (form.spare_wheel, form.jack, form.spare_keys, form.manuals) == (True, True, False, True)
    assert not form.draft


def test_contract_form_tax_not_applicable() -> None:
    assert parse_form(ContractForm, {"price_excl_tax": "20000", "tax_rate": None}).tax_rate is None


def test_contract_form_tax_rate_bounds() -> None:
    with pytest.raises(ValidationError):
        parse_form(ContractForm, {"price_excl_tax": "20000", "tax_rate": "101"})


def test_invoice_form_concept_is_required() -> None:
    with pytest.raises(ValidationError):
        parse_form(InvoiceForm, {"concept": "   ", "base_amount": "100"})

    form = parse_form(InvoiceForm, {"concept": "  Vehicle sale ", "base_amount": "100"})
    assert form.concept == "Vehicle sale"
    assert form.due_date is None


def test_invoice_form_base_amount_must_be_positive() -> None:
    with pytest.raises(ValidationError):
        parse_form(InvoiceForm, {"concept": "Vehicle sale", "base_amount": "0"})


def test_deposit_form_leaves_amount_and_deadline_to_the_service() -> None:
    form = parse_form(DepositForm, {"total_price": "24550"})

    assert form.deposit_amount is None
    assert form.sale_deadline is None
    assert form.deposit_date == date.today()


def test_deposit_form_amounts_must_be_positive() -> None:
    with pytest.raises(ValidationError) as excinfo:
        parse_form(DepositForm, {"total_price": "0", "deposit_amount": "-5"})

    assert len(excinfo.value.problems) == 2


def test_proforma_form_defaults() -> None:
    form = parse_form(ProformaForm, {"concept": "Quote", "base_amount": "20000"})

    assert form.validity_days == 15
    assert form.reservation_amount is None
    assert form.payment_method == PaymentMethod.BANK_TRANSFER


def test_proforma_form_validity_must_be_at_least_one_day() -> None:
    with pytest.raises(ValidationError):
        parse_form(ProformaForm, {"concept": "Quote", "base_amount": "20000", "validity_days": 0})
