"""
Proforma service.

Proformas are quotes laid out like invoices, numbered in their own scope:
  validate -> compute amounts -> allocate number -> persist

A proforma that turns into a sale is carried over into an invoice form with
invoice_form_from_proforma(); once the invoice exists the proforma is marked
invoiced with its id.
"""

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from typing import List, Optional
from uuid import uuid4

import config
from domain.errors import InvariantViolation, ValidationError
from domain.financials import HUNDRED, TaxBreakdown, TaxRate, compute_tax_breakdown, validate_invoice_amounts, validate_tax_rate
from domain.numbering import DocumentScope
from domain.parties import Company, Person
from domain.payment import PaymentMethod
from domain.proforma import Proforma, ProformaStatus
from forms.models import InvoiceForm, ProformaForm
from repositories.store import Store
from services.numbering_service import persist_with_number
from services.party_checks import buyer_problems, warn_on_suspect_document

logger = logging.getLogger(__name__)


def compute_proforma_amounts(form: ProformaForm) -> TaxBreakdown:
    """Base, discount, tax and total for a proforma form. Never raises."""

    return compute_tax_breakdown(
        base_amount=form.base_amount,
        tax_rate=TaxRate.of(form.tax_rate),
        discount=form.discount,
    )


def resolve_reservation_amount(form: ProformaForm, total: Decimal) -> Decimal:
    """The suggested reservation: the form's amount, or DEPOSIT_DEFAULT_PERCENT of the total."""

    if form.reservation_amount is not None:
        return form.reservation_amount
    return total * config.DEPOSIT_DEFAULT_PERCENT / HUNDRED


def validate_proforma(form: ProformaForm, company: Company, buyer: Person) -> None:
    """
    Raises:
        ValidationError: every problem found, in one error
    """

    problems: List[str] = list(buyer_problems(buyer))
    if not company.display_name.strip():
        problems.append("company name is required")
    for check in (
        lambda: validate_invoice_amounts(form.base_amount, form.discount),
        lambda: validate_tax_rate(form.tax_rate),
    ):
        try:
            check()
        except ValidationError as e:
            problems.extend(e.problems)
    if form.validity_days < 1:
        problems.append("validity_days must be at least 1")
    if not problems:
        total = compute_proforma_amounts(form).total
        if resolve_reservation_amount(form, total) > total:
            problems.append("reservation_amount must not exceed the total")

    if problems:
        raise ValidationError(problems)


def create_proforma(store: Store, form: ProformaForm, company: Company, buyer: Person) -> Proforma:
    """
    Validate, number and persist a proforma with status `valid`.

    Raises:
        ValidationError: missing buyer data or invalid amounts (no number allocated)
        NumberingConflictError: a number could not be allocated
        PersistenceError: the store failed
    """

    validate_proforma(form, company, buyer)
    warn_on_suspect_document(buyer, context="proforma")

    amounts = compute_proforma_amounts(form)
    reservation = resolve_reservation_amount(form, amounts.total)
    proforma_id = str(uuid4())
    bank_account = company.bank_account if form.payment_method == PaymentMethod.BANK_TRANSFER else ""

    def persist(number: str) -> Proforma:
        return store.create_proforma(
            Proforma(
                proforma_id=proforma_id,
                number=number,
                status=ProformaStatus.VALID,
                issue_date=form.issue_date,
                validity_days=form.validity_days,
                company=company,
                buyer=buyer,
                concept=form.concept,
                base_amount=amounts.base_amount,
                discount=amounts.discount,
                tax_rate=amounts.tax_rate,
                tax_amount=amounts.tax_amount,
                total=amounts.total,
                payment_method=form.payment_method,
                reservation_amount=reservation,
                vehicle_id=form.vehicle_id,
                vehicle_description=form.vehicle_description,
                bank_account=bank_account,
                notes=form.notes,
            )
        )

    proforma = persist_with_number(store, DocumentScope.PROFORMA, persist, year=form.issue_date.year)
    logger.info("Proforma %s created (total %s, valid until %s)", proforma.number, proforma.total, proforma.expires_on)
    return proforma


def invoice_form_from_proforma(proforma: Proforma, *, issue_date: Optional[date] = None) -> InvoiceForm:
    """Carry concept, amounts, tax rate, payment method and vehicle over into an invoice form."""

    if proforma.status != ProformaStatus.VALID:
        raise InvariantViolation(f"proforma {proforma.number} is {proforma.status.value} and cannot be invoiced")
    return InvoiceForm(
        concept=proforma.concept,
        base_amount=proforma.base_amount,
        discount=proforma.discount,
        tax_rate=proforma.tax_rate.percent,
        payment_method=proforma.payment_method,
        issue_date=issue_date or date.today(),
        vehicle_id=proforma.vehicle_id,
        vehicle_description=proforma.vehicle_description,
        notes=proforma.notes,
    )


def _load(store: Store, proforma_id: str) -> Proforma:
    proforma = store.get_proforma(proforma_id)
    if proforma is None:
        raise InvariantViolation(f"proforma {proforma_id} does not exist")
    return proforma


def mark_proforma_invoiced(store: Store, proforma_id: str, invoice_id: str) -> Proforma:
    """valid -> invoiced, recording the invoice it became."""

    proforma = _load(store, proforma_id)
    try:
        invoiced = proforma.mark_invoiced(invoice_id)
    except InvariantViolation as e:
        logger.error("Rejected proforma invoicing: %s", e)
        raise
    store.update_proforma_status(proforma_id, invoiced.status, invoice_id)
    logger.info("Proforma %s invoiced", proforma.number)
    return invoiced


def cancel_proforma(store: Store, proforma_id: str) -> Proforma:
    """valid -> cancelled."""

    proforma = _load(store, proforma_id)
    try:
        cancelled = proforma.cancel()
    except InvariantViolation as e:
        logger.error("Rejected proforma cancellation: %s", e)
        raise
    store.update_proforma_status(proforma_id, cancelled.status)
    logger.info("Proforma %s cancelled", proforma.number)
    return cancelled


__all__ = [
    "compute_proforma_amounts",
    "resolve_reservation_amount",
    "validate_proforma",
    "create_proforma",
    "invoice_form_from_proforma",
    "mark_proforma_invoiced",
    "cancel_proforma",
]
