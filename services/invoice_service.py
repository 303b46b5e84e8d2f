"""
Invoice service.

Confirmed-creation flow for invoices, in its own numbering scope:
  validate -> compute amounts -> allocate number -> persist

Also covers the status lifecycle (paid, cancelled, overdue) and pre-filling
an invoice form from an existing contract.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import List, Optional, Union
from uuid import uuid4

import config
from domain.contract import Contract
from domain.errors import InvariantViolation, ValidationError
from domain.financials import TaxBreakdown, TaxRate, compute_tax_breakdown, validate_invoice_amounts, validate_tax_rate
from domain.invoice import Invoice, InvoiceStatus
from domain.numbering import DocumentScope
from domain.parties import Company, Person
from domain.payment import PaymentMethod
from domain.time import utc_now
from domain.vehicle import Vehicle, VehicleSnapshot
from forms.models import InvoiceForm
from repositories.store import Store
from services.numbering_service import persist_with_number
from services.party_checks import buyer_problems, warn_on_suspect_document

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class InvoicePrefill:
    """Data carried over from a contract into a new invoice."""
    form: InvoiceForm
    buyer: Person
    vehicle: VehicleSnapshot


def describe_vehicle(vehicle: VehicleSnapshot) -> str:
    parts = [vehicle.description]
    if vehicle.plate:
        parts.append(f"plate {vehicle.plate}")
    if vehicle.vin:
        parts.append(f"VIN {vehicle.vin}")
    return ", ".join(part for part in parts if part)


def resolve_due_date(form: InvoiceForm) -> date:
    return form.due_date or form.issue_date + timedelta(days=config.INVOICE_DUE_DAYS)


def compute_invoice_amounts(form: InvoiceForm) -> TaxBreakdown:
    """Base, discount, tax and total for an invoice form. Never raises."""

    return compute_tax_breakdown(
        base_amount=form.base_amount,
        tax_rate=TaxRate.of(form.tax_rate),
        discount=form.discount,
    )


def validate_invoice(form: InvoiceForm, company: Company, buyer: Person) -> None:
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
    if resolve_due_date(form) < form.issue_date:
        problems.append("due_date must not precede issue_date")

    if problems:
        raise ValidationError(problems)


def create_invoice(
    store: Store,
    form: InvoiceForm,
    company: Company,
    buyer: Person,
    vehicle: Union[Vehicle, VehicleSnapshot, None] = None,
) -> Invoice:
    """
    Validate, number and persist an invoice with status `pending`.

    Raises:
        ValidationError: missing buyer data or invalid amounts (no number allocated)
        NumberingConflictError: a number could not be allocated
        PersistenceError: the store failed
    """

    validate_invoice(form, company, buyer)
    warn_on_suspect_document(buyer, context="invoice")

    vehicle_id = form.vehicle_id
    vehicle_description = form.vehicle_description
    if isinstance(vehicle, Vehicle):
        vehicle_id = vehicle_id or vehicle.vehicle_id
        vehicle = vehicle.snapshot()
    if vehicle is not None and not vehicle_description:
        vehicle_description = describe_vehicle(vehicle)

    amounts = compute_invoice_amounts(form)
    invoice_id = str(uuid4())
    bank_account = company.bank_account if form.payment_method == PaymentMethod.BANK_TRANSFER else ""

    def persist(number: str) -> Invoice:
        return store.create_invoice(
            Invoice(
                invoice_id=invoice_id,
                number=number,
                status=InvoiceStatus.PENDING,
                issue_date=form.issue_date,
                due_date=resolve_due_date(form),
                company=company,
                buyer=buyer,
                concept=form.concept,
                base_amount=amounts.base_amount,
                discount=amounts.discount,
                tax_rate=amounts.tax_rate,
                tax_amount=amounts.tax_amount,
                total=amounts.total,
                payment_method=form.payment_method,
                contract_id=form.contract_id,
                vehicle_id=vehicle_id,
                vehicle_description=vehicle_description,
                bank_account=bank_account,
                notes=form.notes,
            )
        )

    invoice = persist_with_number(store, DocumentScope.INVOICE, persist, year=form.issue_date.year)
    logger.info("Invoice %s created (total %s, due %s)", invoice.number, invoice.total, invoice.due_date)
    return invoice


def invoice_form_from_contract(contract: Contract, *, issue_date: Optional[date] = None) -> InvoicePrefill:
    """
    Pre-fill an invoice from a contract: buyer, vehicle, concept, amount,
    tax rate and payment method. The contract reference is informational.
    """

    vehicle = contract.vehicle
    description = describe_vehicle(vehicle)
    concept = f"Sale of used vehicle {description}" if description else "Sale of used vehicle"

    form = InvoiceForm(
        concept=concept,
        base_amount=contract.terms.price_excl_tax,
        tax_rate=contract.terms.tax_rate.percent,
        payment_method=contract.terms.payment_method,
        issue_date=issue_date or date.today(),
        contract_id=contract.contract_id,
        vehicle_id=contract.vehicle_id,
        vehicle_description=description,
    )
    return InvoicePrefill(form=form, buyer=contract.buyer, vehicle=vehicle)


def _load(store: Store, invoice_id: str) -> Invoice:
    invoice = store.get_invoice(invoice_id)
    if invoice is None:
        raise InvariantViolation(f"invoice {invoice_id} does not exist")
    return invoice


def mark_invoice_paid(store: Store, invoice_id: str, *, at: Optional[datetime] = None) -> Invoice:
    """pending/overdue -> paid."""

    invoice = _load(store, invoice_id)
    try:
        paid = invoice.mark_paid(at=at or utc_now())
    except InvariantViolation as e:
        logger.error("Rejected invoice payment: %s", e)
        raise
    store.update_invoice_status(invoice_id, paid.status, paid.paid_at)
    logger.info("Invoice %s paid", invoice.number)
    return paid


def cancel_invoice(store: Store, invoice_id: str) -> Invoice:
    """pending/overdue -> cancelled."""

    invoice = _load(store, invoice_id)
    try:
        cancelled = invoice.cancel()
    except InvariantViolation as e:
        logger.error("Rejected invoice cancellation: %s", e)
        raise
    store.update_invoice_status(invoice_id, cancelled.status)
    logger.info("Invoice %s cancelled", invoice.number)
    return cancelled


def refresh_overdue(store: Store, invoice: Invoice, today: Optional[date] = None) -> Invoice:
    """Flag a pending invoice overdue once its due date has passed; persist only on change."""

    refreshed = invoice.with_overdue_status(today or date.today())
    if refreshed is not invoice:
        store.update_invoice_status(invoice.invoice_id, refreshed.status)
        logger.info("Invoice %s is overdue (due %s)", invoice.number, invoice.due_date)
    return refreshed


__all__ = [
    "InvoicePrefill",
    "describe_vehicle",
    "resolve_due_date",
    "compute_invoice_amounts",
    "validate_invoice",
    "create_invoice",
    "invoice_form_from_contract",
    "mark_invoice_paid",
    "cancel_invoice",
    "refresh_overdue",
]
