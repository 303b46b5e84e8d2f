"""
Deposit service.

Confirmed-creation flow for deposit (reservation) agreements, in their own
numbering scope:
  validate -> fill defaults -> allocate number -> persist

An empty deposit amount becomes DEPOSIT_DEFAULT_PERCENT of the total price,
an empty deadline becomes the deposit date plus DEPOSIT_DEADLINE_DAYS, and an
empty bank account falls back to the company's.
"""

from __future__ import annotations

import logging
from datetime import date, timedelta
from decimal import Decimal
from typing import List, Optional, Union
from uuid import uuid4

import config
from domain.deposit import Deposit, DepositStatus
from domain.errors import InvariantViolation, ValidationError
from domain.financials import HUNDRED, ZERO
from domain.numbering import DocumentScope
from domain.parties import Company, Person
from domain.vehicle import Vehicle, VehicleSnapshot
from forms.models import DepositForm
from repositories.store import Store
from services.numbering_service import persist_with_number
from services.party_checks import buyer_problems, warn_on_suspect_document

logger = logging.getLogger(__name__)


def resolve_deposit_amount(form: DepositForm) -> Decimal:
    if form.deposit_amount is not None:
        return form.deposit_amount
    return form.total_price * config.DEPOSIT_DEFAULT_PERCENT / HUNDRED


def resolve_sale_deadline(form: DepositForm) -> date:
    return form.sale_deadline or form.deposit_date + timedelta(days=config.DEPOSIT_DEADLINE_DAYS)


def validate_deposit(form: DepositForm, company: Company, buyer: Person) -> None:
    """
    Raises:
        ValidationError: every problem found, in one error
    """

    problems: List[str] = list(buyer_problems(buyer))
    if not company.display_name.strip():
        problems.append("company name is required")
    if form.total_price <= ZERO:
        problems.append("total_price must be greater than zero")
    else:
        amount = resolve_deposit_amount(form)
        if amount <= ZERO:
            problems.append("deposit_amount must be greater than zero")
        elif amount > form.total_price:
            problems.append("deposit_amount must not exceed total_price")
    if resolve_sale_deadline(form) < form.deposit_date:
        problems.append("sale_deadline must not precede deposit_date")

    if problems:
        raise ValidationError(problems)


def create_deposit(
    store: Store,
    form: DepositForm,
    company: Company,
    buyer: Person,
    vehicle: Union[Vehicle, VehicleSnapshot, None] = None,
) -> Deposit:
    """
    Validate, number and persist a deposit agreement with status `active`.

    Raises:
        ValidationError: missing buyer data or invalid amounts (no number allocated)
        NumberingConflictError: a number could not be allocated
        PersistenceError: the store failed
    """

    validate_deposit(form, company, buyer)
    warn_on_suspect_document(buyer, context="deposit")

    if isinstance(vehicle, Vehicle):
        snapshot = vehicle.snapshot()
        vehicle_id: Optional[str] = vehicle.vehicle_id
    else:
        snapshot = vehicle or VehicleSnapshot()
        vehicle_id = form.vehicle_id

    amount = resolve_deposit_amount(form)
    deadline = resolve_sale_deadline(form)
    deposit_id = str(uuid4())

    def persist(number: str) -> Deposit:
        return store.create_deposit(
            Deposit(
                deposit_id=deposit_id,
                number=number,
                status=DepositStatus.ACTIVE,
                company=company,
                buyer=buyer,
                vehicle=snapshot,
                deposit_amount=amount,
                total_price=form.total_price,
                deposit_date=form.deposit_date,
                sale_deadline=deadline,
                vehicle_id=vehicle_id,
                bank_account=form.bank_account or company.bank_account,
                signing_place=form.signing_place,
                additional_clauses=form.additional_clauses,
                notes=form.notes,
            )
        )

    deposit = persist_with_number(store, DocumentScope.DEPOSIT, persist, year=form.deposit_date.year)
    logger.info("Deposit %s created (%s of %s, until %s)", deposit.number, amount, form.total_price, deadline)
    return deposit


def _load(store: Store, deposit_id: str) -> Deposit:
    deposit = store.get_deposit(deposit_id)
    if deposit is None:
        raise InvariantViolation(f"deposit {deposit_id} does not exist")
    return deposit


def mark_deposit_converted(store: Store, deposit_id: str, contract_id: Optional[str] = None) -> Deposit:
    """active -> converted, optionally recording the sale contract it became."""

    deposit = _load(store, deposit_id)
    try:
        converted = deposit.convert(contract_id)
    except InvariantViolation as e:
        logger.error("Rejected deposit conversion: %s", e)
        raise
    store.update_deposit_status(deposit_id, converted.status, converted.contract_id)
    logger.info("Deposit %s converted", deposit.number)
    return converted


def cancel_deposit(store: Store, deposit_id: str) -> Deposit:
    """active -> cancelled."""

    deposit = _load(store, deposit_id)
    try:
        cancelled = deposit.cancel()
    except InvariantViolation as e:
        logger.error("Rejected deposit cancellation: %s", e)
        raise
    store.update_deposit_status(deposit_id, cancelled.status)
    logger.info("Deposit %s cancelled", deposit.number)
    return cancelled


__all__ = [
    "resolve_deposit_amount",
    "resolve_sale_deadline",
    "validate_deposit",
    "create_deposit",
    "mark_deposit_converted",
    "cancel_deposit",
]
