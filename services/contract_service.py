"""
Contract service.

Confirmed-creation flow for sale contracts:
  validate -> compute economic terms -> allocate number -> persist

Validation runs before a number is requested, so a rejected form never
consumes one. Economic terms come from the shared financial model, the same
functions the invoice flow and the sale wizard use.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Union
from uuid import uuid4

from domain.contract import (
    AccessoriesChecklist,
    Contract,
    ContractStatus,
    ContractTerms,
    DocumentationChecklist,
    WarrantyTerms,
)
from domain.errors import InvariantViolation, ValidationError
from domain.financials import ZERO, TaxRate, compute_tax_breakdown, validate_tax_rate
from domain.numbering import DocumentScope
from domain.parties import Company, Person
from domain.vehicle import Vehicle, VehicleSnapshot
from forms.models import ContractForm
from repositories.store import Store
from services.numbering_service import persist_with_number
from services.party_checks import buyer_problems, warn_on_suspect_document

logger = logging.getLogger(__name__)


def compute_contract_terms(form: ContractForm) -> ContractTerms:
    """Price, tax and total for a contract form. Never raises."""

    breakdown = compute_tax_breakdown(base_amount=form.price_excl_tax, tax_rate=TaxRate.of(form.tax_rate))
    return ContractTerms(
        price_excl_tax=breakdown.base_amount,
        tax_rate=breakdown.tax_rate,
        tax_amount=breakdown.tax_amount,
        total=breakdown.total,
        payment_method=form.payment_method,
    )


def validate_contract(form: ContractForm, company: Company, buyer: Person) -> None:
    """
    Raises:
        ValidationError: every problem found, in one error
    """

    problems: List[str] = list(buyer_problems(buyer))
    if not company.display_name.strip():
        problems.append("company name is required")
    if form.price_excl_tax <= ZERO:
        problems.append("price_excl_tax must be greater than zero")
    try:
        validate_tax_rate(form.tax_rate)
    except ValidationError as e:
        problems.extend(e.problems)
    if form.has_warranty and form.warranty_months <= 0:
        problems.append("warranty_months must be greater than zero when a warranty is given")

    if problems:
        raise ValidationError(problems)


def _warranty(form: ContractForm) -> WarrantyTerms:
    if not form.has_warranty:
        return WarrantyTerms.none()
    return WarrantyTerms(
        has_warranty=True, months=form.warranty_months, kind=form.warranty_kind, kilometres=form.warranty_km
    )


def create_contract(
    store: Store,
    form: ContractForm,
    company: Company,
    buyer: Person,
    vehicle: Union[Vehicle, VehicleSnapshot, None] = None,
) -> Contract:
    """
    Validate, number and persist a contract.

    Status is `signed`, or `draft` when form.draft is set.

    Raises:
        ValidationError: missing buyer data or invalid amounts (no number allocated)
        NumberingConflictError: a number could not be allocated
        PersistenceError: the store failed
    """

    validate_contract(form, company, buyer)
    warn_on_suspect_document(buyer, context="contract")

    if isinstance(vehicle, Vehicle):
        snapshot = vehicle.snapshot()
        vehicle_id: Optional[str] = vehicle.vehicle_id
    else:
        snapshot = vehicle or VehicleSnapshot()
        vehicle_id = form.vehicle_id

    terms = compute_contract_terms(form)
    status = ContractStatus.DRAFT if form.draft else ContractStatus.SIGNED
    contract_id = str(uuid4())

    def persist(number: str) -> Contract:
        return store.create_contract(
            Contract(
                contract_id=contract_id,
                number=number,
                status=status,
                company=company,
                buyer=buyer,
                vehicle=snapshot,
                terms=terms,
                signing_date=form.signing_date,
                signing_place=form.signing_place,
                vehicle_id=vehicle_id,
                warranty=_warranty(form),
                documentation=DocumentationChecklist(
                    registration_certificate=form.registration_certificate,
                    technical_sheet=form.technical_sheet,
                    valid_inspection=form.valid_inspection,
                    road_tax_receipt=form.road_tax_receipt,
                ),
                accessories=AccessoriesChecklist(
                    spare_wheel=form.spare_wheel,
                    jack=form.jack,
                    spare_keys=form.spare_keys,
                    manuals=form.manuals,
                    other=form.other_accessories,
                ),
                additional_clauses=form.additional_clauses,
                notes=form.notes,
            )
        )

    contract = persist_with_number(store, DocumentScope.CONTRACT, persist, year=form.signing_date.year)
    logger.info("Contract %s created (%s, total %s)", contract.number, contract.status.value, terms.total)
    return contract


def _load(store: Store, contract_id: str) -> Contract:
    contract = store.get_contract(contract_id)
    if contract is None:
        raise InvariantViolation(f"contract {contract_id} does not exist")
    return contract


def sign_contract(store: Store, contract_id: str) -> Contract:
    """draft -> signed."""

    contract = _load(store, contract_id)
    try:
        signed = contract.sign()
    except InvariantViolation as e:
        logger.error("Rejected contract signature: %s", e)
        raise
    store.update_contract_status(contract_id, signed.status)
    logger.info("Contract %s signed", contract.number)
    return signed


def cancel_contract(store: Store, contract_id: str) -> Contract:
    """draft or signed -> cancelled."""

    contract = _load(store, contract_id)
    try:
        cancelled = contract.cancel()
    except InvariantViolation as e:
        logger.error("Rejected contract cancellation: %s", e)
        raise
    store.update_contract_status(contract_id, cancelled.status)
    logger.info("Contract %s cancelled", contract.number)
    return cancelled


__all__ = [
    "compute_contract_terms",
    "validate_contract",
    "create_contract",
    "sign_contract",
    "cancel_contract",
]
