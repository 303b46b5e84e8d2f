"""
Sale-closing service.

Turns an opportunity into a recorded sale. Two layers:

- SaleClosingWizard: an in-memory, three-stage capture (pricing, payment,
  delivery/warranty). Stages are filled in order, earlier stages may be
  revisited, and figures can be previewed at any point. The wizard writes
  nothing until `confirm()`; abandoning it leaves no trace.

- close_sale: the confirmed write. Guards first (opportunity not sold or
  lost, vehicle not sold), then three ordered writes:
    1. SaleRecord (source of truth, with vehicle/buyer/company snapshots)
    2. vehicle state -> sold
    3. opportunity state -> sold
  If write 2 or 3 fails, the vehicle is put back to its previous state and
  the SaleRecord is deleted, then PersistenceError("sale not completed") is
  raised. The record is only deleted once the vehicle is known not to be
  sold; if the restore fails the record stays so the sold vehicle is never
  left without one.

- resume_sale: a SaleRecord whose opportunity is not sold is an unfinished
  sale (its compensation failed part way). Closing that opportunity again
  completes the remaining writes from the record instead of recording a
  second sale.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import datetime
from enum import IntEnum
from typing import Optional
from uuid import uuid4

from domain.errors import InvariantViolation, PersistenceError, ValidationError
from domain.financials import (
    FinancingEstimate,
    SaleFigures,
    compute_financing,
    compute_sale_figures,
    validate_financing,
    validate_pricing,
)
from domain.opportunity import Opportunity, OpportunityState
from domain.parties import Company, Person
from domain.sale import FinancingTerms, SaleRecord, Warranty
from domain.time import utc_now
from domain.vehicle import Vehicle, VehicleState
from forms.models import DeliveryForm, PaymentForm, PricingForm
from repositories.store import Store

logger = logging.getLogger(__name__)

SALE_NOT_COMPLETED = "sale not completed"


class WizardStage(IntEnum):
    PRICING = 1
    PAYMENT = 2
    DELIVERY = 3


@dataclass(frozen=True, slots=True)
class SalePreview:
    """Figures shown while the wizard is open. Financing is None for cash sales."""
    stage: WizardStage
    figures: SaleFigures
    financing: Optional[FinancingEstimate]


def _reject(message: str) -> InvariantViolation:
    logger.error("Sale closing rejected: %s", message)
    return InvariantViolation(message)


def _figures(vehicle: Vehicle, pricing: PricingForm) -> SaleFigures:
    return compute_sale_figures(
        list_price=pricing.list_price,
        discount=pricing.discount,
        additional_expenses=pricing.additional_expenses,
        acquisition_cost=vehicle.acquisition_cost,
        acquisition_expenses=vehicle.acquisition_expenses,
        repair_cost=vehicle.repair_cost,
    )


def _financing(figures: SaleFigures, payment: PaymentForm) -> Optional[FinancingEstimate]:
    if not payment.payment_method.is_financed:
        return None
    return compute_financing(
        final_price_value=figures.final_price,
        down_payment=payment.down_payment,
        installment_count=payment.installment_count,
    )


def _validate(figures: SaleFigures, pricing: PricingForm, payment: PaymentForm) -> None:
    validate_pricing(pricing.list_price, pricing.discount, pricing.additional_expenses)
    if payment.payment_method.is_financed:
        validate_financing(figures.final_price, payment.down_payment, payment.installment_count)


def _check_opportunity(opportunity: Opportunity) -> None:
    if opportunity.state == OpportunityState.SOLD:
        raise _reject(f"opportunity {opportunity.opportunity_id} is already sold")
    if opportunity.state == OpportunityState.LOST:
        raise _reject(f"opportunity {opportunity.opportunity_id} is lost; reactivate it before closing a sale")


def _check_vehicle(store: Store, vehicle_id: Optional[str]) -> Vehicle:
    if not vehicle_id:
        raise ValidationError("a vehicle is required to close a sale")
    vehicle = store.get_vehicle(vehicle_id)
    if vehicle is None:
        raise ValidationError(f"vehicle {vehicle_id} does not exist")
    if vehicle.is_sold:
        raise _reject(f"vehicle {vehicle_id} is already sold")
    return vehicle


def _load_opportunity(store: Store, opportunity_id: str) -> Opportunity:
    opportunity = store.get_opportunity(opportunity_id)
    if opportunity is None:
        raise _reject(f"opportunity {opportunity_id} does not exist")
    _check_opportunity(opportunity)
    return opportunity


def _buyer_snapshot(opportunity: Opportunity, buyer: Optional[Person]) -> Optional[Person]:
    if buyer is None:
        return None
    if buyer.person_id and buyer.person_id != opportunity.buyer_id:
        raise ValidationError(
            f"buyer {buyer.person_id} is not the buyer of opportunity {opportunity.opportunity_id}"
        )
    return replace(buyer, person_id=opportunity.buyer_id)


def _build_record(
    opportunity: Opportunity,
    vehicle: Vehicle,
    figures: SaleFigures,
    pricing: PricingForm,
    payment: PaymentForm,
    delivery: DeliveryForm,
    sold_at: datetime,
    *,
    buyer: Optional[Person] = None,
    company: Optional[Company] = None,
) -> SaleRecord:
    estimate = _financing(figures, payment)
    financing = None
    if estimate is not None:
        financing = FinancingTerms(
            down_payment=estimate.down_payment,
            installment_count=int(payment.installment_count or 0),
            lender=payment.lender,
            amount_to_finance=estimate.amount_to_finance,
            installment_estimate=estimate.installment_estimate,
        )

    return SaleRecord(
        sale_id=str(uuid4()),
        opportunity_id=opportunity.opportunity_id,
        vehicle_id=vehicle.vehicle_id,
        buyer_id=opportunity.buyer_id,
        list_price=figures.list_price,
        discount=figures.discount,
        additional_expenses=figures.additional_expenses,
        final_price=figures.final_price,
        cost_total=figures.cost_total,
        margin=figures.margin,
        margin_percent=figures.margin_percent,
        payment_method=payment.payment_method,
        sold_at=sold_at,
        delivery_date=delivery.delivery_date,
        warranty=Warranty(months=delivery.warranty_months, extended=delivery.extended_warranty),
        financing=financing,
        additional_expenses_description=pricing.additional_expenses_description,
        notes=delivery.notes,
        vehicle=vehicle.snapshot(),
        buyer=buyer,
        company=company,
    )


def _compensate(store: Store, record: SaleRecord, *, restore_vehicle_state: VehicleState) -> None:
    """
    Undo the writes of a sale that did not complete, newest first.

    The vehicle is restored before the record goes. If the restore fails the
    vehicle may still be sold, so the record is kept and a later close_sale
    on the same opportunity finishes the sale from it.
    """

    try:
        store.set_vehicle_state(record.vehicle_id, restore_vehicle_state)
    except PersistenceError as e:
        logger.error(
            "Compensation failed: could not restore vehicle %s to %s after aborted sale %s; keeping sale record: %s",
            record.vehicle_id,
            restore_vehicle_state.value,
            record.sale_id,
            e,
        )
        return
    try:
        store.delete_sale_record(record.sale_id)
    except PersistenceError as e:
        logger.error(
            "Compensation failed: could not delete sale record %s (opportunity %s, vehicle %s): %s",
            record.sale_id,
            record.opportunity_id,
            record.vehicle_id,
            e,
        )


def _finish(store: Store, opportunity: Opportunity, record: SaleRecord) -> SaleRecord:
    """Complete the vehicle and opportunity writes of an unfinished sale. Never deletes the record."""

    try:
        vehicle = store.get_vehicle(record.vehicle_id)
        if vehicle is None or not vehicle.is_sold:
            store.set_vehicle_state(record.vehicle_id, VehicleState.SOLD)
        store.save_opportunity(opportunity.mark_sold(at=record.sold_at))
    except PersistenceError as e:
        logger.error("Resuming sale %s for opportunity %s failed: %s", record.sale_id, opportunity.opportunity_id, e)
        raise PersistenceError(SALE_NOT_COMPLETED) from e

    logger.info(
        "Sale %s resumed: opportunity %s, vehicle %s, final price %s",
        record.sale_id,
        opportunity.opportunity_id,
        record.vehicle_id,
        record.final_price,
    )
    return record


def resume_sale(store: Store, opportunity_id: str) -> SaleRecord:
    """
    Finish a sale whose SaleRecord exists but whose opportunity is not sold.

    Raises:
        InvariantViolation: opportunity missing, sold or lost, or no record to resume
        PersistenceError: a write failed; the record is kept for another attempt
    """

    opportunity = _load_opportunity(store, opportunity_id)
    record = store.get_sale_record_for_opportunity(opportunity_id)
    if record is None:
        raise _reject(f"opportunity {opportunity_id} has no sale record to resume")
    return _finish(store, opportunity, record)


def close_sale(
    store: Store,
    opportunity_id: str,
    pricing: PricingForm,
    payment: PaymentForm,
    delivery: DeliveryForm,
    *,
    vehicle_id: Optional[str] = None,
    buyer: Optional[Person] = None,
    company: Optional[Company] = None,
    at: Optional[datetime] = None,
) -> SaleRecord:
    """
    Record a sale and mark the vehicle and opportunity sold.

    Args:
        store: Persistence collaborator
        opportunity_id: Opportunity being closed
        pricing / payment / delivery: Completed wizard stages
        vehicle_id: Vehicle sold; defaults to the opportunity's vehicle of interest
        buyer / company: Parties frozen onto the record for the sale summary
        at: UTC sale timestamp (default: now)

    Returns:
        The persisted SaleRecord. If the opportunity already has an unfinished
        record, the remaining writes are completed and that record is returned
        with its original figures.

    Raises:
        ValidationError: inputs fail the financial checks; nothing written
        InvariantViolation: already sold, lost, or vehicle sold
        PersistenceError: a write failed; completed writes were undone
    """

    opportunity = _load_opportunity(store, opportunity_id)

    existing = store.get_sale_record_for_opportunity(opportunity_id)
    if existing is not None:
        if vehicle_id and vehicle_id != existing.vehicle_id:
            raise _reject(
                f"opportunity {opportunity_id} has unfinished sale {existing.sale_id} for vehicle {existing.vehicle_id}"
            )
        logger.warning(
            "Opportunity %s has unfinished sale %s; completing it with the recorded figures",
            opportunity_id,
            existing.sale_id,
        )
        return _finish(store, opportunity, existing)

    vehicle = _check_vehicle(store, vehicle_id or opportunity.vehicle_id)
    figures = _figures(vehicle, pricing)
    _validate(figures, pricing, payment)
    buyer_snapshot = _buyer_snapshot(opportunity, buyer)

    sold_at = at or utc_now()
    record = store.create_sale_record(
        _build_record(
            opportunity, vehicle, figures, pricing, payment, delivery, sold_at, buyer=buyer_snapshot, company=company
        )
    )

    try:
        store.set_vehicle_state(vehicle.vehicle_id, VehicleState.SOLD)
    except PersistenceError as e:
        logger.error("Marking vehicle %s sold failed for sale %s: %s", vehicle.vehicle_id, record.sale_id, e)
        # the write may have landed before the error surfaced
        _compensate(store, record, restore_vehicle_state=vehicle.state)
        raise PersistenceError(SALE_NOT_COMPLETED) from e

    try:
        store.save_opportunity(opportunity.mark_sold(at=sold_at))
    except PersistenceError as e:
        logger.error(
            "Marking opportunity %s sold failed for sale %s: %s", opportunity_id, record.sale_id, e
        )
        _compensate(store, record, restore_vehicle_state=vehicle.state)
        raise PersistenceError(SALE_NOT_COMPLETED) from e

    logger.info(
        "Sale %s closed: opportunity %s, vehicle %s, final price %s",
        record.sale_id,
        opportunity_id,
        vehicle.vehicle_id,
        record.final_price,
    )
    return record


class SaleClosingWizard:
    """
    Three-stage capture for closing a sale.

    Usage:
        wizard = SaleClosingWizard.start(store, opportunity_id)
        wizard.set_pricing(PricingForm(...))
        wizard.set_payment(PaymentForm(...))
        wizard.set_delivery(DeliveryForm(...))
        wizard.preview()
        record = wizard.confirm()
    """

    def __init__(
        self,
        store: Store,
        opportunity: Opportunity,
        vehicle: Vehicle,
        *,
        buyer: Optional[Person] = None,
        company: Optional[Company] = None,
    ) -> None:
        self.store = store
        self.opportunity = opportunity
        self.vehicle = vehicle
        self.buyer = buyer
        self.company = company
        self.pricing: Optional[PricingForm] = None
        self.payment: Optional[PaymentForm] = None
        self.delivery: Optional[DeliveryForm] = None
        self.abandoned = False
        self.record: Optional[SaleRecord] = None

    @classmethod
    def start(
        cls,
        store: Store,
        opportunity_id: str,
        *,
        vehicle_id: Optional[str] = None,
        buyer: Optional[Person] = None,
        company: Optional[Company] = None,
    ) -> "SaleClosingWizard":
        """
        Open a wizard for an opportunity. Reads only; nothing is written.

        An opportunity with an unfinished sale is not reopened for capture;
        resume_sale completes it with the recorded figures.
        """

        opportunity = _load_opportunity(store, opportunity_id)
        existing = store.get_sale_record_for_opportunity(opportunity_id)
        if existing is not None:
            raise _reject(
                f"opportunity {opportunity_id} already has sale record {existing.sale_id}; use resume_sale to complete it"
            )
        vehicle = _check_vehicle(store, vehicle_id or opportunity.vehicle_id)
        return cls(store, opportunity, vehicle, buyer=_buyer_snapshot(opportunity, buyer), company=company)

    def default_pricing(self) -> PricingForm:
        """Pricing stage pre-filled from the vehicle's list price and discount."""
        return PricingForm(list_price=self.vehicle.list_price, discount=self.vehicle.discount)

    @property
    def stage(self) -> WizardStage:
        """The next stage to fill, or DELIVERY once everything is captured."""
        if self.pricing is None:
            return WizardStage.PRICING
        if self.payment is None:
            return WizardStage.PAYMENT
        return WizardStage.DELIVERY

    @property
    def is_complete(self) -> bool:
        return self.pricing is not None and self.payment is not None and self.delivery is not None

    def _ensure_open(self) -> None:
        if self.abandoned:
            raise InvariantViolation("the sale wizard was abandoned")
        if self.record is not None:
            raise InvariantViolation(f"the sale wizard already produced sale {self.record.sale_id}")

    def set_pricing(self, form: PricingForm) -> SalePreview:
        self._ensure_open()
        validate_pricing(form.list_price, form.discount, form.additional_expenses)
        self.pricing = form
        return self.preview()

    def set_payment(self, form: PaymentForm) -> SalePreview:
        self._ensure_open()
        if self.pricing is None:
            raise InvariantViolation("pricing must be completed before payment")
        if form.payment_method.is_financed:
            figures = _figures(self.vehicle, self.pricing)
            validate_financing(figures.final_price, form.down_payment, form.installment_count)
        self.payment = form
        return self.preview()

    def set_delivery(self, form: DeliveryForm) -> SalePreview:
        self._ensure_open()
        if self.pricing is None or self.payment is None:
            raise InvariantViolation("pricing and payment must be completed before delivery")
        self.delivery = form
        return self.preview()

    def preview(self) -> SalePreview:
        """Recompute the figures for whatever has been captured so far."""

        pricing = self.pricing or self.default_pricing()
        figures = _figures(self.vehicle, pricing)
        financing = _financing(figures, self.payment) if self.payment is not None else None
        return SalePreview(stage=self.stage, figures=figures, financing=financing)

    def abandon(self) -> None:
        """Drop the captured data. Nothing has been persisted, so nothing is undone."""

        self.abandoned = True
        self.pricing = None
        self.payment = None
        self.delivery = None

    def confirm(self, *, at: Optional[datetime] = None) -> SaleRecord:
        self._ensure_open()
        if not self.is_complete:
            raise InvariantViolation(f"the sale wizard is incomplete (next stage: {self.stage.name.lower()})")

        self.record = close_sale(
            self.store,
            self.opportunity.opportunity_id,
            self.pricing,
            self.payment,
            self.delivery,
            vehicle_id=self.vehicle.vehicle_id,
            buyer=self.buyer,
            company=self.company,
            at=at,
        )
        return self.record


__all__ = [
    "SALE_NOT_COMPLETED",
    "WizardStage",
    "SalePreview",
    "SaleClosingWizard",
    "close_sale",
    "resume_sale",
]
