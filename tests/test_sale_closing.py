"""
Tests for `services/sale_closing_service.py`.

Covers contract rules:
- The wizard writes nothing until confirm; abandoning it leaves no trace.
- Stages are filled in order; earlier stages can be revisited.
- close_sale writes SaleRecord, then vehicle state, then opportunity state.
- A failed later write is compensated and surfaces as "sale not completed".
- An opportunity is closed at most once; an unfinished record is resumed,
  never duplicated, and is only deleted once the vehicle is restored.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from domain.errors import InvariantViolation, PersistenceError, ValidationError
from domain.opportunity import OpportunityState
from domain.payment import PaymentMethod
from domain.vehicle import VehicleState
from forms.models import DeliveryForm, PaymentForm, PricingForm
from services.opportunity_service import change_state
from services.sale_closing_service import (
    SALE_NOT_COMPLETED,
    SaleClosingWizard,
    WizardStage,
    close_sale,
    resume_sale,
)

SOLD_AT = datetime(2026, 3, 15, 11, 30, 0, tzinfo=timezone.utc)

PRICING = PricingForm(
    list_price=Decimal("24900"),
    discount=Decimal("400"),
    additional_expenses=Decimal("150"),
    additional_expenses_description="Transfer paperwork",
)
CASH = PaymentForm(payment_method=PaymentMethod.CASH)
FINANCED = PaymentForm(
    payment_method=PaymentMethod.FINANCING,
    down_payment=Decimal("4650"),
    installment_count=40,
    lender="Banco Ejemplo",
)
DELIVERY = DeliveryForm(delivery_date=date(2026, 3, 20), warranty_months=12, notes="Full tank")


def _complete_wizard(store, payment: PaymentForm = CASH) -> SaleClosingWizard:
    wizard = SaleClosingWizard.start(store, "opp-1")
    wizard.set_pricing(PRICING)
    wizard.set_payment(payment)
    wizard.set_delivery(DELIVERY)
    return wizard


def test_wizard_previews_without_writing(seeded_store) -> None:
    wizard = SaleClosingWizard.start(seeded_store, "opp-1")

    first = wizard.preview()
    assert first.stage == WizardStage.PRICING
    assert first.figures.final_price == Decimal("24500")  # vehicle list price minus its discount

    preview = wizard.set_pricing(PRICING)
    assert preview.stage == WizardStage.PAYMENT
    assert preview.figures.final_price == Decimal("24650")
    assert preview.figures.margin == Decimal("5450")

    preview = wizard.set_payment(FINANCED)
    assert preview.financing.installment_estimate == Decimal("500")

    assert seeded_store.writes() == []


def test_stages_must_be_filled_in_order(seeded_store) -> None:
    wizard = SaleClosingWizard.start(seeded_store, "opp-1")

    with pytest.raises(InvariantViolation):
        wizard.set_payment(CASH)
    with pytest.raises(InvariantViolation):
        wizard.set_delivery(DELIVERY)


def test_going_back_recomputes(seeded_store) -> None:
    wizard = _complete_wizard(seeded_store)

    preview = wizard.set_pricing(PricingForm(list_price=Decimal("20000")))

    assert preview.figures.final_price == Decimal("20000")
    assert wizard.is_complete


def test_abandon_leaves_no_trace(seeded_store) -> None:
    wizard = _complete_wizard(seeded_store)

    wizard.abandon()

    assert seeded_store.writes() == []
    assert seeded_store.sales == {}
    with pytest.raises(InvariantViolation):
        wizard.confirm()


def test_confirm_incomplete_wizard_is_rejected(seeded_store) -> None:
    wizard = SaleClosingWizard.start(seeded_store, "opp-1")
    wizard.set_pricing(PRICING)

    with pytest.raises(InvariantViolation):
        wizard.confirm()
    assert seeded_store.writes() == []


def test_confirm_closes_the_sale_in_order(seeded_store) -> None:
    record = _complete_wizard(seeded_store).confirm(at=SOLD_AT)

    assert seeded_store.writes() == ["create_sale_record", "set_vehicle_state", "save_opportunity"]
    assert seeded_store.sales[record.sale_id] == record
    assert seeded_store.vehicles["vehicle-1"].state == VehicleState.SOLD
    opportunity = seeded_store.opportunities["opp-1"]
    assert opportunity.state == OpportunityState.SOLD
    assert opportunity.closed_at == SOLD_AT

    assert record.final_price == Decimal("24650")
    assert record.cost_total == Decimal("19200")
    assert record.margin == Decimal("5450")
    assert record.buyer_id == "buyer-1"
    assert record.financing is None
    assert record.additional_expenses_description == "Transfer paperwork"


def test_financed_sale_carries_financing_detail(seeded_store) -> None:
    record = _complete_wizard(seeded_store, FINANCED).confirm(at=SOLD_AT)

    assert record.payment_method == PaymentMethod.FINANCING
    assert record.financing.amount_to_finance == Decimal("20000")
    assert record.financing.installment_estimate == Decimal("500")
    assert record.financing.lender == "Banco Ejemplo"


def test_down_payment_above_price_is_rejected(seeded_store) -> None:
    wizard = SaleClosingWizard.start(seeded_store, "opp-1")
    wizard.set_pricing(PRICING)

    with pytest.raises(ValidationError):
        wizard.set_payment(
            PaymentForm(payment_method=PaymentMethod.LEASING, down_payment=Decimal("30000"), installment_count=12)
        )


def test_discount_above_price_is_rejected(seeded_store) -> None:
    wizard = SaleClosingWizard.start(seeded_store, "opp-1")

    with pytest.raises(ValidationError):
        wizard.set_pricing(PricingForm(list_price=Decimal("1000"), discount=Decimal("2000")))


def test_second_close_is_rejected(seeded_store) -> None:
    close_sale(seeded_store, "opp-1", PRICING, CASH, DELIVERY, at=SOLD_AT)
    writes_before = list(seeded_store.writes())

    with pytest.raises(InvariantViolation):
        close_sale(seeded_store, "opp-1", PRICING, CASH, DELIVERY, at=SOLD_AT)

    assert seeded_store.writes() == writes_before
    assert len(seeded_store.sales) == 1


def test_unfinished_sale_is_completed_from_its_record(seeded_store) -> None:
    record = close_sale(seeded_store, "opp-1", PRICING, CASH, DELIVERY, at=SOLD_AT)
    # Opportunity write lost after the record and vehicle landed.
    seeded_store.opportunities["opp-1"] = replace(
        seeded_store.opportunities["opp-1"], state=OpportunityState.NEGOTIATION, closed_at=None
    )
    seeded_store.calls.clear()

    resumed = close_sale(
        seeded_store, "opp-1", PricingForm(list_price=Decimal("1")), CASH, DELIVERY, at=datetime.now(timezone.utc)
    )

    assert resumed == record
    assert resumed.final_price == Decimal("24650")
    assert seeded_store.writes() == ["save_opportunity"]
    assert len(seeded_store.sales) == 1
    opportunity = seeded_store.opportunities["opp-1"]
    assert opportunity.state == OpportunityState.SOLD
    assert opportunity.closed_at == SOLD_AT


def test_unfinished_sale_for_another_vehicle_is_rejected(seeded_store, vehicle) -> None:
    close_sale(seeded_store, "opp-1", PRICING, CASH, DELIVERY, at=SOLD_AT)
    seeded_store.opportunities["opp-1"] = replace(
        seeded_store.opportunities["opp-1"], state=OpportunityState.NEGOTIATION, closed_at=None
    )
    seeded_store.add_vehicle(replace(vehicle, vehicle_id="vehicle-2", plate="5678DEF"))

    with pytest.raises(InvariantViolation):
        close_sale(seeded_store, "opp-1", PRICING, CASH, DELIVERY, vehicle_id="vehicle-2")

    assert seeded_store.vehicles["vehicle-2"].state == VehicleState.AVAILABLE


def test_wizard_does_not_reopen_an_unfinished_sale(seeded_store) -> None:
    record = close_sale(seeded_store, "opp-1", PRICING, CASH, DELIVERY, at=SOLD_AT)
    seeded_store.opportunities["opp-1"] = replace(
        seeded_store.opportunities["opp-1"], state=OpportunityState.NEGOTIATION, closed_at=None
    )

    with pytest.raises(InvariantViolation) as excinfo:
        SaleClosingWizard.start(seeded_store, "opp-1")

    assert record.sale_id in str(excinfo.value)
    assert resume_sale(seeded_store, "opp-1") == record
    assert seeded_store.opportunities["opp-1"].state == OpportunityState.SOLD


def test_resume_without_a_record_is_rejected(seeded_store) -> None:
    with pytest.raises(InvariantViolation):
        resume_sale(seeded_store, "opp-1")
    assert seeded_store.writes() == []


def test_lost_opportunity_cannot_be_closed(seeded_store) -> None:
    change_state(seeded_store, "opp-1", OpportunityState.LOST)

    with pytest.raises(InvariantViolation):
        close_sale(seeded_store, "opp-1", PRICING, CASH, DELIVERY)


def test_sold_vehicle_cannot_be_sold_again(seeded_store) -> None:
    seeded_store.set_vehicle_state("vehicle-1", VehicleState.SOLD)

    with pytest.raises(InvariantViolation):
        SaleClosingWizard.start(seeded_store, "opp-1")


def test_failure_marking_vehicle_sold_removes_the_record(seeded_store) -> None:
    seeded_store.fail_next("set_vehicle_state")

    with pytest.raises(PersistenceError) as excinfo:
        close_sale(seeded_store, "opp-1", PRICING, CASH, DELIVERY, at=SOLD_AT)

    assert str(excinfo.value) == SALE_NOT_COMPLETED
    assert seeded_store.sales == {}
    assert seeded_store.vehicles["vehicle-1"].state == VehicleState.AVAILABLE
    assert seeded_store.opportunities["opp-1"].state == OpportunityState.NEGOTIATION


def test_failure_marking_opportunity_sold_is_compensated(seeded_store) -> None:
    seeded_store.fail_next("save_opportunity")

    with pytest.raises(PersistenceError) as excinfo:
        close_sale(seeded_store, "opp-1", PRICING, CASH, DELIVERY, at=SOLD_AT)

    assert str(excinfo.value) == SALE_NOT_COMPLETED
    assert seeded_store.sales == {}
    assert seeded_store.vehicles["vehicle-1"].state == VehicleState.AVAILABLE
    assert seeded_store.opportunities["opp-1"].state == OpportunityState.NEGOTIATION
    assert seeded_store.writes()[-2:] == ["set_vehicle_state", "delete_sale_record"]


def test_failed_compensation_is_logged_and_original_error_raised(seeded_store, caplog) -> None:
    seeded_store.fail_next("save_opportunity")
    seeded_store.fail_next("delete_sale_record")

    with caplog.at_level("ERROR"), pytest.raises(PersistenceError) as excinfo:
        close_sale(seeded_store, "opp-1", PRICING, CASH, DELIVERY, at=SOLD_AT)

    assert str(excinfo.value) == SALE_NOT_COMPLETED
    assert "injected failure" in str(excinfo.value.__cause__)
    assert any("Compensation failed" in message for message in caplog.messages)


def test_failure_writing_the_record_leaves_nothing(seeded_store) -> None:
    seeded_store.fail_next("create_sale_record")

    with pytest.raises(PersistenceError):
        close_sale(seeded_store, "opp-1", PRICING, CASH, DELIVERY, at=SOLD_AT)

    assert seeded_store.sales == {}
    assert seeded_store.vehicles["vehicle-1"].state == VehicleState.AVAILABLE


def test_vehicle_write_that_landed_before_failing_is_undone(seeded_store) -> None:
    seeded_store.fail_next("set_vehicle_state", applied=True)

    with pytest.raises(PersistenceError) as excinfo:
        close_sale(seeded_store, "opp-1", PRICING, CASH, DELIVERY, at=SOLD_AT)

    assert str(excinfo.value) == SALE_NOT_COMPLETED
    assert seeded_store.vehicles["vehicle-1"].state == VehicleState.AVAILABLE
    assert seeded_store.sales == {}
    assert seeded_store.writes() == [
        "create_sale_record",
        "set_vehicle_state",
        "set_vehicle_state",
        "delete_sale_record",
    ]


def test_failed_vehicle_restore_keeps_the_sale_record(seeded_store, caplog) -> None:
    seeded_store.fail_next("save_opportunity")
    seeded_store.fail_next("set_vehicle_state", after=1)  # the restore, not the sale

    with caplog.at_level("ERROR"), pytest.raises(PersistenceError) as excinfo:
        close_sale(seeded_store, "opp-1", PRICING, CASH, DELIVERY, at=SOLD_AT)

    assert str(excinfo.value) == SALE_NOT_COMPLETED
    assert "delete_sale_record" not in seeded_store.writes()
    assert seeded_store.vehicles["vehicle-1"].state == VehicleState.SOLD
    assert len(seeded_store.sales) == 1
    assert seeded_store.opportunities["opp-1"].state == OpportunityState.NEGOTIATION
    assert any("keeping sale record" in message for message in caplog.messages)

    (record,) = seeded_store.sales.values()
    seeded_store.calls.clear()
    resumed = close_sale(seeded_store, "opp-1", PRICING, CASH, DELIVERY, at=SOLD_AT)

    assert resumed == record
    assert seeded_store.writes() == ["save_opportunity"]
    assert seeded_store.opportunities["opp-1"].state == OpportunityState.SOLD


def test_record_left_by_a_failed_delete_is_resumed(seeded_store) -> None:
    seeded_store.fail_next("save_opportunity")
    seeded_store.fail_next("delete_sale_record")

    with pytest.raises(PersistenceError):
        close_sale(seeded_store, "opp-1", PRICING, CASH, DELIVERY, at=SOLD_AT)

    # vehicle restored, record orphaned
    assert seeded_store.vehicles["vehicle-1"].state == VehicleState.AVAILABLE
    assert len(seeded_store.sales) == 1
    seeded_store.calls.clear()

    record = close_sale(seeded_store, "opp-1", PRICING, CASH, DELIVERY, at=SOLD_AT)

    assert seeded_store.writes() == ["set_vehicle_state", "save_opportunity"]
    assert seeded_store.sales == {record.sale_id: record}
    assert seeded_store.vehicles["vehicle-1"].state == VehicleState.SOLD
    assert seeded_store.opportunities["opp-1"].state == OpportunityState.SOLD


def test_failed_resume_keeps_the_record(seeded_store) -> None:
    seeded_store.fail_next("save_opportunity")
    seeded_store.fail_next("delete_sale_record")
    with pytest.raises(PersistenceError):
        close_sale(seeded_store, "opp-1", PRICING, CASH, DELIVERY, at=SOLD_AT)

    seeded_store.fail_next("save_opportunity")
    with pytest.raises(PersistenceError) as excinfo:
        resume_sale(seeded_store, "opp-1")

    assert str(excinfo.value) == SALE_NOT_COMPLETED
    assert len(seeded_store.sales) == 1
    assert seeded_store.vehicles["vehicle-1"].state == VehicleState.SOLD


def test_snapshots_are_frozen_onto_the_record(seeded_store, buyer, company) -> None:
    wizard = SaleClosingWizard.start(seeded_store, "opp-1", buyer=buyer, company=company)
    wizard.set_pricing(PRICING)
    wizard.set_payment(CASH)
    wizard.set_delivery(DELIVERY)
    record = wizard.confirm(at=SOLD_AT)

    assert record.vehicle.plate == "1234ABC"
    assert record.vehicle.description == "SEAT Leon 1.5 TSI FR"
    assert record.buyer == buyer
    assert record.company == company

    seeded_store.add_vehicle(replace(seeded_store.vehicles["vehicle-1"], plate="9999ZZZ"))
    assert seeded_store.sales[record.sale_id].vehicle.plate == "1234ABC"


def test_buyer_snapshot_of_another_person_is_rejected(seeded_store, buyer) -> None:
    with pytest.raises(ValidationError):
        close_sale(
            seeded_store, "opp-1", PRICING, CASH, DELIVERY, buyer=replace(buyer, person_id="someone-else")
        )
    assert seeded_store.writes() == []
