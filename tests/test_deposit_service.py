"""
Tests for `services/deposit_service.py` and `domain/deposit.py`.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from domain.deposit import Deposit, DepositStatus
from domain.errors import InvariantViolation, ValidationError
from domain.parties import Company, Person
from domain.vehicle import VehicleSnapshot
from forms.models import DepositForm
from services.deposit_service import cancel_deposit, create_deposit, mark_deposit_converted

FORM = DepositForm(
    total_price=Decimal("24550"),
    deposit_amount=Decimal("2000"),
    deposit_date=date(2026, 3, 10),
    sale_deadline=date(2026, 3, 31),
    signing_place="Madrid",
)


def test_create_deposit(store, company, buyer, vehicle) -> None:
    deposit = create_deposit(store, FORM, company, buyer, vehicle)

    assert deposit.number == "SN-2026-000001"
    assert deposit.status == DepositStatus.ACTIVE
    assert deposit.remaining == Decimal("22550")
    assert deposit.vehicle_id == "vehicle-1"
    assert deposit.vehicle.plate == "1234ABC"
    assert deposit.bank_account == company.bank_account
    assert store.deposits[deposit.deposit_id] == deposit


def test_defaults_fill_amount_and_deadline(store, company, buyer) -> None:
    form = DepositForm(total_price=Decimal("24550"), deposit_date=date(2026, 3, 10))

    deposit = create_deposit(store, form, company, buyer)

    assert deposit.deposit_amount == Decimal("2455")
    assert deposit.sale_deadline == date(2026, 3, 25)
    assert deposit.vehicle == VehicleSnapshot()


def test_explicit_bank_account_wins(store, company, buyer) -> None:
    form = FORM.model_copy(update={"bank_account": "ES00 0000 0000 0000 0000 0000"})

    assert create_deposit(store, form, company, buyer).bank_account == "ES00 0000 0000 0000 0000 0000"


def test_deposit_numbering_has_its_own_scope(store, company, buyer) -> None:
    first = create_deposit(store, FORM, company, buyer)
    second = create_deposit(store, FORM, company, buyer)

    assert (first.number, second.number) == ("SN-2026-000001", "SN-2026-000002")
    assert set(store.sequences) == {("deposit", 2026)}


def test_deposit_above_total_is_rejected_before_numbering(store, company, buyer) -> None:
    with pytest.raises(ValidationError) as excinfo:
        create_deposit(store, FORM.model_copy(update={"deposit_amount": Decimal("24550.01")}), company, buyer)

    assert "deposit_amount must not exceed total_price" in excinfo.value.problems
    assert store.sequences == {}


def test_deadline_before_deposit_date_is_rejected(store, company, buyer) -> None:
    with pytest.raises(ValidationError) as excinfo:
        create_deposit(store, FORM.model_copy(update={"sale_deadline": date(2026, 3, 9)}), company, buyer)

    assert "sale_deadline must not precede deposit_date" in excinfo.value.problems
    assert store.writes() == []


def test_missing_buyer_allocates_no_number(store, company) -> None:
    with pytest.raises(ValidationError):
        create_deposit(store, FORM, company, Person(first_name=""))
    assert store.sequences == {}


def test_convert_records_the_contract(store, company, buyer) -> None:
    deposit = create_deposit(store, FORM, company, buyer)

    converted = mark_deposit_converted(store, deposit.deposit_id, contract_id="contract-9")

    assert converted.status == DepositStatus.CONVERTED
    assert store.deposits[deposit.deposit_id].contract_id == "contract-9"
    with pytest.raises(InvariantViolation):
        cancel_deposit(store, deposit.deposit_id)


def test_cancelled_deposit_cannot_be_converted(store, company, buyer) -> None:
    deposit = create_deposit(store, FORM, company, buyer)

    assert cancel_deposit(store, deposit.deposit_id).status == DepositStatus.CANCELLED
    with pytest.raises(InvariantViolation):
        mark_deposit_converted(store, deposit.deposit_id)


def test_unknown_deposit_is_rejected(store) -> None:
    with pytest.raises(InvariantViolation):
        cancel_deposit(store, "missing")


def _deposit(**overrides) -> Deposit:
    values = dict(
        deposit_id="d-1",
        number="SN-2026-000001",
        status=DepositStatus.ACTIVE,
        company=Company(legal_name="Autos Ejemplo S.L.", tax_id="B12345674"),
        buyer=Person(first_name="Lucia", last_name="Garcia Lopez", document_number="12345678Z"),
        vehicle=VehicleSnapshot(),
        deposit_amount=Decimal("1000"),
        total_price=Decimal("10000"),
        deposit_date=date(2026, 3, 10),
        sale_deadline=date(2026, 3, 25),
    )
    values.update(overrides)
    return Deposit(**values)


@pytest.mark.parametrize(
    "overrides",
    [
        {"deposit_amount": Decimal("0")},
        {"deposit_amount": Decimal("10000.01")},
        {"sale_deadline": date(2026, 3, 9)},
    ],
)
def test_deposit_invariants(overrides) -> None:
    with pytest.raises(InvariantViolation):
        _deposit(**overrides)


def test_expiry_counts_only_active_deposits() -> None:
    deposit = _deposit()

    assert not deposit.is_expired(date(2026, 3, 25))
    assert deposit.is_expired(date(2026, 3, 26))
    assert not deposit.cancel().is_expired(date(2026, 4, 1))
