"""
Domain: deposit (reservation) agreement.

The buyer pays a deposit to hold a vehicle until a sale deadline. The
agreement is numbered in its own scope and carries frozen snapshots of the
company, buyer and vehicle, like a contract.

Invariants enforced at construction:
- 0 < deposit_amount <= total_price
- sale_deadline is not before deposit_date

Status lifecycle: active -> converted (a sale contract was signed) | cancelled.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from .errors import InvariantViolation
from .parties import Company, Person
from .time import require_utc_timestamp
from .vehicle import VehicleSnapshot


class DepositStatus(str, Enum):
    ACTIVE = "active"
    CONVERTED = "converted"
    CANCELLED = "cancelled"


@dataclass(frozen=True, slots=True)
class Deposit:
    deposit_id: str
    number: str
    status: DepositStatus
    company: Company
    buyer: Person
    vehicle: VehicleSnapshot
    deposit_amount: Decimal
    total_price: Decimal
    deposit_date: date
    sale_deadline: date
    vehicle_id: Optional[str] = None
    bank_account: str = ""
    signing_place: str = ""
    additional_clauses: str = ""
    notes: str = ""
    contract_id: Optional[str] = None
    created_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        if self.deposit_amount <= 0:
            raise InvariantViolation(f"deposit {self.number} amount must be greater than zero")
        if self.deposit_amount > self.total_price:
            raise InvariantViolation(
                f"deposit {self.number} amount {self.deposit_amount} exceeds the total price {self.total_price}"
            )
        if self.sale_deadline < self.deposit_date:
            raise InvariantViolation(f"deposit {self.number} sale deadline precedes the deposit date")
        if self.created_at is not None:
            require_utc_timestamp("created_at", self.created_at)

    @property
    def remaining(self) -> Decimal:
        """Amount still due at the sale: total price minus the deposit."""
        return self.total_price - self.deposit_amount

    def is_expired(self, today: date) -> bool:
        return self.status == DepositStatus.ACTIVE and today > self.sale_deadline

    def convert(self, contract_id: Optional[str] = None) -> "Deposit":
        if self.status != DepositStatus.ACTIVE:
            raise InvariantViolation(f"deposit {self.number} is {self.status.value} and cannot be converted")
        return replace(self, status=DepositStatus.CONVERTED, contract_id=contract_id or self.contract_id)

    def cancel(self) -> "Deposit":
        if self.status != DepositStatus.ACTIVE:
            raise InvariantViolation(f"deposit {self.number} is {self.status.value} and cannot be cancelled")
        return replace(self, status=DepositStatus.CANCELLED)


__all__ = ["DepositStatus", "Deposit"]
