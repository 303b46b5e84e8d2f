"""
Domain: SaleRecord, the frozen financial and logistic facts of a closed sale.

Invariants enforced at construction:
- final_price = list_price - discount + additional_expenses. The figure is
  frozen when recorded; later edits to the vehicle never change a closed sale.
- payment_method is one of cash, financing, leasing, renting.
- Financing detail is present iff payment_method is not cash.

The vehicle, buyer and company are frozen onto the record at close time, the
same way contracts carry their snapshots, so the sale summary printed from a
record never changes after an inventory or customer edit.

One Opportunity produces at most one SaleRecord; the sale-closing workflow
enforces that, not this type.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from .errors import InvariantViolation
from .financials import final_price as compute_final_price
from .parties import Company, Person
from .payment import SALE_PAYMENT_METHODS, PaymentMethod
from .time import require_utc_timestamp
from .vehicle import VehicleSnapshot


@dataclass(frozen=True, slots=True)
class FinancingTerms:
    """Down payment and installment plan. The installment is a flat estimate."""

    down_payment: Decimal
    installment_count: int
    lender: str
    amount_to_finance: Decimal
    installment_estimate: Optional[Decimal]


@dataclass(frozen=True, slots=True)
class Warranty:
    months: int = 12
    extended: bool = False

    @property
    def has_warranty(self) -> bool:
        return self.months > 0


@dataclass(frozen=True, slots=True)
class SaleRecord:
    """
    Immutable record of a closed sale.

    Margin figures are captured alongside the price so reporting never has to
    re-derive them from a vehicle record that may have changed since.
    """

    sale_id: str
    opportunity_id: str
    vehicle_id: str
    buyer_id: str
    list_price: Decimal
    discount: Decimal
    additional_expenses: Decimal
    final_price: Decimal
    cost_total: Decimal
    margin: Decimal
    margin_percent: Decimal
    payment_method: PaymentMethod
    sold_at: datetime
    delivery_date: date
    warranty: Warranty = field(default_factory=Warranty)
    financing: Optional[FinancingTerms] = None
    additional_expenses_description: str = ""
    notes: str = ""
    vehicle: VehicleSnapshot = field(default_factory=VehicleSnapshot)
    buyer: Optional[Person] = None
    company: Optional[Company] = None
    created_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        require_utc_timestamp("sold_at", self.sold_at)
        if self.created_at is not None:
            require_utc_timestamp("created_at", self.created_at)

        expected = compute_final_price(self.list_price, self.discount, self.additional_expenses)
        if self.final_price != expected:
            raise InvariantViolation(
                f"final_price {self.final_price} does not equal list_price - discount + additional_expenses ({expected})"
            )
        if self.payment_method not in SALE_PAYMENT_METHODS:
            raise InvariantViolation(f"payment method {self.payment_method.value} is not valid for a sale")
        if self.payment_method == PaymentMethod.CASH and self.financing is not None:
            raise InvariantViolation("cash sales must not carry financing detail")
        if self.payment_method != PaymentMethod.CASH and self.financing is None:
            raise InvariantViolation(f"{self.payment_method.value} sales require financing detail")
        if self.buyer is not None and self.buyer.person_id and self.buyer.person_id != self.buyer_id:
            raise InvariantViolation(
                f"buyer snapshot {self.buyer.person_id} does not match sale buyer {self.buyer_id}"
            )


__all__ = ["FinancingTerms", "Warranty", "SaleRecord"]
