"""
Domain: proforma invoice (quote).

A proforma has the amounts of an invoice but no fiscal validity. It is
numbered in its own scope, valid for a number of days from its issue date,
and may suggest a reservation amount. Once the sale goes ahead it is marked
invoiced with a reference to the real invoice.

Status lifecycle: valid -> invoiced | cancelled.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date, datetime, timedelta
from decimal import Decimal
from enum import Enum
from typing import Optional

from .errors import InvariantViolation
from .financials import TaxRate, document_total, tax_amount
from .parties import Company, Person
from .payment import PaymentMethod
from .time import require_utc_timestamp


class ProformaStatus(str, Enum):
    VALID = "valid"
    INVOICED = "invoiced"
    CANCELLED = "cancelled"


@dataclass(frozen=True, slots=True)
class Proforma:
    proforma_id: str
    number: str
    status: ProformaStatus
    issue_date: date
    validity_days: int
    company: Company
    buyer: Person
    concept: str
    base_amount: Decimal
    discount: Decimal
    tax_rate: TaxRate
    tax_amount: Decimal
    total: Decimal
    payment_method: PaymentMethod
    reservation_amount: Optional[Decimal] = None
    vehicle_id: Optional[str] = None
    vehicle_description: str = ""
    bank_account: str = ""
    notes: str = ""
    invoice_id: Optional[str] = None
    created_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        if self.validity_days < 1:
            raise InvariantViolation(f"proforma {self.number} must be valid for at least one day")
        expected_tax = tax_amount(self.base_amount, self.tax_rate)
        if self.tax_amount != expected_tax:
            raise InvariantViolation(f"proforma tax_amount {self.tax_amount} != {expected_tax}")
        expected_total = document_total(self.base_amount, self.discount, expected_tax)
        if self.total != expected_total:
            raise InvariantViolation(f"proforma total {self.total} != {expected_total}")
        if self.reservation_amount is not None and not 0 <= self.reservation_amount <= self.total:
            raise InvariantViolation(
                f"proforma {self.number} reservation amount must be between 0 and the total"
            )
        if self.created_at is not None:
            require_utc_timestamp("created_at", self.created_at)

    @property
    def expires_on(self) -> date:
        return self.issue_date + timedelta(days=self.validity_days)

    def is_expired(self, today: date) -> bool:
        return self.status == ProformaStatus.VALID and today > self.expires_on

    def mark_invoiced(self, invoice_id: str) -> "Proforma":
        if self.status != ProformaStatus.VALID:
            raise InvariantViolation(f"proforma {self.number} is {self.status.value} and cannot be invoiced")
        return replace(self, status=ProformaStatus.INVOICED, invoice_id=invoice_id)

    def cancel(self) -> "Proforma":
        if self.status != ProformaStatus.VALID:
            raise InvariantViolation(f"proforma {self.number} is {self.status.value} and cannot be cancelled")
        return replace(self, status=ProformaStatus.CANCELLED)


__all__ = ["ProformaStatus", "Proforma"]
