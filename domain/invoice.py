"""
Domain: Invoice.

Invoices are numbered in their own scope, independent of contracts. An invoice
may point at the contract it was pre-filled from, but that reference is
informational only.

Amounts: total = base_amount - discount + tax_amount, with
tax_amount = base_amount * tax_rate / 100 (zero when tax is not applicable).

Status lifecycle:
- pending -> paid | cancelled | overdue
- overdue -> paid | cancelled
- paid and cancelled are final
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from .errors import InvariantViolation
from .financials import TaxRate, document_total, tax_amount
from .parties import Company, Person
from .payment import PaymentMethod
from .time import require_utc_timestamp


class InvoiceStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    CANCELLED = "cancelled"
    OVERDUE = "overdue"


_OPEN_STATUSES = frozenset({InvoiceStatus.PENDING, InvoiceStatus.OVERDUE})


@dataclass(frozen=True, slots=True)
class Invoice:
    invoice_id: str
    number: str
    status: InvoiceStatus
    issue_date: date
    due_date: date
    company: Company
    buyer: Person
    concept: str
    base_amount: Decimal
    discount: Decimal
    tax_rate: TaxRate
    tax_amount: Decimal
    total: Decimal
    payment_method: PaymentMethod
    contract_id: Optional[str] = None
    vehicle_id: Optional[str] = None
    vehicle_description: str = ""
    bank_account: str = ""
    notes: str = ""
    paid_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        if self.due_date < self.issue_date:
            raise InvariantViolation(f"invoice {self.number} due date precedes its issue date")
        expected_tax = tax_amount(self.base_amount, self.tax_rate)
        if self.tax_amount != expected_tax:
            raise InvariantViolation(f"invoice tax_amount {self.tax_amount} != {expected_tax}")
        expected_total = document_total(self.base_amount, self.discount, expected_tax)
        if self.total != expected_total:
            raise InvariantViolation(f"invoice total {self.total} != {expected_total}")
        if self.paid_at is not None:
            require_utc_timestamp("paid_at", self.paid_at)
        if self.created_at is not None:
            require_utc_timestamp("created_at", self.created_at)

    @property
    def is_open(self) -> bool:
        return self.status in _OPEN_STATUSES

    def mark_paid(self, *, at: datetime) -> "Invoice":
        require_utc_timestamp("at", at)
        if not self.is_open:
            raise InvariantViolation(f"invoice {self.number} is {self.status.value} and cannot be paid")
        return replace(self, status=InvoiceStatus.PAID, paid_at=at)

    def cancel(self) -> "Invoice":
        if not self.is_open:
            raise InvariantViolation(f"invoice {self.number} is {self.status.value} and cannot be cancelled")
        return replace(self, status=InvoiceStatus.CANCELLED)

    def is_past_due(self, today: date) -> bool:
        return self.status == InvoiceStatus.PENDING and today > self.due_date

    def with_overdue_status(self, today: date) -> "Invoice":
        """Return the invoice flagged overdue if it is pending past its due date, else itself."""

        if self.is_past_due(today):
            return replace(self, status=InvoiceStatus.OVERDUE)
        return self


__all__ = ["InvoiceStatus", "Invoice"]
