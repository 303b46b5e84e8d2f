"""
Domain: vehicle sale contract.

A Contract is a numbered document carrying frozen snapshots of the issuing
company, the buyer and the vehicle. Its economic terms come from the shared
financial model and are checked for consistency on construction, so a
contract can never disagree with the invoice or sale figures derived from the
same inputs.

Status lifecycle: draft -> signed -> cancelled (draft may also be cancelled).
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import List, Optional, Tuple

from .errors import InvariantViolation
from .financials import TaxRate, document_total, tax_amount
from .parties import Company, Person
from .payment import PaymentMethod
from .time import require_utc_timestamp
from .vehicle import VehicleSnapshot


class ContractStatus(str, Enum):
    DRAFT = "draft"
    SIGNED = "signed"
    CANCELLED = "cancelled"


class WarrantyKind(str, Enum):
    LEGAL = "legal"
    COMMERCIAL = "commercial"
    EXTENDED = "extended"


@dataclass(frozen=True, slots=True)
class WarrantyTerms:
    """Months or kilometres, whichever runs out first. 0 km means no distance limit."""

    has_warranty: bool = True
    months: int = 12
    kind: WarrantyKind = WarrantyKind.LEGAL
    kilometres: int = 12000

    def __post_init__(self) -> None:
        if self.months < 0 or self.kilometres < 0:
            raise InvariantViolation("warranty months and kilometres must not be negative")

    @staticmethod
    def none() -> "WarrantyTerms":
        return WarrantyTerms(has_warranty=False, months=0, kind=WarrantyKind.LEGAL, kilometres=0)


@dataclass(frozen=True, slots=True)
class DocumentationChecklist:
    """Vehicle papers handed to the buyer at signing."""

    registration_certificate: bool = True
    technical_sheet: bool = True
    valid_inspection: bool = True
    road_tax_receipt: bool = True

    def items(self) -> List[Tuple[str, bool]]:
        return [
            ("Registration certificate", self.registration_certificate),
            ("Technical inspection sheet", self.technical_sheet),
            ("Valid roadworthiness inspection", self.valid_inspection),
            ("Road tax payment receipt", self.road_tax_receipt),
        ]


@dataclass(frozen=True, slots=True)
class AccessoriesChecklist:
    """Equipment handed over with the vehicle. `other` is free text, printed when set."""

    spare_wheel: bool = True
    jack: bool = True
    spare_keys: bool = False
    manuals: bool = True
    other: str = ""

    def items(self) -> List[Tuple[str, bool]]:
        return [
            ("Spare wheel", self.spare_wheel),
            ("Jack and tools", self.jack),
            ("Spare keys", self.spare_keys),
            ("Owner's manuals", self.manuals),
        ]


@dataclass(frozen=True, slots=True)
class ContractTerms:
    """Economic terms. total = price_excl_tax + tax_amount (contracts carry no discount)."""

    price_excl_tax: Decimal
    tax_rate: TaxRate
    tax_amount: Decimal
    total: Decimal
    payment_method: PaymentMethod

    def __post_init__(self) -> None:
        expected_tax = tax_amount(self.price_excl_tax, self.tax_rate)
        if self.tax_amount != expected_tax:
            raise InvariantViolation(f"contract tax_amount {self.tax_amount} != {expected_tax}")
        expected_total = document_total(self.price_excl_tax, Decimal("0"), expected_tax)
        if self.total != expected_total:
            raise InvariantViolation(f"contract total {self.total} != {expected_total}")


@dataclass(frozen=True, slots=True)
class Contract:
    contract_id: str
    number: str
    status: ContractStatus
    company: Company
    buyer: Person
    vehicle: VehicleSnapshot
    terms: ContractTerms
    signing_date: date
    signing_place: str = ""
    vehicle_id: Optional[str] = None
    warranty: WarrantyTerms = field(default_factory=WarrantyTerms)
    documentation: DocumentationChecklist = field(default_factory=DocumentationChecklist)
    accessories: AccessoriesChecklist = field(default_factory=AccessoriesChecklist)
    additional_clauses: str = ""
    notes: str = ""
    created_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        if self.created_at is not None:
            require_utc_timestamp("created_at", self.created_at)

    def sign(self) -> "Contract":
        if self.status != ContractStatus.DRAFT:
            raise InvariantViolation(f"contract {self.number} is {self.status.value} and cannot be signed")
        return replace(self, status=ContractStatus.SIGNED)

    def cancel(self) -> "Contract":
        if self.status == ContractStatus.CANCELLED:
            raise InvariantViolation(f"contract {self.number} is already cancelled")
        return replace(self, status=ContractStatus.CANCELLED)


__all__ = [
    "ContractStatus",
    "WarrantyKind",
    "WarrantyTerms",
    "DocumentationChecklist",
    "AccessoriesChecklist",
    "ContractTerms",
    "Contract",
]
