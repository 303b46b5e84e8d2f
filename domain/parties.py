"""
Domain: parties to a commercial document.

Company (the selling entity) and Person (the buyer) are reference data owned
elsewhere. Contracts and invoices embed a copy of them at issue time, so these
types double as the frozen snapshots stored on each document.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import List


class PartyKind(str, Enum):
    INDIVIDUAL = "individual"
    COMPANY = "company"


class DocumentType(str, Enum):
    DNI = "DNI"
    NIE = "NIE"
    CIF = "CIF"
    PASSPORT = "passport"


@dataclass(frozen=True, slots=True)
class Company:
    """Issuing company identity as printed on contracts and invoices."""

    legal_name: str
    tax_id: str
    trade_name: str = ""
    address: str = ""
    postcode: str = ""
    town: str = ""
    province: str = ""
    phone: str = ""
    email: str = ""
    bank_account: str = ""
    company_id: str = ""

    @property
    def display_name(self) -> str:
        return self.legal_name or self.trade_name

    def full_address(self) -> str:
        return _join_address(self.address, self.postcode, self.town, self.province)


@dataclass(frozen=True, slots=True)
class Person:
    """Buyer identity and fiscal data."""

    first_name: str
    last_name: str = ""
    document_number: str = ""
    document_type: DocumentType = DocumentType.DNI
    kind: PartyKind = PartyKind.INDIVIDUAL
    address: str = ""
    postcode: str = ""
    town: str = ""
    province: str = ""
    phone: str = ""
    email: str = ""
    person_id: str = ""

    @property
    def full_name(self) -> str:
        return " ".join(part for part in (self.first_name.strip(), self.last_name.strip()) if part)

    def full_address(self) -> str:
        return _join_address(self.address, self.postcode, self.town, self.province)

    def missing_mandatory_fields(self) -> List[str]:
        """Fields that must be present before a document number is allocated."""

        missing: List[str] = []
        if not self.full_name:
            missing.append("buyer name is required")
        if not self.document_number.strip():
            missing.append("buyer document number is required")
        return missing


def _join_address(street: str, postcode: str, town: str, province: str) -> str:
    locality = " ".join(part for part in (postcode.strip(), town.strip()) if part)
    if province.strip():
        locality = f"{locality} ({province.strip()})" if locality else province.strip()
    return ", ".join(part for part in (street.strip(), locality) if part)


__all__ = ["PartyKind", "DocumentType", "Company", "Person"]
