"""
Row <-> domain conversion helpers shared by the repositories.

Documents store their Company / Person / Vehicle snapshots flattened into
prefixed columns (company_*, buyer_*, vehicle_*) so an issued document never
depends on the current state of the reference tables.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Mapping, Optional

from domain.financials import to_money
from domain.parties import Company, DocumentType, PartyKind, Person
from domain.time import parse_optional_date
from domain.vehicle import VehicleSnapshot


def money(value: Any) -> Decimal:
    return to_money(value)


def optional_money(value: Any) -> Optional[Decimal]:
    if value is None or value == "":
        return None
    return to_money(value)


def optional_int(value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    return int(value)


def text(row: Mapping[str, Any], key: str) -> str:
    value = row.get(key)
    return "" if value is None else str(value)


def optional_text(row: Mapping[str, Any], key: str) -> Optional[str]:
    value = row.get(key)
    return str(value) if value else None


def company_to_row(company: Company) -> dict[str, Any]:
    return {
        "company_id": company.company_id or None,
        "company_legal_name": company.legal_name,
        "company_trade_name": company.trade_name,
        "company_tax_id": company.tax_id,
        "company_address": company.address,
        "company_postcode": company.postcode,
        "company_town": company.town,
        "company_province": company.province,
        "company_phone": company.phone,
        "company_email": company.email,
        "company_bank_account": company.bank_account,
    }


def row_to_company(row: Mapping[str, Any]) -> Company:
    return Company(
        legal_name=text(row, "company_legal_name"),
        tax_id=text(row, "company_tax_id"),
        trade_name=text(row, "company_trade_name"),
        address=text(row, "company_address"),
        postcode=text(row, "company_postcode"),
        town=text(row, "company_town"),
        province=text(row, "company_province"),
        phone=text(row, "company_phone"),
        email=text(row, "company_email"),
        bank_account=text(row, "company_bank_account"),
        company_id=text(row, "company_id"),
    )


def person_to_row(buyer: Person) -> dict[str, Any]:
    return {
        "buyer_id": buyer.person_id or None,
        "buyer_first_name": buyer.first_name,
        "buyer_last_name": buyer.last_name,
        "buyer_kind": buyer.kind.value,
        "buyer_document_type": buyer.document_type.value,
        "buyer_document_number": buyer.document_number,
        "buyer_address": buyer.address,
        "buyer_postcode": buyer.postcode,
        "buyer_town": buyer.town,
        "buyer_province": buyer.province,
        "buyer_phone": buyer.phone,
        "buyer_email": buyer.email,
    }


def row_to_person(row: Mapping[str, Any]) -> Person:
    return Person(
        first_name=text(row, "buyer_first_name"),
        last_name=text(row, "buyer_last_name"),
        document_number=text(row, "buyer_document_number"),
        document_type=DocumentType(row.get("buyer_document_type") or DocumentType.DNI.value),
        kind=PartyKind(row.get("buyer_kind") or PartyKind.INDIVIDUAL.value),
        address=text(row, "buyer_address"),
        postcode=text(row, "buyer_postcode"),
        town=text(row, "buyer_town"),
        province=text(row, "buyer_province"),
        phone=text(row, "buyer_phone"),
        email=text(row, "buyer_email"),
        person_id=text(row, "buyer_id"),
    )


def vehicle_snapshot_to_row(vehicle: VehicleSnapshot) -> dict[str, Any]:
    return {
        "vehicle_make": vehicle.make,
        "vehicle_model": vehicle.model,
        "vehicle_version": vehicle.version,
        "vehicle_plate": vehicle.plate,
        "vehicle_vin": vehicle.vin,
        "vehicle_first_registration": vehicle.first_registration.isoformat() if vehicle.first_registration else None,
        "vehicle_mileage_km": vehicle.mileage_km,
    }


def row_to_vehicle_snapshot(row: Mapping[str, Any]) -> VehicleSnapshot:
    return VehicleSnapshot(
        make=text(row, "vehicle_make"),
        model=text(row, "vehicle_model"),
        version=text(row, "vehicle_version"),
        plate=text(row, "vehicle_plate"),
        vin=text(row, "vehicle_vin"),
        first_registration=parse_optional_date(row.get("vehicle_first_registration")),
        mileage_km=optional_int(row.get("vehicle_mileage_km")),
    )


__all__ = [
    "money",
    "optional_money",
    "optional_int",
    "text",
    "optional_text",
    "company_to_row",
    "row_to_company",
    "person_to_row",
    "row_to_person",
    "vehicle_snapshot_to_row",
    "row_to_vehicle_snapshot",
]
