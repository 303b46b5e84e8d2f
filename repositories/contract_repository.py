"""
Contract repository (persistence).

Contracts are stored with their company, buyer and vehicle snapshots flattened
into prefixed columns. The `number` column carries a unique index; a duplicate
number surfaces as NumberingConflictError so the caller can allocate again.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Any, List, Mapping, Optional

from domain.contract import (
    AccessoriesChecklist,
    Contract,
    ContractStatus,
    ContractTerms,
    DocumentationChecklist,
    WarrantyKind,
    WarrantyTerms,
)
from domain.errors import NumberingConflictError
from domain.financials import TaxRate
from domain.payment import PaymentMethod
from domain.time import parse_optional_date, parse_utc_datetime, to_iso_utc, utc_now
from repositories.client import DuplicateKeyError, execute, rows_of, supabase
from repositories.row_mapping import (
    company_to_row,
    money,
    optional_text,
    person_to_row,
    row_to_company,
    row_to_person,
    row_to_vehicle_snapshot,
    text,
    vehicle_snapshot_to_row,
)

# Supabase table name for contracts.
# Keep this aligned with your database schema.
_CONTRACTS_TABLE: str = "contracts"


def _contract_to_row(contract: Contract) -> dict[str, Any]:
    terms = contract.terms
    docs = contract.documentation
    payload: dict[str, Any] = {
        "contract_id": contract.contract_id,
        "number": contract.number,
        "status": contract.status.value,
        "vehicle_id": contract.vehicle_id,
        "price_excl_tax": str(terms.price_excl_tax),
        "tax_rate": terms.tax_rate.to_storage(),
        "tax_amount": str(terms.tax_amount),
        "total": str(terms.total),
        "payment_method": terms.payment_method.value,
        "has_warranty": contract.warranty.has_warranty,
        "warranty_months": contract.warranty.months,
        "warranty_kind": contract.warranty.kind.value,
        "warranty_km": contract.warranty.kilometres,
        "doc_registration_certificate": docs.registration_certificate,
        "doc_technical_sheet": docs.technical_sheet,
        "doc_valid_inspection": docs.valid_inspection,
        "doc_road_tax_receipt": docs.road_tax_receipt,
        "acc_spare_wheel": contract.accessories.spare_wheel,
        "acc_jack": contract.accessories.jack,
        "acc_spare_keys": contract.accessories.spare_keys,
        "acc_manuals": contract.accessories.manuals,
        "acc_other": contract.accessories.other,
        "signing_date": contract.signing_date.isoformat(),
        "signing_place": contract.signing_place,
        "additional_clauses": contract.additional_clauses,
        "notes": contract.notes,
        "created_at_utc": to_iso_utc(contract.created_at, name="created_at") if contract.created_at else None,
    }
    payload.update(company_to_row(contract.company))
    payload.update(person_to_row(contract.buyer))
    payload.update(vehicle_snapshot_to_row(contract.vehicle))
    return payload


def _row_to_contract(row: Mapping[str, Any]) -> Contract:
    """Convert a Supabase row into a Contract."""

    return Contract(
        contract_id=str(row["contract_id"]),
        number=str(row["number"]),
        status=ContractStatus(str(row["status"])),
        company=row_to_company(row),
        buyer=row_to_person(row),
        vehicle=row_to_vehicle_snapshot(row),
        terms=ContractTerms(
            price_excl_tax=money(row.get("price_excl_tax")),
            tax_rate=TaxRate.of(row.get("tax_rate")),
            tax_amount=money(row.get("tax_amount")),
            total=money(row.get("total")),
            payment_method=PaymentMethod(str(row["payment_method"])),
        ),
        signing_date=parse_optional_date(row["signing_date"]),
        signing_place=text(row, "signing_place"),
        vehicle_id=optional_text(row, "vehicle_id"),
        warranty=WarrantyTerms(
            has_warranty=bool(row.get("has_warranty")),
            months=int(row.get("warranty_months") or 0),
            kind=WarrantyKind(row.get("warranty_kind") or WarrantyKind.LEGAL.value),
            kilometres=int(row.get("warranty_km") or 0),
        ),
        documentation=DocumentationChecklist(
            registration_certificate=bool(row.get("doc_registration_certificate")),
            technical_sheet=bool(row.get("doc_technical_sheet")),
            valid_inspection=bool(row.get("doc_valid_inspection")),
            road_tax_receipt=bool(row.get("doc_road_tax_receipt")),
        ),
        accessories=AccessoriesChecklist(
            spare_wheel=bool(row.get("acc_spare_wheel")),
            jack=bool(row.get("acc_jack")),
            spare_keys=bool(row.get("acc_spare_keys")),
            manuals=bool(row.get("acc_manuals")),
            other=text(row, "acc_other"),
        ),
        additional_clauses=text(row, "additional_clauses"),
        notes=text(row, "notes"),
        created_at=parse_utc_datetime(row["created_at_utc"]) if row.get("created_at_utc") else None,
    )


def insert_contract(contract: Contract) -> Contract:
    """
    Insert a contract.

    Raises:
        NumberingConflictError: another contract already holds this number
        PersistenceError: any other write failure
    """

    stored = replace(contract, created_at=contract.created_at or utc_now())
    try:
        execute(
            supabase.table(_CONTRACTS_TABLE).insert(_contract_to_row(stored)),
            action="insert contract",
        )
    except DuplicateKeyError as e:
        raise NumberingConflictError(f"contract number {contract.number} is already taken") from e
    return stored


def get_contract_by_id(contract_id: str) -> Optional[Contract]:
    response = execute(
        supabase.table(_CONTRACTS_TABLE).select("*").eq("contract_id", contract_id).limit(1),
        action="get contract",
    )
    rows = rows_of(response)
    if not rows:
        return None
    return _row_to_contract(rows[0])


def update_contract_status(contract_id: str, status: ContractStatus) -> None:
    execute(
        supabase.table(_CONTRACTS_TABLE).update({"status": status.value}).eq("contract_id", contract_id),
        action="update contract status",
    )


def list_contracts_by_vehicle(vehicle_id: str) -> List[Contract]:
    """
    Retrieve all contracts issued for a vehicle, oldest number first.

    Returns:
        List[Contract] (possibly empty)
    """

    response = execute(
        supabase.table(_CONTRACTS_TABLE).select("*").eq("vehicle_id", vehicle_id).order("number"),
        action="list contracts",
    )
    return [_row_to_contract(row) for row in rows_of(response)]


__all__ = [
    "insert_contract",
    "get_contract_by_id",
    "update_contract_status",
    "list_contracts_by_vehicle",
]
