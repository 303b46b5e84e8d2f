"""
Proforma repository (persistence).

Same row shape as invoices plus validity, reservation amount and the id of
the invoice the proforma turned into.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Any, Mapping, Optional

from domain.errors import NumberingConflictError
from domain.financials import TaxRate
from domain.payment import PaymentMethod
from domain.proforma import Proforma, ProformaStatus
from domain.time import parse_optional_date, parse_utc_datetime, to_iso_utc, utc_now
from repositories.client import DuplicateKeyError, execute, rows_of, supabase
from repositories.row_mapping import (
    company_to_row,
    money,
    optional_money,
    optional_text,
    person_to_row,
    row_to_company,
    row_to_person,
    text,
)

# Supabase table name for proformas.
# Keep this aligned with your database schema.
_PROFORMAS_TABLE: str = "proformas"


def _proforma_to_row(proforma: Proforma) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "proforma_id": proforma.proforma_id,
        "number": proforma.number,
        "status": proforma.status.value,
        "issue_date": proforma.issue_date.isoformat(),
        "validity_days": proforma.validity_days,
        "concept": proforma.concept,
        "base_amount": str(proforma.base_amount),
        "discount": str(proforma.discount),
        "tax_rate": proforma.tax_rate.to_storage(),
        "tax_amount": str(proforma.tax_amount),
        "total": str(proforma.total),
        "payment_method": proforma.payment_method.value,
        "reservation_amount": (
            str(proforma.reservation_amount) if proforma.reservation_amount is not None else None
        ),
        "vehicle_id": proforma.vehicle_id,
        "vehicle_description": proforma.vehicle_description,
        "bank_account": proforma.bank_account,
        "notes": proforma.notes,
        "invoice_id": proforma.invoice_id,
        "created_at_utc": to_iso_utc(proforma.created_at, name="created_at") if proforma.created_at else None,
    }
    payload.update(company_to_row(proforma.company))
    payload.update(person_to_row(proforma.buyer))
    return payload


def _row_to_proforma(row: Mapping[str, Any]) -> Proforma:
    return Proforma(
        proforma_id=str(row["proforma_id"]),
        number=str(row["number"]),
        status=ProformaStatus(str(row["status"])),
        issue_date=parse_optional_date(row["issue_date"]),
        validity_days=int(row.get("validity_days") or 1),
        company=row_to_company(row),
        buyer=row_to_person(row),
        concept=text(row, "concept"),
        base_amount=money(row.get("base_amount")),
        discount=money(row.get("discount")),
        tax_rate=TaxRate.of(row.get("tax_rate")),
        tax_amount=money(row.get("tax_amount")),
        total=money(row.get("total")),
        payment_method=PaymentMethod(str(row["payment_method"])),
        reservation_amount=optional_money(row.get("reservation_amount")),
        vehicle_id=optional_text(row, "vehicle_id"),
        vehicle_description=text(row, "vehicle_description"),
        bank_account=text(row, "bank_account"),
        notes=text(row, "notes"),
        invoice_id=optional_text(row, "invoice_id"),
        created_at=parse_utc_datetime(row["created_at_utc"]) if row.get("created_at_utc") else None,
    )


def insert_proforma(proforma: Proforma) -> Proforma:
    """
    Insert a proforma.

    Raises:
        NumberingConflictError: another proforma already holds this number
        PersistenceError: any other write failure
    """

    stored = replace(proforma, created_at=proforma.created_at or utc_now())
    try:
        execute(
            supabase.table(_PROFORMAS_TABLE).insert(_proforma_to_row(stored)),
            action="insert proforma",
        )
    except DuplicateKeyError as e:
        raise NumberingConflictError(f"proforma number {proforma.number} is already taken") from e
    return stored


def get_proforma_by_id(proforma_id: str) -> Optional[Proforma]:
    response = execute(
        supabase.table(_PROFORMAS_TABLE).select("*").eq("proforma_id", proforma_id).limit(1),
        action="get proforma",
    )
    rows = rows_of(response)
    if not rows:
        return None
    return _row_to_proforma(rows[0])


def update_proforma_status(proforma_id: str, status: ProformaStatus, invoice_id: Optional[str] = None) -> None:
    payload: dict[str, Any] = {"status": status.value}
    if invoice_id is not None:
        payload["invoice_id"] = invoice_id

    execute(
        supabase.table(_PROFORMAS_TABLE).update(payload).eq("proforma_id", proforma_id),
        action="update proforma status",
    )


__all__ = ["insert_proforma", "get_proforma_by_id", "update_proforma_status"]
