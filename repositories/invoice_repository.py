"""
Invoice repository (persistence).

Invoices are stored with company and buyer snapshots flattened into prefixed
columns. The `number` column carries a unique index.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from typing import Any, Mapping, Optional

from domain.errors import NumberingConflictError
from domain.financials import TaxRate
from domain.invoice import Invoice, InvoiceStatus
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
    text,
)

# Supabase table name for invoices.
# Keep this aligned with your database schema.
_INVOICES_TABLE: str = "invoices"


def _invoice_to_row(invoice: Invoice) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "invoice_id": invoice.invoice_id,
        "number": invoice.number,
        "status": invoice.status.value,
        "issue_date": invoice.issue_date.isoformat(),
        "due_date": invoice.due_date.isoformat(),
        "concept": invoice.concept,
        "base_amount": str(invoice.base_amount),
        "discount": str(invoice.discount),
        "tax_rate": invoice.tax_rate.to_storage(),
        "tax_amount": str(invoice.tax_amount),
        "total": str(invoice.total),
        "payment_method": invoice.payment_method.value,
        "contract_id": invoice.contract_id,
        "vehicle_id": invoice.vehicle_id,
        "vehicle_description": invoice.vehicle_description,
        "bank_account": invoice.bank_account,
        "notes": invoice.notes,
        "paid_at_utc": to_iso_utc(invoice.paid_at, name="paid_at") if invoice.paid_at else None,
        "created_at_utc": to_iso_utc(invoice.created_at, name="created_at") if invoice.created_at else None,
    }
    payload.update(company_to_row(invoice.company))
    payload.update(person_to_row(invoice.buyer))
    return payload


def _row_to_invoice(row: Mapping[str, Any]) -> Invoice:
    """Convert a Supabase row into an Invoice."""

    return Invoice(
        invoice_id=str(row["invoice_id"]),
        number=str(row["number"]),
        status=InvoiceStatus(str(row["status"])),
        issue_date=parse_optional_date(row["issue_date"]),
        due_date=parse_optional_date(row["due_date"]),
        company=row_to_company(row),
        buyer=row_to_person(row),
        concept=text(row, "concept"),
        base_amount=money(row.get("base_amount")),
        discount=money(row.get("discount")),
        tax_rate=TaxRate.of(row.get("tax_rate")),
        tax_amount=money(row.get("tax_amount")),
        total=money(row.get("total")),
        payment_method=PaymentMethod(str(row["payment_method"])),
        contract_id=optional_text(row, "contract_id"),
        vehicle_id=optional_text(row, "vehicle_id"),
        vehicle_description=text(row, "vehicle_description"),
        bank_account=text(row, "bank_account"),
        notes=text(row, "notes"),
        paid_at=parse_utc_datetime(row["paid_at_utc"]) if row.get("paid_at_utc") else None,
        created_at=parse_utc_datetime(row["created_at_utc"]) if row.get("created_at_utc") else None,
    )


def insert_invoice(invoice: Invoice) -> Invoice:
    """
    Insert an invoice.

    Raises:
        NumberingConflictError: another invoice already holds this number
        PersistenceError: any other write failure
    """

    stored = replace(invoice, created_at=invoice.created_at or utc_now())
    try:
        execute(
            supabase.table(_INVOICES_TABLE).insert(_invoice_to_row(stored)),
            action="insert invoice",
        )
    except DuplicateKeyError as e:
        raise NumberingConflictError(f"invoice number {invoice.number} is already taken") from e
    return stored


def get_invoice_by_id(invoice_id: str) -> Optional[Invoice]:
    response = execute(
        supabase.table(_INVOICES_TABLE).select("*").eq("invoice_id", invoice_id).limit(1),
        action="get invoice",
    )
    rows = rows_of(response)
    if not rows:
        return None
    return _row_to_invoice(rows[0])


def update_invoice_status(invoice_id: str, status: InvoiceStatus, paid_at: Optional[datetime] = None) -> None:
    """
    Update the status of an invoice.

    Args:
        invoice_id: Invoice identifier
        status: New status
        paid_at: UTC payment timestamp, written only when given
    """

    payload: dict[str, Any] = {"status": status.value}
    if paid_at is not None:
        payload["paid_at_utc"] = to_iso_utc(paid_at, name="paid_at")

    execute(
        supabase.table(_INVOICES_TABLE).update(payload).eq("invoice_id", invoice_id),
        action="update invoice status",
    )


__all__ = ["insert_invoice", "get_invoice_by_id", "update_invoice_status"]
