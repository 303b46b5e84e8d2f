"""
Sale repository (persistence).

This module provides *only* persistence operations for the SaleRecord domain
entity. It does not enforce business rules (e.g., one sale per opportunity);
the sale-closing service checks that before writing. The table carries a
unique index on opportunity_id as a backstop.

The vehicle, buyer and company snapshots are flattened into vehicle_*, buyer_*
and company_* columns, as on contracts. A NULL buyer or company name column
means the sale was closed without that snapshot.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Any, Mapping, Optional

from domain.payment import PaymentMethod
from domain.sale import FinancingTerms, SaleRecord, Warranty
from domain.time import parse_optional_date, parse_utc_datetime, to_iso_utc, utc_now
from repositories.client import execute, rows_of, supabase
from repositories.row_mapping import (
    company_to_row,
    money,
    optional_money,
    person_to_row,
    row_to_company,
    row_to_person,
    row_to_vehicle_snapshot,
    text,
    vehicle_snapshot_to_row,
)

# Supabase table name for sale records.
# Keep this aligned with your database schema.
_SALES_TABLE: str = "sales"


def _sale_to_row(record: SaleRecord) -> dict[str, Any]:
    financing = record.financing
    payload: dict[str, Any] = {
        "sale_id": record.sale_id,
        "opportunity_id": record.opportunity_id,
        "vehicle_id": record.vehicle_id,
        "buyer_id": record.buyer_id,
        "list_price": str(record.list_price),
        "discount": str(record.discount),
        "additional_expenses": str(record.additional_expenses),
        "additional_expenses_description": record.additional_expenses_description,
        "final_price": str(record.final_price),
        "cost_total": str(record.cost_total),
        "margin": str(record.margin),
        "margin_percent": str(record.margin_percent),
        "payment_method": record.payment_method.value,
        "down_payment": str(financing.down_payment) if financing else None,
        "installment_count": financing.installment_count if financing else None,
        "lender": financing.lender if financing else None,
        "amount_to_finance": str(financing.amount_to_finance) if financing else None,
        "installment_estimate": (
            str(financing.installment_estimate) if financing and financing.installment_estimate is not None else None
        ),
        "sold_at_utc": to_iso_utc(record.sold_at, name="sold_at"),
        "delivery_date": record.delivery_date.isoformat(),
        "warranty_months": record.warranty.months,
        "warranty_extended": record.warranty.extended,
        "notes": record.notes,
        "created_at_utc": to_iso_utc(record.created_at, name="created_at") if record.created_at else None,
    }
    payload.update(vehicle_snapshot_to_row(record.vehicle))
    if record.company is not None:
        payload.update(company_to_row(record.company))
    if record.buyer is not None:
        payload.update(person_to_row(record.buyer))
    # buyer_id is the sale's own column; the snapshot never overrides it
    payload["buyer_id"] = record.buyer_id
    return payload


def _row_to_sale(row: Mapping[str, Any]) -> SaleRecord:
    """Convert a Supabase row into a SaleRecord."""

    method = PaymentMethod(str(row["payment_method"]))
    financing = None
    if method != PaymentMethod.CASH:
        financing = FinancingTerms(
            down_payment=money(row.get("down_payment")),
            installment_count=int(row.get("installment_count") or 0),
            lender=text(row, "lender"),
            amount_to_finance=money(row.get("amount_to_finance")),
            installment_estimate=optional_money(row.get("installment_estimate")),
        )

    delivery = parse_optional_date(row.get("delivery_date"))
    sold_at = parse_utc_datetime(row["sold_at_utc"])

    return SaleRecord(
        sale_id=str(row["sale_id"]),
        opportunity_id=str(row["opportunity_id"]),
        vehicle_id=str(row["vehicle_id"]),
        buyer_id=str(row["buyer_id"]),
        list_price=money(row.get("list_price")),
        discount=money(row.get("discount")),
        additional_expenses=money(row.get("additional_expenses")),
        final_price=money(row.get("final_price")),
        cost_total=money(row.get("cost_total")),
        margin=money(row.get("margin")),
        margin_percent=money(row.get("margin_percent")),
        payment_method=method,
        sold_at=sold_at,
        delivery_date=delivery if delivery is not None else sold_at.date(),
        warranty=Warranty(
            months=int(row.get("warranty_months") or 0),
            extended=bool(row.get("warranty_extended")),
        ),
        financing=financing,
        additional_expenses_description=text(row, "additional_expenses_description"),
        notes=text(row, "notes"),
        vehicle=row_to_vehicle_snapshot(row),
        buyer=row_to_person(row) if row.get("buyer_first_name") is not None else None,
        company=row_to_company(row) if row.get("company_legal_name") is not None else None,
        created_at=parse_utc_datetime(row["created_at_utc"]) if row.get("created_at_utc") else None,
    )


def record_sale(record: SaleRecord) -> SaleRecord:
    """
    Insert a new sale record into Supabase.

    Returns:
        The SaleRecord as stored, with created_at stamped
    """

    stored = replace(record, created_at=record.created_at or utc_now())
    execute(
        supabase.table(_SALES_TABLE).insert(_sale_to_row(stored)),
        action="record sale",
    )
    return stored


def get_sale_by_id(sale_id: str) -> Optional[SaleRecord]:
    """
    Retrieve a single sale record by its ID.

    Returns:
        SaleRecord or None if not found
    """

    response = execute(
        supabase.table(_SALES_TABLE).select("*").eq("sale_id", sale_id).limit(1),
        action="get sale",
    )
    rows = rows_of(response)
    if not rows:
        return None
    return _row_to_sale(rows[0])


def get_sale_by_opportunity(opportunity_id: str) -> Optional[SaleRecord]:
    response = execute(
        supabase.table(_SALES_TABLE).select("*").eq("opportunity_id", opportunity_id).limit(1),
        action="get sale for opportunity",
    )
    rows = rows_of(response)
    if not rows:
        return None
    return _row_to_sale(rows[0])


def delete_sale(sale_id: str) -> None:
    """Remove a sale record. Only used to compensate a sale that did not complete."""

    execute(
        supabase.table(_SALES_TABLE).delete().eq("sale_id", sale_id),
        action="delete sale",
    )


__all__ = [
    "record_sale",
    "get_sale_by_id",
    "get_sale_by_opportunity",
    "delete_sale",
]
