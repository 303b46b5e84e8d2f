"""
Deposit repository (persistence).

Deposit agreements are stored like contracts: company, buyer and vehicle
snapshots flattened into prefixed columns, and a unique index on `number`.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Any, Mapping, Optional

from domain.deposit import Deposit, DepositStatus
from domain.errors import NumberingConflictError
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

# Supabase table name for deposit agreements.
# Keep this aligned with your database schema.
_DEPOSITS_TABLE: str = "deposits"


def _deposit_to_row(deposit: Deposit) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "deposit_id": deposit.deposit_id,
        "number": deposit.number,
        "status": deposit.status.value,
        "vehicle_id": deposit.vehicle_id,
        "deposit_amount": str(deposit.deposit_amount),
        "total_price": str(deposit.total_price),
        "deposit_date": deposit.deposit_date.isoformat(),
        "sale_deadline": deposit.sale_deadline.isoformat(),
        "bank_account": deposit.bank_account,
        "signing_place": deposit.signing_place,
        "additional_clauses": deposit.additional_clauses,
        "notes": deposit.notes,
        "contract_id": deposit.contract_id,
        "created_at_utc": to_iso_utc(deposit.created_at, name="created_at") if deposit.created_at else None,
    }
    payload.update(company_to_row(deposit.company))
    payload.update(person_to_row(deposit.buyer))
    payload.update(vehicle_snapshot_to_row(deposit.vehicle))
    return payload


def _row_to_deposit(row: Mapping[str, Any]) -> Deposit:
    return Deposit(
        deposit_id=str(row["deposit_id"]),
        number=str(row["number"]),
        status=DepositStatus(str(row["status"])),
        company=row_to_company(row),
        buyer=row_to_person(row),
        vehicle=row_to_vehicle_snapshot(row),
        deposit_amount=money(row.get("deposit_amount")),
        total_price=money(row.get("total_price")),
        deposit_date=parse_optional_date(row["deposit_date"]),
        sale_deadline=parse_optional_date(row["sale_deadline"]),
        vehicle_id=optional_text(row, "vehicle_id"),
        bank_account=text(row, "bank_account"),
        signing_place=text(row, "signing_place"),
        additional_clauses=text(row, "additional_clauses"),
        notes=text(row, "notes"),
        contract_id=optional_text(row, "contract_id"),
        created_at=parse_utc_datetime(row["created_at_utc"]) if row.get("created_at_utc") else None,
    )


def insert_deposit(deposit: Deposit) -> Deposit:
    """
    Insert a deposit agreement.

    Raises:
        NumberingConflictError: another deposit already holds this number
        PersistenceError: any other write failure
    """

    stored = replace(deposit, created_at=deposit.created_at or utc_now())
    try:
        execute(
            supabase.table(_DEPOSITS_TABLE).insert(_deposit_to_row(stored)),
            action="insert deposit",
        )
    except DuplicateKeyError as e:
        raise NumberingConflictError(f"deposit number {deposit.number} is already taken") from e
    return stored


def get_deposit_by_id(deposit_id: str) -> Optional[Deposit]:
    response = execute(
        supabase.table(_DEPOSITS_TABLE).select("*").eq("deposit_id", deposit_id).limit(1),
        action="get deposit",
    )
    rows = rows_of(response)
    if not rows:
        return None
    return _row_to_deposit(rows[0])


def update_deposit_status(deposit_id: str, status: DepositStatus, contract_id: Optional[str] = None) -> None:
    payload: dict[str, Any] = {"status": status.value}
    if contract_id is not None:
        payload["contract_id"] = contract_id

    execute(
        supabase.table(_DEPOSITS_TABLE).update(payload).eq("deposit_id", deposit_id),
        action="update deposit status",
    )


__all__ = ["insert_deposit", "get_deposit_by_id", "update_deposit_status"]
