"""
Vehicle repository (persistence).

The vehicles table is owned by the inventory screens. The sales core only
reads vehicles and writes their state.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional

from domain.time import parse_optional_date
from domain.vehicle import Vehicle, VehicleState
from repositories.client import execute, rows_of, supabase
from repositories.row_mapping import money, optional_int, text

# Supabase table name for vehicles.
# Keep this aligned with your database schema.
_VEHICLES_TABLE: str = "vehicles"


def _row_to_vehicle(row: Mapping[str, Any]) -> Vehicle:
    """Convert a Supabase row into a Vehicle."""

    return Vehicle(
        vehicle_id=str(row["vehicle_id"]),
        state=VehicleState(str(row["state"])),
        list_price=money(row.get("list_price")),
        acquisition_cost=money(row.get("acquisition_cost")),
        acquisition_expenses=money(row.get("acquisition_expenses")),
        repair_cost=money(row.get("repair_cost")),
        discount=money(row.get("discount")),
        make=text(row, "make"),
        model=text(row, "model"),
        version=text(row, "version"),
        plate=text(row, "plate"),
        vin=text(row, "vin"),
        first_registration=parse_optional_date(row.get("first_registration")),
        mileage_km=optional_int(row.get("mileage_km")),
    )


def get_vehicle_by_id(vehicle_id: str) -> Optional[Vehicle]:
    """
    Retrieve a single vehicle by its ID.

    Returns:
        Vehicle or None if not found
    """

    response = execute(
        supabase.table(_VEHICLES_TABLE).select("*").eq("vehicle_id", vehicle_id).limit(1),
        action="get vehicle",
    )
    rows = rows_of(response)
    if not rows:
        return None
    return _row_to_vehicle(rows[0])


def update_vehicle_state(vehicle_id: str, state: VehicleState) -> None:
    execute(
        supabase.table(_VEHICLES_TABLE).update({"state": state.value}).eq("vehicle_id", vehicle_id),
        action="update vehicle state",
    )


__all__ = ["get_vehicle_by_id", "update_vehicle_state"]
