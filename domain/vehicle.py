"""
Domain: Vehicle as read by the sales core.

The vehicle record belongs to the inventory screens. This core reads its costs
and prices and writes exactly one thing back: state = sold when a sale closes.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional

from .financials import cost_total


class VehicleState(str, Enum):
    AVAILABLE = "available"
    RESERVED = "reserved"
    SOLD = "sold"


@dataclass(frozen=True, slots=True)
class VehicleSnapshot:
    """Identification data frozen onto a contract, invoice or sale summary."""

    make: str = ""
    model: str = ""
    version: str = ""
    plate: str = ""
    vin: str = ""
    first_registration: Optional[date] = None
    mileage_km: Optional[int] = None

    @property
    def description(self) -> str:
        return " ".join(part for part in (self.make, self.model, self.version) if part)


@dataclass(frozen=True, slots=True)
class Vehicle:
    vehicle_id: str
    state: VehicleState
    list_price: Decimal
    acquisition_cost: Decimal = Decimal("0")
    acquisition_expenses: Decimal = Decimal("0")
    repair_cost: Decimal = Decimal("0")
    discount: Decimal = Decimal("0")
    make: str = ""
    model: str = ""
    version: str = ""
    plate: str = ""
    vin: str = ""
    first_registration: Optional[date] = None
    mileage_km: Optional[int] = None

    @property
    def is_sold(self) -> bool:
        return self.state == VehicleState.SOLD

    def cost_total(self) -> Decimal:
        return cost_total(self.acquisition_cost, self.acquisition_expenses, self.repair_cost)

    def snapshot(self) -> VehicleSnapshot:
        return VehicleSnapshot(
            make=self.make,
            model=self.model,
            version=self.version,
            plate=self.plate,
            vin=self.vin,
            first_registration=self.first_registration,
            mileage_km=self.mileage_km,
        )


__all__ = ["VehicleState", "VehicleSnapshot", "Vehicle"]
