"""
Pytest configuration.

Adds the project root to the Python path so tests can import domain,
repositories, services, forms and documents, and provides shared fixtures
built on the in-memory store.
"""

import sys
from datetime import date, datetime, timezone
from decimal import Decimal
from pathlib import Path

import pytest

# Add the project root (and this directory, for in_memory_store) to the path.
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))
sys.path.insert(0, str(Path(__file__).parent))

from domain.opportunity import Opportunity, OpportunityState  # noqa: E402
from domain.parties import Company, Person  # noqa: E402
from domain.vehicle import Vehicle, VehicleState  # noqa: E402
from in_memory_store import InMemoryStore  # noqa: E402

T0 = datetime(2026, 3, 1, 9, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def company() -> Company:
    return Company(
        legal_name="Autos Ejemplo S.L.",
        tax_id="B12345674",
        trade_name="Autos Ejemplo",
        address="Calle Mayor 1",
        postcode="28001",
        town="Madrid",
        province="Madrid",
        phone="910000000",
        email="ventas@autosejemplo.es",
        bank_account="ES91 2100 0418 4502 0005 1332",
        company_id="company-1",
    )


@pytest.fixture
def buyer() -> Person:
    return Person(
        first_name="Lucia",
        last_name="Garcia Lopez",
        document_number="12345678Z",
        address="Avenida de la Paz 14",
        postcode="28020",
        town="Madrid",
        province="Madrid",
        phone="600000000",
        email="lucia@example.com",
        person_id="buyer-1",
    )


@pytest.fixture
def vehicle() -> Vehicle:
    return Vehicle(
        vehicle_id="vehicle-1",
        state=VehicleState.AVAILABLE,
        list_price=Decimal("24900"),
        acquisition_cost=Decimal("18000"),
        acquisition_expenses=Decimal("500"),
        repair_cost=Decimal("700"),
        discount=Decimal("400"),
        make="SEAT",
        model="Leon",
        version="1.5 TSI FR",
        plate="1234ABC",
        vin="VSSZZZ5FZLR000001",
        first_registration=date(2020, 5, 4),
        mileage_km=45210,
    )


@pytest.fixture
def opportunity() -> Opportunity:
    return Opportunity(
        opportunity_id="opp-1",
        buyer_id="buyer-1",
        state=OpportunityState.NEGOTIATION,
        created_at=T0,
        last_interaction_at=T0,
        vehicle_id="vehicle-1",
    )


@pytest.fixture
def seeded_store(store: InMemoryStore, vehicle: Vehicle, opportunity: Opportunity) -> InMemoryStore:
    store.add_vehicle(vehicle)
    store.add_opportunity(opportunity)
    return store
