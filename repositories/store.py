"""
Persistence collaborator interface.

Services depend on this protocol, never on a concrete backend. The Supabase
implementation lives in `repositories.supabase_store`; tests use an in-memory
implementation.

Contract every implementation must honour:
- Reads return None (or an empty list) for missing rows; failures raise
  PersistenceError.
- allocate_*_number is atomic: two concurrent callers never receive the same
  value, and values handed to one serialized caller never decrease.
- create_contract / create_invoice / create_deposit / create_proforma raise
  NumberingConflictError when the number is already taken.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional, Protocol, runtime_checkable

from domain.contract import Contract, ContractStatus
from domain.deposit import Deposit, DepositStatus
from domain.invoice import Invoice, InvoiceStatus
from domain.opportunity import Opportunity
from domain.proforma import Proforma, ProformaStatus
from domain.sale import SaleRecord
from domain.vehicle import Vehicle, VehicleState


@runtime_checkable
class Store(Protocol):
    # Vehicles (owned by inventory; only the state is written here)
    def get_vehicle(self, vehicle_id: str) -> Optional[Vehicle]:
        ...

    def set_vehicle_state(self, vehicle_id: str, state: VehicleState) -> None:
        ...

    # Opportunities
    def get_opportunity(self, opportunity_id: str) -> Optional[Opportunity]:
        ...

    def save_opportunity(self, opportunity: Opportunity) -> Opportunity:
        ...

    # Sale records
    def create_sale_record(self, record: SaleRecord) -> SaleRecord:
        ...

    def get_sale_record(self, sale_id: str) -> Optional[SaleRecord]:
        ...

    def get_sale_record_for_opportunity(self, opportunity_id: str) -> Optional[SaleRecord]:
        ...

    def delete_sale_record(self, sale_id: str) -> None:
        ...

    # Contracts
    def create_contract(self, contract: Contract) -> Contract:
        ...

    def get_contract(self, contract_id: str) -> Optional[Contract]:
        ...

    def update_contract_status(self, contract_id: str, status: ContractStatus) -> None:
        ...

    def get_contracts_for_vehicle(self, vehicle_id: str) -> List[Contract]:
        ...

    # Invoices
    def create_invoice(self, invoice: Invoice) -> Invoice:
        ...

    def get_invoice(self, invoice_id: str) -> Optional[Invoice]:
        ...

    def update_invoice_status(
        self, invoice_id: str, status: InvoiceStatus, paid_at: Optional[datetime] = None
    ) -> None:
        ...

    # Deposit agreements
    def create_deposit(self, deposit: Deposit) -> Deposit:
        ...

    def get_deposit(self, deposit_id: str) -> Optional[Deposit]:
        ...

    def update_deposit_status(
        self, deposit_id: str, status: DepositStatus, contract_id: Optional[str] = None
    ) -> None:
        ...

    # Proformas
    def create_proforma(self, proforma: Proforma) -> Proforma:
        ...

    def get_proforma(self, proforma_id: str) -> Optional[Proforma]:
        ...

    def update_proforma_status(
        self, proforma_id: str, status: ProformaStatus, invoice_id: Optional[str] = None
    ) -> None:
        ...

    # Numbering (atomic)
    def allocate_contract_number(self, year: int) -> str:
        ...

    def allocate_invoice_number(self, year: int) -> str:
        ...

    def allocate_deposit_number(self, year: int) -> str:
        ...

    def allocate_proforma_number(self, year: int) -> str:
        ...


__all__ = ["Store"]
