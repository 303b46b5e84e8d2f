"""
Supabase-backed implementation of the Store protocol.

A thin object facade over the per-table repository modules, so services can
take a `store` argument and tests can hand them an in-memory one instead.
Importing this module creates the Supabase client (see repositories.client).
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

import config
from domain.contract import Contract, ContractStatus
from domain.deposit import Deposit, DepositStatus
from domain.invoice import Invoice, InvoiceStatus
from domain.numbering import DocumentScope, format_document_number
from domain.opportunity import Opportunity
from domain.proforma import Proforma, ProformaStatus
from domain.sale import SaleRecord
from domain.vehicle import Vehicle, VehicleState
from repositories import (
    contract_repository,
    deposit_repository,
    invoice_repository,
    numbering_repository,
    opportunity_repository,
    proforma_repository,
    sale_repository,
    vehicle_repository,
)


class SupabaseStore:
    def __init__(
        self,
        *,
        contract_prefix: str = config.CONTRACT_NUMBER_PREFIX,
        invoice_prefix: str = config.INVOICE_NUMBER_PREFIX,
        deposit_prefix: str = config.DEPOSIT_NUMBER_PREFIX,
        proforma_prefix: str = config.PROFORMA_NUMBER_PREFIX,
    ) -> None:
        self.contract_prefix = contract_prefix
        self.invoice_prefix = invoice_prefix
        self.deposit_prefix = deposit_prefix
        self.proforma_prefix = proforma_prefix

    # Vehicles
    def get_vehicle(self, vehicle_id: str) -> Optional[Vehicle]:
        return vehicle_repository.get_vehicle_by_id(vehicle_id)

    def set_vehicle_state(self, vehicle_id: str, state: VehicleState) -> None:
        vehicle_repository.update_vehicle_state(vehicle_id, state)

    # Opportunities
    def get_opportunity(self, opportunity_id: str) -> Optional[Opportunity]:
        return opportunity_repository.get_opportunity_by_id(opportunity_id)

    def save_opportunity(self, opportunity: Opportunity) -> Opportunity:
        return opportunity_repository.upsert_opportunity(opportunity)

    # Sale records
    def create_sale_record(self, record: SaleRecord) -> SaleRecord:
        return sale_repository.record_sale(record)

    def get_sale_record(self, sale_id: str) -> Optional[SaleRecord]:
        return sale_repository.get_sale_by_id(sale_id)

    def get_sale_record_for_opportunity(self, opportunity_id: str) -> Optional[SaleRecord]:
        return sale_repository.get_sale_by_opportunity(opportunity_id)

    def delete_sale_record(self, sale_id: str) -> None:
        sale_repository.delete_sale(sale_id)

    # Contracts
    def create_contract(self, contract: Contract) -> Contract:
        return contract_repository.insert_contract(contract)

    def get_contract(self, contract_id: str) -> Optional[Contract]:
        return contract_repository.get_contract_by_id(contract_id)

    def update_contract_status(self, contract_id: str, status: ContractStatus) -> None:
        contract_repository.update_contract_status(contract_id, status)

    def get_contracts_for_vehicle(self, vehicle_id: str) -> List[Contract]:
        return contract_repository.list_contracts_by_vehicle(vehicle_id)

    # Invoices
    def create_invoice(self, invoice: Invoice) -> Invoice:
        return invoice_repository.insert_invoice(invoice)

    def get_invoice(self, invoice_id: str) -> Optional[Invoice]:
        return invoice_repository.get_invoice_by_id(invoice_id)

    def update_invoice_status(
        self, invoice_id: str, status: InvoiceStatus, paid_at: Optional[datetime] = None
    ) -> None:
        invoice_repository.update_invoice_status(invoice_id, status, paid_at)

    # Deposit agreements
    def create_deposit(self, deposit: Deposit) -> Deposit:
        return deposit_repository.insert_deposit(deposit)

    def get_deposit(self, deposit_id: str) -> Optional[Deposit]:
        return deposit_repository.get_deposit_by_id(deposit_id)

    def update_deposit_status(
        self, deposit_id: str, status: DepositStatus, contract_id: Optional[str] = None
    ) -> None:
        deposit_repository.update_deposit_status(deposit_id, status, contract_id)

    # Proformas
    def create_proforma(self, proforma: Proforma) -> Proforma:
        return proforma_repository.insert_proforma(proforma)

    def get_proforma(self, proforma_id: str) -> Optional[Proforma]:
        return proforma_repository.get_proforma_by_id(proforma_id)

    def update_proforma_status(
        self, proforma_id: str, status: ProformaStatus, invoice_id: Optional[str] = None
    ) -> None:
        proforma_repository.update_proforma_status(proforma_id, status, invoice_id)

    # Numbering
    def allocate_contract_number(self, year: int) -> str:
        ordinal = numbering_repository.next_sequence(DocumentScope.CONTRACT, year)
        return format_document_number(self.contract_prefix, year, ordinal)

    def allocate_invoice_number(self, year: int) -> str:
        ordinal = numbering_repository.next_sequence(DocumentScope.INVOICE, year)
        return format_document_number(self.invoice_prefix, year, ordinal)

    def allocate_deposit_number(self, year: int) -> str:
        ordinal = numbering_repository.next_sequence(DocumentScope.DEPOSIT, year)
        return format_document_number(self.deposit_prefix, year, ordinal)

    def allocate_proforma_number(self, year: int) -> str:
        ordinal = numbering_repository.next_sequence(DocumentScope.PROFORMA, year)
        return format_document_number(self.proforma_prefix, year, ordinal)


__all__ = ["SupabaseStore"]
