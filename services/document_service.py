"""
Document service: regenerate-on-demand and saving.

The persisted row is the source of truth. Documents are never stored as the
record itself; they are re-rendered from the row whenever someone asks, and
rendering is deterministic, so a regenerated document is identical to the
first one.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Union

from documents.projector import (
    RenderedDocument,
    project_contract,
    project_deposit,
    project_invoice,
    project_proforma,
    project_sale,
)
from domain.errors import InvariantViolation
from domain.vehicle import VehicleSnapshot
from repositories.store import Store

logger = logging.getLogger(__name__)


def regenerate_contract_document(store: Store, contract_id: str) -> RenderedDocument:
    contract = store.get_contract(contract_id)
    if contract is None:
        raise InvariantViolation(f"contract {contract_id} does not exist")
    return project_contract(contract)


def regenerate_invoice_document(store: Store, invoice_id: str) -> RenderedDocument:
    invoice = store.get_invoice(invoice_id)
    if invoice is None:
        raise InvariantViolation(f"invoice {invoice_id} does not exist")
    return project_invoice(invoice)


def regenerate_deposit_document(store: Store, deposit_id: str) -> RenderedDocument:
    deposit = store.get_deposit(deposit_id)
    if deposit is None:
        raise InvariantViolation(f"deposit {deposit_id} does not exist")
    return project_deposit(deposit)


def regenerate_proforma_document(store: Store, proforma_id: str) -> RenderedDocument:
    proforma = store.get_proforma(proforma_id)
    if proforma is None:
        raise InvariantViolation(f"proforma {proforma_id} does not exist")
    return project_proforma(proforma)


def regenerate_sale_document(store: Store, sale_id: str) -> RenderedDocument:
    """
    Re-render the sale summary from the record and the snapshots frozen onto
    it at close time. Later edits to the vehicle or buyer never show up.
    """

    record = store.get_sale_record(sale_id)
    if record is None:
        raise InvariantViolation(f"sale {sale_id} does not exist")

    if record.vehicle == VehicleSnapshot():
        logger.warning("Sale %s has no vehicle snapshot; rendering placeholders", sale_id)
    return project_sale(record)


def save_document(rendered: RenderedDocument, directory: Union[str, Path]) -> Path:
    """Write the PDF into `directory` (created if missing) and return its path."""

    target_dir = Path(directory)
    target_dir.mkdir(parents=True, exist_ok=True)
    path = target_dir / rendered.filename
    path.write_bytes(rendered.content)
    logger.info("Saved %s (%d pages)", path, rendered.page_count)
    return path


__all__ = [
    "regenerate_contract_document",
    "regenerate_invoice_document",
    "regenerate_deposit_document",
    "regenerate_proforma_document",
    "regenerate_sale_document",
    "save_document",
]
