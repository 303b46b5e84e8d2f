"""
Document projector.

Turns a finalized record (contract, invoice, deposit, proforma or sale) into
a paginated A4 PDF. No business validation happens here: missing snapshot
fields print as placeholders, and the same record always renders to the same
bytes.

Filenames follow <DocType>_<plate-or-number>_<date>.pdf, with the date in
ISO form so the name sorts and contains no path separators.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date
from typing import List, Optional

from domain.contract import Contract
from domain.deposit import Deposit
from domain.invoice import Invoice
from domain.proforma import Proforma
from domain.sale import SaleRecord

from .contract_layout import contract_sections
from .deposit_layout import deposit_sections
from .invoice_layout import invoice_sections
from .paginator import paginate
from .pdf_renderer import render_pdf
from .proforma_layout import proforma_sections
from .sale_layout import sale_sections
from .sections import Section

_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9-]+")


@dataclass(frozen=True, slots=True)
class RenderedDocument:
    filename: str
    content: bytes
    page_count: int


def document_filename(doc_type: str, key: Optional[str], on: Optional[date]) -> str:
    """`Contract_1234ABC_2026-03-15.pdf`. Unsafe characters are dropped from the key."""

    safe_key = _UNSAFE_FILENAME_CHARS.sub("", key or "") or "unnumbered"
    stamp = on.isoformat() if on is not None else "undated"
    return f"{doc_type}_{safe_key}_{stamp}.pdf"


def _render(sections: List[Section], *, filename: str, title: str, footer_text: str = "") -> RenderedDocument:
    pages = paginate(sections)
    content = render_pdf(pages, title=title, footer_text=footer_text)
    return RenderedDocument(filename=filename, content=content, page_count=len(pages))


def project_contract(contract: Contract) -> RenderedDocument:
    return _render(
        contract_sections(contract),
        filename=document_filename("Contract", contract.vehicle.plate or contract.number, contract.signing_date),
        title=f"Contract {contract.number}",
        footer_text=f"Contract {contract.number}",
    )


def project_invoice(invoice: Invoice) -> RenderedDocument:
    return _render(
        invoice_sections(invoice),
        filename=document_filename("Invoice", invoice.number, invoice.issue_date),
        title=f"Invoice {invoice.number}",
        footer_text=f"Invoice {invoice.number}",
    )


def project_deposit(deposit: Deposit) -> RenderedDocument:
    return _render(
        deposit_sections(deposit),
        filename=document_filename("Deposit", deposit.vehicle.plate or deposit.number, deposit.deposit_date),
        title=f"Deposit {deposit.number}",
        footer_text=f"Deposit {deposit.number}",
    )


def project_proforma(proforma: Proforma) -> RenderedDocument:
    return _render(
        proforma_sections(proforma),
        filename=document_filename("Proforma", proforma.number, proforma.issue_date),
        title=f"Proforma {proforma.number}",
        footer_text=f"Proforma {proforma.number}",
    )


def project_sale(record: SaleRecord) -> RenderedDocument:
    return _render(
        sale_sections(record),
        filename=document_filename("Sale", record.vehicle.plate or record.sale_id, record.sold_at.date()),
        title=f"Sale {record.sale_id}",
    )


__all__ = [
    "RenderedDocument",
    "document_filename",
    "project_contract",
    "project_invoice",
    "project_deposit",
    "project_proforma",
    "project_sale",
]
