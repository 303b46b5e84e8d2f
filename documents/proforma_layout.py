"""
Proforma layout.

Reads like an invoice, with a banner stating it is not a valid invoice.
The reservation section appears only when a reservation amount above zero
was suggested; every other section is always emitted.
"""

from __future__ import annotations

from typing import Callable, Dict, List, Optional, Tuple

from domain.financials import ZERO
from domain.payment import PaymentMethod
from domain.proforma import Proforma

from .clauses import DATA_PROTECTION_NOTICE
from .formatting import format_date, format_money, format_tax_rate, or_placeholder
from .sections import AmountRow, Heading, KeyValue, Paragraph, Rule, Section, Spacer, TextLine, section

PROFORMA_SECTION_ORDER: Tuple[str, ...] = (
    "header",
    "parties",
    "concepts",
    "tax_summary",
    "reservation",
    "validity",
    "important_notes",
    "notes",
    "data_protection",
)

NOT_AN_INVOICE_BANNER = "NOT VALID AS AN INVOICE - PRIOR QUOTE"

IMPORTANT_NOTES: Tuple[str, ...] = (
    "This document is a prior quote and has no fiscal validity.",
    "It does not evidence the sale of the vehicle until payment is made.",
    "Prices are subject to the availability of the vehicle.",
)


def _header(proforma: Proforma) -> Section:
    return section(
        "header",
        Heading("PROFORMA INVOICE", level=1),
        KeyValue("Proforma number", or_placeholder(proforma.number)),
        KeyValue("Date", format_date(proforma.issue_date)),
        TextLine(NOT_AN_INVOICE_BANNER, bold=True, align="center"),
        Rule(),
    )


def _parties(proforma: Proforma) -> Section:
    company = proforma.company
    buyer = proforma.buyer
    return section(
        "parties",
        TextLine(or_placeholder(company.display_name), bold=True),
        TextLine(f"Tax ID: {or_placeholder(company.tax_id)}"),
        TextLine(or_placeholder(company.full_address())),
        Spacer(),
        Heading("CUSTOMER", level=2),
        KeyValue("Name", or_placeholder(buyer.full_name)),
        KeyValue(buyer.document_type.value, or_placeholder(buyer.document_number)),
        KeyValue("Address", or_placeholder(buyer.full_address())),
        KeyValue("Phone", or_placeholder(buyer.phone)),
        KeyValue("Email", or_placeholder(buyer.email)),
    )


def _concepts(proforma: Proforma) -> Section:
    rows = [AmountRow(or_placeholder(proforma.concept), format_money(proforma.base_amount))]
    if proforma.discount > ZERO:
        rows.append(AmountRow("Discount", format_money(-proforma.discount)))
    return section(
        "concepts",
        Spacer(),
        Heading("CONCEPT", level=2),
        Paragraph(or_placeholder(proforma.vehicle_description)),
        AmountRow("Description", "Amount", emphasis=True),
        Rule(),
        *rows,
    )


def _tax_summary(proforma: Proforma) -> Section:
    return section(
        "tax_summary",
        Spacer(),
        Rule(),
        AmountRow("Taxable base", format_money(proforma.base_amount)),
        AmountRow("VAT rate", format_tax_rate(proforma.tax_rate)),
        AmountRow("VAT amount", format_money(proforma.tax_amount)),
        AmountRow("TOTAL", format_money(proforma.total), emphasis=True),
    )


def _reservation(proforma: Proforma) -> Optional[Section]:
    amount = proforma.reservation_amount
    if amount is None or amount <= ZERO:
        return None
    blocks = [
        Spacer(),
        Heading("RESERVATION", level=2),
        AmountRow("Amount to reserve the vehicle", format_money(amount), emphasis=True),
        KeyValue("Payment method", proforma.payment_method.label),
    ]
    if proforma.payment_method == PaymentMethod.BANK_TRANSFER:
        blocks.append(KeyValue("IBAN", or_placeholder(proforma.bank_account)))
    return section("reservation", *blocks)


def _validity(proforma: Proforma) -> Section:
    return section(
        "validity",
        Spacer(),
        TextLine(f"This proforma is valid for {proforma.validity_days} days from its date of issue.", bold=True),
        KeyValue("Expiry date", format_date(proforma.expires_on)),
    )


def _important_notes(proforma: Proforma) -> Section:
    return section(
        "important_notes",
        Spacer(),
        Heading("IMPORTANT", level=2),
        *[Paragraph(f"- {note}") for note in IMPORTANT_NOTES],
    )


def _notes(proforma: Proforma) -> Section:
    return section("notes", Spacer(), Heading("NOTES", level=2), Paragraph(or_placeholder(proforma.notes)))


def _data_protection(proforma: Proforma) -> Section:
    return section("data_protection", Spacer(12), Rule(), Paragraph(DATA_PROTECTION_NOTICE))


_BUILDERS: Dict[str, Callable[[Proforma], Optional[Section]]] = {
    "header": _header,
    "parties": _parties,
    "concepts": _concepts,
    "tax_summary": _tax_summary,
    "reservation": _reservation,
    "validity": _validity,
    "important_notes": _important_notes,
    "notes": _notes,
    "data_protection": _data_protection,
}


def proforma_sections(proforma: Proforma) -> List[Section]:
    built = (_BUILDERS[key](proforma) for key in PROFORMA_SECTION_ORDER)
    return [s for s in built if s is not None]


__all__ = ["PROFORMA_SECTION_ORDER", "NOT_AN_INVOICE_BANNER", "IMPORTANT_NOTES", "proforma_sections"]
