"""
Invoice layout.

Fixed section order; the discount line appears only when there is a
discount, and bank details only for bank-transfer invoices.
"""

from __future__ import annotations

from typing import Callable, Dict, List, Tuple

from domain.financials import ZERO
from domain.invoice import Invoice
from domain.payment import PaymentMethod

from .formatting import format_date, format_money, format_tax_rate, or_placeholder
from .sections import AmountRow, Heading, KeyValue, Paragraph, Rule, Section, Spacer, TextLine, section

INVOICE_SECTION_ORDER: Tuple[str, ...] = (
    "issuer",
    "title",
    "bill_to",
    "vehicle",
    "concepts",
    "tax_summary",
    "payment",
    "notes",
    "footer",
)


def _issuer(invoice: Invoice) -> Section:
    company = invoice.company
    return section(
        "issuer",
        TextLine(or_placeholder(company.display_name), bold=True),
        TextLine(f"Tax ID: {or_placeholder(company.tax_id)}"),
        TextLine(or_placeholder(company.full_address())),
        TextLine(f"Phone: {or_placeholder(company.phone)}  Email: {or_placeholder(company.email)}"),
        Rule(),
    )


def _title(invoice: Invoice) -> Section:
    return section(
        "title",
        Heading("INVOICE", level=1),
        KeyValue("Invoice number", or_placeholder(invoice.number)),
        KeyValue("Issue date", format_date(invoice.issue_date)),
        KeyValue("Due date", format_date(invoice.due_date)),
    )


def _bill_to(invoice: Invoice) -> Section:
    buyer = invoice.buyer
    return section(
        "bill_to",
        Spacer(),
        Heading("BILL TO", level=2),
        KeyValue("Name", or_placeholder(buyer.full_name)),
        KeyValue(buyer.document_type.value, or_placeholder(buyer.document_number)),
        KeyValue("Address", or_placeholder(buyer.full_address())),
        KeyValue("Phone", or_placeholder(buyer.phone)),
        KeyValue("Email", or_placeholder(buyer.email)),
    )


def _vehicle(invoice: Invoice) -> Section:
    return section(
        "vehicle",
        Spacer(),
        Heading("VEHICLE", level=2),
        Paragraph(or_placeholder(invoice.vehicle_description)),
    )


def _concepts(invoice: Invoice) -> Section:
    rows = [AmountRow(or_placeholder(invoice.concept), format_money(invoice.base_amount))]
    if invoice.discount > ZERO:
        rows.append(AmountRow("Discount", format_money(-invoice.discount)))
    return section(
        "concepts",
        Spacer(),
        Heading("CONCEPT", level=2),
        AmountRow("Description", "Amount", emphasis=True),
        Rule(),
        *rows,
    )


def _tax_summary(invoice: Invoice) -> Section:
    return section(
        "tax_summary",
        Spacer(),
        Rule(),
        AmountRow("Taxable base", format_money(invoice.base_amount)),
        AmountRow("VAT rate", format_tax_rate(invoice.tax_rate)),
        AmountRow("VAT amount", format_money(invoice.tax_amount)),
        AmountRow("TOTAL", format_money(invoice.total), emphasis=True),
    )


def _payment(invoice: Invoice) -> Section:
    blocks = [Spacer(), Heading("PAYMENT", level=2), KeyValue("Payment method", invoice.payment_method.label)]
    if invoice.payment_method == PaymentMethod.BANK_TRANSFER:
        blocks.append(KeyValue("IBAN", or_placeholder(invoice.bank_account)))
    return section("payment", *blocks)


def _notes(invoice: Invoice) -> Section:
    return section("notes", Spacer(), Heading("NOTES", level=2), Paragraph(or_placeholder(invoice.notes)))


def _footer(invoice: Invoice) -> Section:
    company = invoice.company
    identity = " | ".join(
        part
        for part in (company.legal_name, f"Tax ID {company.tax_id}" if company.tax_id else "", company.full_address())
        if part
    )
    return section("footer", Spacer(12), Rule(), TextLine(or_placeholder(identity), align="center"))


_BUILDERS: Dict[str, Callable[[Invoice], Section]] = {
    "issuer": _issuer,
    "title": _title,
    "bill_to": _bill_to,
    "vehicle": _vehicle,
    "concepts": _concepts,
    "tax_summary": _tax_summary,
    "payment": _payment,
    "notes": _notes,
    "footer": _footer,
}


def invoice_sections(invoice: Invoice) -> List[Section]:
    return [_BUILDERS[key](invoice) for key in INVOICE_SECTION_ORDER]


__all__ = ["INVOICE_SECTION_ORDER", "invoice_sections"]
