"""
Sale summary layout.

The one-page (usually) sheet handed over at delivery: who bought what, for
how much, how it is paid and what warranty applies. Everything printed comes
from the SaleRecord and the snapshots frozen onto it when the sale closed; a
missing snapshot prints as placeholders.
"""

from __future__ import annotations

from typing import Callable, Dict, List, Tuple

from domain.financials import INSTALLMENT_ESTIMATE_LABEL
from domain.parties import Person
from domain.sale import SaleRecord

from .formatting import format_date, format_mileage, format_money, or_placeholder, yes_no
from .sections import AmountRow, Heading, KeyValue, Paragraph, Rule, Section, SignaturePair, Spacer, section

SALE_SECTION_ORDER: Tuple[str, ...] = (
    "header",
    "buyer",
    "vehicle",
    "pricing",
    "payment",
    "delivery",
    "notes",
    "signatures",
)


_NO_BUYER = Person(first_name="")


def _seller_name(record: SaleRecord) -> str:
    return or_placeholder(record.company.display_name if record.company is not None else None)


def _header(record: SaleRecord) -> Section:
    return section(
        "header",
        Heading("SALE SUMMARY", level=1),
        KeyValue("Seller", _seller_name(record)),
        KeyValue("Sale date", format_date(record.sold_at)),
        KeyValue("Reference", or_placeholder(record.sale_id)),
        Rule(),
    )


def _buyer(record: SaleRecord) -> Section:
    buyer = record.buyer or _NO_BUYER
    return section(
        "buyer",
        Spacer(),
        Heading("BUYER", level=2),
        KeyValue("Name", or_placeholder(buyer.full_name)),
        KeyValue(buyer.document_type.value, or_placeholder(buyer.document_number)),
        KeyValue("Address", or_placeholder(buyer.full_address())),
        KeyValue("Phone", or_placeholder(buyer.phone)),
    )


def _vehicle(record: SaleRecord) -> Section:
    vehicle = record.vehicle
    return section(
        "vehicle",
        Spacer(),
        Heading("VEHICLE", level=2),
        KeyValue("Vehicle", or_placeholder(vehicle.description)),
        KeyValue("Plate", or_placeholder(vehicle.plate)),
        KeyValue("VIN", or_placeholder(vehicle.vin)),
        KeyValue("Mileage", format_mileage(vehicle.mileage_km)),
    )


def _pricing(record: SaleRecord) -> Section:
    expenses_label = "Additional expenses"
    if record.additional_expenses_description:
        expenses_label = f"Additional expenses ({record.additional_expenses_description})"
    return section(
        "pricing",
        Spacer(),
        Heading("PRICE", level=2),
        AmountRow("List price", format_money(record.list_price)),
        AmountRow("Discount", format_money(-record.discount)),
        AmountRow(expenses_label, format_money(record.additional_expenses)),
        AmountRow("Final price", format_money(record.final_price), emphasis=True),
    )


def _payment(record: SaleRecord) -> Section:
    blocks = [Spacer(), Heading("PAYMENT", level=2), KeyValue("Payment method", record.payment_method.label)]
    financing = record.financing
    if financing is not None:
        installment = (
            format_money(financing.installment_estimate)
            if financing.installment_estimate is not None
            else or_placeholder(None)
        )
        blocks.extend(
            [
                KeyValue("Lender", or_placeholder(financing.lender)),
                AmountRow("Down payment", format_money(financing.down_payment)),
                AmountRow("Amount to finance", format_money(financing.amount_to_finance)),
                KeyValue("Installments", str(financing.installment_count)),
                AmountRow(f"Monthly installment ({INSTALLMENT_ESTIMATE_LABEL})", installment),
            ]
        )
    return section("payment", *blocks)


def _delivery(record: SaleRecord) -> Section:
    warranty = f"{record.warranty.months} months" if record.warranty.has_warranty else "No warranty"
    return section(
        "delivery",
        Spacer(),
        Heading("DELIVERY AND WARRANTY", level=2),
        KeyValue("Delivery date", format_date(record.delivery_date)),
        KeyValue("Warranty", warranty),
        KeyValue("Extended warranty", yes_no(record.warranty.extended)),
    )


def _notes(record: SaleRecord) -> Section:
    return section("notes", Spacer(), Heading("NOTES", level=2), Paragraph(or_placeholder(record.notes)))


def _signatures(record: SaleRecord) -> Section:
    return section(
        "signatures",
        Spacer(12),
        SignaturePair(
            left_label="THE SELLER",
            right_label="THE BUYER",
            left_name=_seller_name(record),
            right_name=or_placeholder((record.buyer or _NO_BUYER).full_name),
        ),
    )


_BUILDERS: Dict[str, Callable[[SaleRecord], Section]] = {
    "header": _header,
    "buyer": _buyer,
    "vehicle": _vehicle,
    "pricing": _pricing,
    "payment": _payment,
    "delivery": _delivery,
    "notes": _notes,
    "signatures": _signatures,
}


def sale_sections(record: SaleRecord) -> List[Section]:
    return [_BUILDERS[key](record) for key in SALE_SECTION_ORDER]


__all__ = ["SALE_SECTION_ORDER", "sale_sections"]
