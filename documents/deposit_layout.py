"""
Deposit agreement layout.

Same conventions as the contract: every section is emitted in
DEPOSIT_SECTION_ORDER, empty fields print the placeholder, and the data
protection clause sits directly before the signatures.
"""

from __future__ import annotations

from typing import Callable, Dict, List, Tuple

from domain.deposit import Deposit

from .clauses import DATA_PROTECTION_CLAUSE, deposit_clauses
from .contract_layout import buyer_rows, company_rows
from .formatting import format_date, format_mileage, format_money, or_placeholder
from .sections import AmountRow, Heading, KeyValue, Paragraph, Rule, Section, SignaturePair, Spacer, TextLine, section

DEPOSIT_SECTION_ORDER: Tuple[str, ...] = (
    "header",
    "parties",
    "vehicle",
    "reservation_conditions",
    "stipulations",
    "additional_clauses",
    "notes",
    "data_protection",
    "signatures",
)


def _header(deposit: Deposit) -> Section:
    return section(
        "header",
        Heading("DEPOSIT / VEHICLE RESERVATION CONTRACT", level=1),
        KeyValue("Deposit number", or_placeholder(deposit.number)),
        KeyValue("Place", or_placeholder(deposit.signing_place)),
        KeyValue("Date", format_date(deposit.deposit_date)),
        Rule(),
    )


def _parties(deposit: Deposit) -> Section:
    return section(
        "parties",
        Spacer(),
        Heading("PARTIES", level=2),
        TextLine("SELLER", bold=True),
        *company_rows(deposit.company),
        Spacer(4),
        TextLine("BUYER", bold=True),
        *buyer_rows(deposit.buyer),
    )


def _vehicle(deposit: Deposit) -> Section:
    vehicle = deposit.vehicle
    return section(
        "vehicle",
        Spacer(),
        Heading("RESERVED VEHICLE", level=2),
        KeyValue("Make", or_placeholder(vehicle.make)),
        KeyValue("Model", or_placeholder(vehicle.model)),
        KeyValue("Version", or_placeholder(vehicle.version)),
        KeyValue("Plate", or_placeholder(vehicle.plate)),
        KeyValue("VIN", or_placeholder(vehicle.vin)),
        KeyValue("Mileage", format_mileage(vehicle.mileage_km)),
    )


def _reservation_conditions(deposit: Deposit) -> Section:
    return section(
        "reservation_conditions",
        Spacer(),
        Heading("RESERVATION CONDITIONS", level=2),
        AmountRow("Total sale price", format_money(deposit.total_price)),
        AmountRow("Deposit paid", format_money(deposit.deposit_amount), emphasis=True),
        AmountRow("Remaining at sale", format_money(deposit.remaining)),
        KeyValue("Bank account", or_placeholder(deposit.bank_account)),
        KeyValue("Sale deadline", format_date(deposit.sale_deadline)),
    )


def _stipulations(deposit: Deposit) -> Section:
    clauses = deposit_clauses(
        deposit=format_money(deposit.deposit_amount),
        total=format_money(deposit.total_price),
        remaining=format_money(deposit.remaining),
        deadline=format_date(deposit.sale_deadline),
    )
    return section("stipulations", Spacer(), Heading("STIPULATIONS", level=2), *[Paragraph(c) for c in clauses])


def _additional_clauses(deposit: Deposit) -> Section:
    return section(
        "additional_clauses",
        Spacer(),
        Heading("ADDITIONAL CLAUSES", level=2),
        Paragraph(or_placeholder(deposit.additional_clauses)),
    )


def _notes(deposit: Deposit) -> Section:
    return section("notes", Spacer(), Heading("NOTES", level=2), Paragraph(or_placeholder(deposit.notes)))


def _data_protection(deposit: Deposit) -> Section:
    return section(
        "data_protection",
        Spacer(),
        Heading("DATA PROTECTION", level=2),
        *[Paragraph(text) for text in DATA_PROTECTION_CLAUSE],
    )


def _signatures(deposit: Deposit) -> Section:
    return section(
        "signatures",
        Spacer(12),
        SignaturePair(
            left_label="THE SELLER",
            right_label="THE BUYER",
            left_name=or_placeholder(deposit.company.display_name),
            right_name=or_placeholder(deposit.buyer.full_name),
        ),
    )


_BUILDERS: Dict[str, Callable[[Deposit], Section]] = {
    "header": _header,
    "parties": _parties,
    "vehicle": _vehicle,
    "reservation_conditions": _reservation_conditions,
    "stipulations": _stipulations,
    "additional_clauses": _additional_clauses,
    "notes": _notes,
    "data_protection": _data_protection,
    "signatures": _signatures,
}


def deposit_sections(deposit: Deposit) -> List[Section]:
    return [_BUILDERS[key](deposit) for key in DEPOSIT_SECTION_ORDER]


__all__ = ["DEPOSIT_SECTION_ORDER", "deposit_sections"]
