"""
Contract layout: the fixed section list of a vehicle sale contract.

Every section in CONTRACT_SECTION_ORDER is always emitted, in that order.
Empty fields print the placeholder instead of being skipped. The data
protection clause always sits directly before the signatures.
"""

from __future__ import annotations

from typing import Callable, Dict, List, Tuple

from domain.contract import Contract, WarrantyTerms
from domain.parties import Company, Person

from .clauses import DATA_PROTECTION_CLAUSE
from .formatting import (
    format_date,
    format_mileage,
    format_money,
    format_tax_rate,
    or_placeholder,
    yes_no,
)
from .sections import AmountRow, Heading, KeyValue, Paragraph, Rule, Section, SignaturePair, Spacer, TextLine, section

CONTRACT_SECTION_ORDER: Tuple[str, ...] = (
    "header",
    "parties",
    "vehicle",
    "economic_terms",
    "warranty",
    "documentation",
    "accessories",
    "clauses",
    "additional_clauses",
    "notes",
    "data_protection",
    "signatures",
)

STANDARD_CLAUSES: Tuple[str, ...] = (
    "FIRST. The seller transfers to the buyer full ownership of the vehicle described above.",
    "SECOND. The buyer declares to know the current condition of the vehicle.",
    "THIRD. The seller warrants being the lawful owner of the vehicle and that it is free of liens and encumbrances.",
    "FOURTH. Ownership transfer costs are borne by the buyer.",
    "FIFTH. The buyer assumes responsibility for the vehicle from the signing of this contract.",
)


def company_rows(company: Company) -> list:
    return [
        KeyValue("Company", or_placeholder(company.display_name)),
        KeyValue("Trade name", or_placeholder(company.trade_name)),
        KeyValue("Tax ID", or_placeholder(company.tax_id)),
        KeyValue("Address", or_placeholder(company.full_address())),
        KeyValue("Phone", or_placeholder(company.phone)),
        KeyValue("Email", or_placeholder(company.email)),
    ]


def buyer_rows(buyer: Person) -> list:
    return [
        KeyValue("Name", or_placeholder(buyer.full_name)),
        KeyValue("Buyer type", buyer.kind.value.capitalize()),
        KeyValue(buyer.document_type.value, or_placeholder(buyer.document_number)),
        KeyValue("Address", or_placeholder(buyer.full_address())),
        KeyValue("Phone", or_placeholder(buyer.phone)),
        KeyValue("Email", or_placeholder(buyer.email)),
    ]


def _header(contract: Contract) -> Section:
    return section(
        "header",
        Heading("VEHICLE SALE CONTRACT", level=1),
        KeyValue("Contract number", or_placeholder(contract.number)),
        KeyValue("Place", or_placeholder(contract.signing_place)),
        KeyValue("Date", format_date(contract.signing_date)),
        Rule(),
    )


def _parties(contract: Contract) -> Section:
    return section(
        "parties",
        Spacer(),
        Heading("PARTIES", level=2),
        TextLine("SELLER", bold=True),
        *company_rows(contract.company),
        Spacer(4),
        TextLine("BUYER", bold=True),
        *buyer_rows(contract.buyer),
    )


def _vehicle(contract: Contract) -> Section:
    vehicle = contract.vehicle
    return section(
        "vehicle",
        Spacer(),
        Heading("VEHICLE", level=2),
        KeyValue("Make", or_placeholder(vehicle.make)),
        KeyValue("Model", or_placeholder(vehicle.model)),
        KeyValue("Version", or_placeholder(vehicle.version)),
        KeyValue("Plate", or_placeholder(vehicle.plate)),
        KeyValue("VIN", or_placeholder(vehicle.vin)),
        KeyValue("First registration", format_date(vehicle.first_registration)),
        KeyValue("Mileage", format_mileage(vehicle.mileage_km)),
    )


def _economic_terms(contract: Contract) -> Section:
    terms = contract.terms
    return section(
        "economic_terms",
        Spacer(),
        Heading("ECONOMIC TERMS", level=2),
        AmountRow("Price excluding VAT", format_money(terms.price_excl_tax)),
        AmountRow(f"VAT ({format_tax_rate(terms.tax_rate)})", format_money(terms.tax_amount)),
        AmountRow("Total price", format_money(terms.total), emphasis=True),
        KeyValue("Payment method", terms.payment_method.label),
    )


def warranty_text(warranty: WarrantyTerms) -> str:
    if not warranty.has_warranty:
        return "The vehicle is sold without warranty."
    if warranty.kilometres > 0:
        limit = f"{warranty.months} months or {format_mileage(warranty.kilometres)}, whichever comes first,"
    else:
        limit = f"{warranty.months} months"
    return f"The vehicle is sold with a {warranty.kind.value} warranty of {limit} from the date of delivery."


def _warranty(contract: Contract) -> Section:
    text = warranty_text(contract.warranty)
    return section("warranty", Spacer(), Heading("WARRANTY", level=2), Paragraph(text))


def _documentation(contract: Contract) -> Section:
    rows = [KeyValue(label, yes_no(delivered)) for label, delivered in contract.documentation.items()]
    return section("documentation", Spacer(), Heading("DOCUMENTATION DELIVERED", level=2), *rows)


def _accessories(contract: Contract) -> Section:
    accessories = contract.accessories
    rows = [KeyValue(label, yes_no(delivered)) for label, delivered in accessories.items()]
    rows.append(KeyValue("Other", or_placeholder(accessories.other)))
    return section("accessories", Spacer(), Heading("ACCESSORIES DELIVERED", level=2), *rows)


def _clauses(contract: Contract) -> Section:
    return section(
        "clauses",
        Spacer(),
        Heading("CLAUSES", level=2),
        *[Paragraph(clause) for clause in STANDARD_CLAUSES],
    )


def _additional_clauses(contract: Contract) -> Section:
    return section(
        "additional_clauses",
        Spacer(),
        Heading("ADDITIONAL CLAUSES", level=2),
        Paragraph(or_placeholder(contract.additional_clauses)),
    )


def _notes(contract: Contract) -> Section:
    return section("notes", Spacer(), Heading("NOTES", level=2), Paragraph(or_placeholder(contract.notes)))


def _data_protection(contract: Contract) -> Section:
    return section(
        "data_protection",
        Spacer(),
        Heading("DATA PROTECTION", level=2),
        *[Paragraph(text) for text in DATA_PROTECTION_CLAUSE],
    )


def _signatures(contract: Contract) -> Section:
    return section(
        "signatures",
        Spacer(12),
        SignaturePair(
            left_label="THE SELLER",
            right_label="THE BUYER",
            left_name=or_placeholder(contract.company.display_name),
            right_name=or_placeholder(contract.buyer.full_name),
        ),
    )


_BUILDERS: Dict[str, Callable[[Contract], Section]] = {
    "header": _header,
    "parties": _parties,
    "vehicle": _vehicle,
    "economic_terms": _economic_terms,
    "warranty": _warranty,
    "documentation": _documentation,
    "accessories": _accessories,
    "clauses": _clauses,
    "additional_clauses": _additional_clauses,
    "notes": _notes,
    "data_protection": _data_protection,
    "signatures": _signatures,
}


def contract_sections(contract: Contract) -> List[Section]:
    return [_BUILDERS[key](contract) for key in CONTRACT_SECTION_ORDER]


__all__ = [
    "CONTRACT_SECTION_ORDER",
    "STANDARD_CLAUSES",
    "company_rows",
    "buyer_rows",
    "warranty_text",
    "contract_sections",
]
