"""
Tests for the `documents` package and `services/document_service.py`.

Covers contract rules:
- Every section is emitted in its fixed order, with placeholders for empty data.
- Long text flows onto further pages without reordering.
- A heading never ends a page.
- The same record always renders to the same bytes.
"""

from __future__ import annotations

import io
from dataclasses import replace
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import List

import pdfplumber
import pytest

from documents.clauses import DATA_PROTECTION_CLAUSE
from documents.contract_layout import CONTRACT_SECTION_ORDER, STANDARD_CLAUSES, contract_sections, warranty_text
from documents.deposit_layout import DEPOSIT_SECTION_ORDER, deposit_sections
from documents.formatting import PLACEHOLDER
from documents.invoice_layout import INVOICE_SECTION_ORDER, invoice_sections
from documents.paginator import BODY_SIZE, CONTENT_HEIGHT, FONT_BOLD, HEADING_SIZES, LEADING, Page, paginate
from documents.projector import document_filename, project_contract, project_deposit, project_invoice, project_sale
from documents.proforma_layout import IMPORTANT_NOTES, NOT_AN_INVOICE_BANNER, PROFORMA_SECTION_ORDER, proforma_sections
from documents.sale_layout import SALE_SECTION_ORDER, sale_sections
from documents.sections import Heading, Paragraph, Section, Spacer, section
from domain.contract import Contract, ContractStatus, ContractTerms, WarrantyTerms
from domain.errors import InvariantViolation
from domain.financials import TaxRate
from domain.parties import Company, Person
from domain.payment import PaymentMethod
from domain.vehicle import VehicleSnapshot
from forms.models import ContractForm, DeliveryForm, DepositForm, InvoiceForm, PaymentForm, PricingForm, ProformaForm
from services.contract_service import create_contract
from services.deposit_service import create_deposit
from services.document_service import (
    regenerate_contract_document,
    regenerate_deposit_document,
    regenerate_invoice_document,
    regenerate_proforma_document,
    regenerate_sale_document,
    save_document,
)
from services.invoice_service import create_invoice
from services.proforma_service import create_proforma
from services.sale_closing_service import close_sale

SOLD_AT = datetime(2026, 3, 15, 11, 30, 0, tzinfo=timezone.utc)


def _texts(pages: List[Page]) -> List[str]:
    return [fragment.text for page in pages for row in page.rows for fragment in row.fragments if fragment.text]


def _pdf_text(content: bytes) -> str:
    with pdfplumber.open(io.BytesIO(content)) as pdf:
        return "\n".join(page.extract_text() or "" for page in pdf.pages)


def _empty_contract() -> Contract:
    return Contract(
        contract_id="contract-empty",
        number="CV-2026-000009",
        status=ContractStatus.DRAFT,
        company=Company(legal_name="", tax_id=""),
        buyer=Person(first_name=""),
        vehicle=VehicleSnapshot(),
        terms=ContractTerms(
            price_excl_tax=Decimal("0"),
            tax_rate=TaxRate.NOT_APPLICABLE,
            tax_amount=Decimal("0"),
            total=Decimal("0"),
            payment_method=PaymentMethod.CASH,
        ),
        signing_date=date(2026, 3, 15),
    )


@pytest.fixture
def contract(store, company, buyer, vehicle) -> Contract:
    form = ContractForm(price_excl_tax=Decimal("20000"), signing_date=date(2026, 3, 15), signing_place="Madrid")
    return create_contract(store, form, company, buyer, vehicle)


def test_contract_sections_follow_the_fixed_order(contract) -> None:
    assert [s.key for s in contract_sections(contract)] == list(CONTRACT_SECTION_ORDER)


def test_empty_contract_keeps_every_section_with_placeholders() -> None:
    sections = contract_sections(_empty_contract())
    texts = _texts(paginate(sections))

    assert [s.key for s in sections] == list(CONTRACT_SECTION_ORDER)
    assert texts.count(PLACEHOLDER) > 10
    assert "ADDITIONAL CLAUSES" in texts
    assert "NOTES" in texts


def test_contract_contains_standard_clauses_and_totals(contract) -> None:
    texts = " ".join(_texts(paginate(contract_sections(contract))))

    assert STANDARD_CLAUSES[0][:40] in texts
    assert "24.200,00 €" in texts
    assert "VAT (21%)" in texts
    assert "1234ABC" in texts


def test_long_clauses_flow_onto_more_pages_in_order(store, company, buyer, vehicle) -> None:
    clauses = "\n".join(f"Extra clause {n}: the buyer accepts condition number {n}." for n in range(1, 151))
    form = ContractForm(price_excl_tax=Decimal("20000"), signing_date=date(2026, 3, 15), additional_clauses=clauses)
    long_contract = create_contract(store, form, company, buyer, vehicle)

    pages = paginate(contract_sections(long_contract))
    texts = _texts(pages)

    assert len(pages) > 2
    clause_lines = [t for t in texts if t.startswith("Extra clause ")]
    assert clause_lines == [f"Extra clause {n}: the buyer accepts condition number {n}." for n in range(1, 151)]
    assert texts.index("ADDITIONAL CLAUSES") < texts.index("Extra clause 1: the buyer accepts condition number 1.")
    assert texts.index("NOTES") > texts.index("Extra clause 150: the buyer accepts condition number 150.")
    assert texts.index("THE SELLER") > texts.index("NOTES")


def test_heading_never_ends_a_page(store, company, buyer, vehicle) -> None:
    for lines in (40, 55, 70, 85):
        clauses = "\n".join(f"Clause line {n}" for n in range(lines))
        form = ContractForm(price_excl_tax=Decimal("1"), additional_clauses=clauses, notes="See annex")
        pages = paginate(contract_sections(create_contract(store, form, company, buyer, vehicle)))

        for page in pages[:-1]:
            last = [row for row in page.rows if row.fragments][-1]
            heading = all(f.font == FONT_BOLD and f.size in HEADING_SIZES.values() for f in last.fragments)
            assert not heading


def _filler(count: int) -> Section:
    return section("filler", *[Paragraph(f"line {n}") for n in range(count)])


def test_heading_moves_with_its_first_content_row() -> None:
    fits = int(CONTENT_HEIGHT // (BODY_SIZE * LEADING))
    # Room for the heading itself, not for the line that follows it.
    pages = paginate([_filler(fits - 1), section("next", Heading("NEXT", level=2), Paragraph("body"))])

    assert len(pages) == 2
    assert pages[0].rows[-1].fragments[0].text == f"line {fits - 2}"
    assert [row.fragments[0].text for row in pages[1].rows] == ["NEXT", "body"]


def test_spacer_overflowing_a_page_is_dropped() -> None:
    fits = int(CONTENT_HEIGHT // (BODY_SIZE * LEADING))

    pages = paginate([_filler(fits), section("next", Spacer(height=BODY_SIZE * LEADING), Paragraph("body"))])

    assert len(pages) == 2
    assert pages[1].rows[0].fragments[0].text == "body"


def test_leading_spacer_is_dropped() -> None:
    pages = paginate([section("only", Spacer(), Paragraph("body"))])

    assert len(pages) == 1
    assert len(pages[0].rows) == 1


def test_empty_input_still_yields_one_page() -> None:
    assert len(paginate([])) == 1


def test_rendering_is_deterministic(contract) -> None:
    first = project_contract(contract)
    second = project_contract(contract)

    assert first.content == second.content
    assert first.filename == "Contract_1234ABC_2026-03-15.pdf"
    assert first.content.startswith(b"%PDF")


def test_regenerated_contract_matches(store, contract) -> None:
    regenerated = regenerate_contract_document(store, contract.contract_id)

    assert regenerated.content == project_contract(contract).content


def test_regenerate_unknown_contract(store) -> None:
    with pytest.raises(InvariantViolation):
        regenerate_contract_document(store, "missing")


def test_pdf_text_has_footer_and_not_applicable_tax(store, company, buyer, vehicle) -> None:
    form = ContractForm(price_excl_tax=Decimal("9000"), tax_rate=None)
    rendered = project_contract(create_contract(store, form, company, buyer, vehicle))

    text = _pdf_text(rendered.content)

    assert "not applicable" in text
    assert f"Page 1 of {rendered.page_count}" in text


def test_invoice_sections_and_discount_line(store, company, buyer, vehicle) -> None:
    form = InvoiceForm(concept="Vehicle sale", base_amount=Decimal("10000"), issue_date=date(2026, 3, 15))

    plain = create_invoice(store, form, company, buyer, vehicle)
    discounted = create_invoice(store, form.model_copy(update={"discount": Decimal("500")}), company, buyer, vehicle)

    assert [s.key for s in invoice_sections(plain)] == list(INVOICE_SECTION_ORDER)
    assert "Discount" not in _texts(paginate(invoice_sections(plain)))
    discounted_texts = _texts(paginate(invoice_sections(discounted)))
    assert "Discount" in discounted_texts
    assert "-500,00 €" in discounted_texts


def test_invoice_shows_iban_only_for_bank_transfer(store, company, buyer) -> None:
    form = InvoiceForm(concept="Vehicle sale", base_amount=Decimal("10000"), issue_date=date(2026, 3, 15))

    transfer = _texts(paginate(invoice_sections(create_invoice(store, form, company, buyer))))
    cash_form = form.model_copy(update={"payment_method": PaymentMethod.CASH})
    cash = _texts(paginate(invoice_sections(create_invoice(store, cash_form, company, buyer))))

    assert "IBAN" in transfer
    assert company.bank_account in transfer
    assert "IBAN" not in cash


def test_invoice_document(store, company, buyer) -> None:
    form = InvoiceForm(concept="Vehicle sale", base_amount=Decimal("10000"), issue_date=date(2026, 3, 15))
    invoice = create_invoice(store, form, company, buyer)

    rendered = regenerate_invoice_document(store, invoice.invoice_id)

    assert rendered.filename == "Invoice_FAC-2026-000001_2026-03-15.pdf"
    assert rendered.content == project_invoice(invoice).content
    assert "Page 1 of 1" in _pdf_text(rendered.content)


def _close(store, company, buyer, payment: PaymentForm):
    return close_sale(
        store,
        "opp-1",
        PricingForm(list_price=Decimal("24900")),
        payment,
        DeliveryForm(delivery_date=date(2026, 3, 20)),
        buyer=buyer,
        company=company,
        at=SOLD_AT,
    )


def test_sale_document(seeded_store, company, buyer) -> None:
    record = _close(
        seeded_store,
        company,
        buyer,
        PaymentForm(payment_method=PaymentMethod.FINANCING, down_payment=Decimal("4900"), installment_count=40),
    )

    rendered = regenerate_sale_document(seeded_store, record.sale_id)
    texts = _texts(paginate(sale_sections(record)))

    assert rendered.filename == "Sale_1234ABC_2026-03-15.pdf"
    assert [s.key for s in sale_sections(record)] == list(SALE_SECTION_ORDER)
    assert "Monthly installment (estimate, no interest)" in texts
    assert "500,00 €" in texts
    assert "Lucia Garcia Lopez" in texts
    assert company.legal_name in texts


def test_sale_document_ignores_later_vehicle_and_buyer_edits(seeded_store, company, buyer) -> None:
    record = _close(seeded_store, company, buyer, PaymentForm(payment_method=PaymentMethod.CASH))
    first = regenerate_sale_document(seeded_store, record.sale_id)

    seeded_store.add_vehicle(replace(seeded_store.vehicles["vehicle-1"], plate="9999ZZZ", mileage_km=99000))
    again = regenerate_sale_document(seeded_store, record.sale_id)

    assert again.filename == first.filename == "Sale_1234ABC_2026-03-15.pdf"
    assert again.content == first.content


def test_sale_document_without_snapshots_prints_placeholders(seeded_store, caplog) -> None:
    record = _close(seeded_store, None, None, PaymentForm(payment_method=PaymentMethod.CASH))
    bare = replace(record, vehicle=VehicleSnapshot())
    seeded_store.sales[record.sale_id] = bare

    with caplog.at_level("WARNING"):
        rendered = regenerate_sale_document(seeded_store, record.sale_id)

    texts = _texts(paginate(sale_sections(bare)))
    assert rendered.filename == f"Sale_{record.sale_id}_2026-03-15.pdf"
    assert any("rendering placeholders" in message for message in caplog.messages)
    assert rendered.content == project_sale(bare).content
    assert [s.key for s in sale_sections(bare)] == list(SALE_SECTION_ORDER)
    assert PLACEHOLDER in texts


def test_save_document(tmp_path, contract) -> None:
    rendered = project_contract(contract)

    path = save_document(rendered, tmp_path / "out")

    assert path.name == rendered.filename
    assert path.read_bytes() == rendered.content


def test_document_filename_strips_unsafe_characters() -> None:
    assert document_filename("Contract", "12 34/ABC", date(2026, 3, 15)) == "Contract_1234ABC_2026-03-15.pdf"
    assert document_filename("Invoice", None, None) == "Invoice_unnumbered_undated.pdf"


def test_data_protection_sits_right_before_the_signatures(contract) -> None:
    keys = [s.key for s in contract_sections(contract)]

    assert keys[-2:] == ["data_protection", "signatures"]
    assert DATA_PROTECTION_CLAUSE[0][:40] in " ".join(_texts(paginate(contract_sections(contract))))


def test_contract_lists_accessories_and_warranty_mileage(store, company, buyer, vehicle) -> None:
    form = ContractForm(
        price_excl_tax=Decimal("20000"),
        signing_date=date(2026, 3, 15),
        spare_keys=True,
        jack=False,
        other_accessories="Roof bars",
    )
    accessorised = create_contract(store, form, company, buyer, vehicle)

    texts = _texts(paginate(contract_sections(accessorised)))
    joined = " ".join(texts)

    assert texts[texts.index("Spare keys") + 1] == "Yes"
    assert texts[texts.index("Jack and tools") + 1] == "No"
    assert "Roof bars" in texts
    assert "12 months or 12.000 km, whichever comes first" in joined


def test_warranty_text() -> None:
    assert warranty_text(WarrantyTerms.none()) == "The vehicle is sold without warranty."
    assert warranty_text(WarrantyTerms(months=24, kilometres=0)).endswith("warranty of 24 months from the date of delivery.")


def _deposit(store, company, buyer, vehicle):
    form = DepositForm(
        total_price=Decimal("24550"),
        deposit_date=date(2026, 3, 10),
        signing_place="Madrid",
    )
    return create_deposit(store, form, company, buyer, vehicle)


def test_deposit_document(store, company, buyer, vehicle) -> None:
    deposit = _deposit(store, company, buyer, vehicle)

    rendered = regenerate_deposit_document(store, deposit.deposit_id)
    sections = deposit_sections(deposit)
    joined = " ".join(_texts(paginate(sections)))

    assert rendered.filename == "Deposit_1234ABC_2026-03-10.pdf"
    assert rendered.content == project_deposit(deposit).content
    assert [s.key for s in sections] == list(DEPOSIT_SECTION_ORDER)
    assert [s.key for s in sections][-2:] == ["data_protection", "signatures"]
    assert "DEPOSIT / VEHICLE RESERVATION CONTRACT" in joined
    assert "2.455,00 €" in joined
    assert "22.095,00 €" in joined
    assert "25/03/2026" in joined
    assert "FIFTH. FORMALISATION." in joined


def test_regenerate_unknown_deposit(store) -> None:
    with pytest.raises(InvariantViolation):
        regenerate_deposit_document(store, "missing")


def _proforma(store, company, buyer, **updates):
    form = ProformaForm(
        concept="Quote for used vehicle SEAT Leon",
        base_amount=Decimal("20000"),
        issue_date=date(2026, 3, 10),
        validity_days=15,
    )
    return create_proforma(store, form.model_copy(update=updates), company, buyer)


def test_proforma_document(store, company, buyer) -> None:
    proforma = _proforma(store, company, buyer)

    rendered = regenerate_proforma_document(store, proforma.proforma_id)
    texts = _texts(paginate(proforma_sections(proforma)))
    joined = " ".join(texts)

    assert rendered.filename == "Proforma_PF-2026-000001_2026-03-10.pdf"
    assert [s.key for s in proforma_sections(proforma)] == list(PROFORMA_SECTION_ORDER)
    assert NOT_AN_INVOICE_BANNER in texts
    assert "24.200,00 €" in texts
    assert "2.420,00 €" in texts
    assert "valid for 15 days" in joined
    assert "25/03/2026" in texts
    assert IMPORTANT_NOTES[0] in joined
    assert "DATA PROTECTION:" in joined


def test_proforma_without_reservation_omits_the_section(store, company, buyer) -> None:
    proforma = _proforma(store, company, buyer, reservation_amount=Decimal("0"))

    keys = [s.key for s in proforma_sections(proforma)]

    assert "reservation" not in keys
    assert keys == [key for key in PROFORMA_SECTION_ORDER if key != "reservation"]
