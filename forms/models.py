"""
Capture forms.

Pydantic models for the inputs collected by the sale-closing wizard, the
contract form, the invoice form and the deposit and proforma forms. They check field-level shape (types,
non-negative amounts, allowed enum values); cross-field business rules
(discount vs. price, down payment vs. final price) are checked by the
financial model's validate_* functions when a flow confirms.

`parse_form` converts pydantic's error into the domain ValidationError so
callers deal with a single validation failure type.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Any, List, Mapping, Optional, Type, TypeVar

import pydantic
from pydantic import BaseModel, Field, field_validator

import config
from domain.contract import WarrantyKind
from domain.errors import ValidationError
from domain.payment import SALE_PAYMENT_METHODS, PaymentMethod

FormT = TypeVar("FormT", bound=BaseModel)


def _today() -> date:
    return date.today()


def _default_tax_rate() -> Optional[Decimal]:
    return config.DEFAULT_TAX_RATE


def _default_validity_days() -> int:
    return config.PROFORMA_VALIDITY_DAYS


# ============================================================================
# Sale-closing wizard
# ============================================================================

class PricingForm(BaseModel):
    """Stage 1: price, discount and additional expenses."""
    list_price: Decimal = Field(..., ge=0)
    discount: Decimal = Field(Decimal("0"), ge=0)
    additional_expenses: Decimal = Field(Decimal("0"), ge=0)
    additional_expenses_description: str = ""

    class Config:
        json_schema_extra = {
            "example": {
                "list_price": "24900.00",
                "discount": "500.00",
                "additional_expenses": "150.00",
                "additional_expenses_description": "Transfer paperwork"
            }
        }


class PaymentForm(BaseModel):
    """Stage 2: payment method and, when financed, the installment plan."""
    payment_method: PaymentMethod
    down_payment: Decimal = Field(Decimal("0"), ge=0)
    installment_count: Optional[int] = Field(None, ge=1)
    lender: str = ""

    @field_validator("payment_method")
    @classmethod
    def _sale_method(cls, value: PaymentMethod) -> PaymentMethod:
        if value not in SALE_PAYMENT_METHODS:
            raise ValueError(f"{value.value} is not available when closing a sale")
        return value

    class Config:
        json_schema_extra = {
            "example": {
                "payment_method": "financing",
                "down_payment": "4000.00",
                "installment_count": 48,
                "lender": "Banco Ejemplo"
            }
        }


class DeliveryForm(BaseModel):
    """Stage 3: delivery date, warranty and notes."""
    delivery_date: date
    warranty_months: int = Field(12, ge=0)
    extended_warranty: bool = False
    notes: str = ""

    class Config:
        json_schema_extra = {
            "example": {
                "delivery_date": "2026-03-15",
                "warranty_months": 12,
                "extended_warranty": False,
                "notes": ""
            }
        }


# ============================================================================
# Contract form
# ============================================================================

class ContractForm(BaseModel):
    """
    Inputs of a sale contract.

    tax_rate None means VAT is not applicable (printed as "not applicable").
    """
    price_excl_tax: Decimal = Field(..., ge=0)
    tax_rate: Optional[Decimal] = Field(default_factory=_default_tax_rate, ge=0, le=100)
    payment_method: PaymentMethod = PaymentMethod.CASH
    vehicle_id: Optional[str] = None
    signing_date: date = Field(default_factory=_today)
    signing_place: str = ""
    has_warranty: bool = True
    warranty_months: int = Field(12, ge=0)
    warranty_kind: WarrantyKind = WarrantyKind.LEGAL
    warranty_km: int = Field(12000, ge=0)
    registration_certificate: bool = True
    technical_sheet: bool = True
    valid_inspection: bool = True
    road_tax_receipt: bool = True
    spare_wheel: bool = True
    jack: bool = True
    spare_keys: bool = False
    manuals: bool = True
    other_accessories: str = ""
    additional_clauses: str = ""
    notes: str = ""
    draft: bool = False

    class Config:
        json_schema_extra = {
            "example": {
                "price_excl_tax": "20289.26",
                "tax_rate": "21",
                "payment_method": "bank_transfer",
                "signing_date": "2026-03-15",
                "signing_place": "Madrid",
                "has_warranty": True,
                "warranty_months": 12,
                "warranty_kind": "legal",
                "warranty_km": 12000,
                "spare_keys": True
            }
        }


# ============================================================================
# Invoice form
# ============================================================================

class InvoiceForm(BaseModel):
    """
    Inputs of an invoice.

    due_date defaults to issue_date + INVOICE_DUE_DAYS when left empty.
    tax_rate None means VAT is not applicable.
    """
    concept: str = Field(..., min_length=1)
    base_amount: Decimal = Field(..., gt=0)
    discount: Decimal = Field(Decimal("0"), ge=0)
    tax_rate: Optional[Decimal] = Field(default_factory=_default_tax_rate, ge=0, le=100)
    payment_method: PaymentMethod = PaymentMethod.BANK_TRANSFER
    issue_date: date = Field(default_factory=_today)
    due_date: Optional[date] = None
    contract_id: Optional[str] = None
    vehicle_id: Optional[str] = None
    vehicle_description: str = ""
    notes: str = ""

    @field_validator("concept")
    @classmethod
    def _concept_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("concept is required")
        return value.strip()

    class Config:
        json_schema_extra = {
            "example": {
                "concept": "Sale of used vehicle SEAT Leon 1.5 TSI, plate 1234ABC",
                "base_amount": "20289.26",
                "discount": "0",
                "tax_rate": "21",
                "payment_method": "bank_transfer",
                "issue_date": "2026-03-15"
            }
        }


# ============================================================================
# Deposit and proforma forms
# ============================================================================

class DepositForm(BaseModel):
    """
    Inputs of a deposit (reservation) agreement.

    deposit_amount defaults to DEPOSIT_DEFAULT_PERCENT of the total price and
    sale_deadline to deposit_date + DEPOSIT_DEADLINE_DAYS when left empty.
    bank_account defaults to the company's account.
    """
    total_price: Decimal = Field(..., gt=0)
    deposit_amount: Optional[Decimal] = Field(None, gt=0)
    deposit_date: date = Field(default_factory=_today)
    sale_deadline: Optional[date] = None
    vehicle_id: Optional[str] = None
    bank_account: str = ""
    signing_place: str = ""
    additional_clauses: str = ""
    notes: str = ""

    class Config:
        json_schema_extra = {
            "example": {
                "total_price": "24550.00",
                "deposit_amount": "2455.00",
                "deposit_date": "2026-03-10",
                "sale_deadline": "2026-03-25",
                "signing_place": "Madrid"
            }
        }


class ProformaForm(BaseModel):
    """
    Inputs of a proforma invoice.

    reservation_amount None suggests DEPOSIT_DEFAULT_PERCENT of the total;
    0 prints no reservation line. tax_rate None means VAT is not applicable.
    """
    concept: str = Field(..., min_length=1)
    base_amount: Decimal = Field(..., gt=0)
    discount: Decimal = Field(Decimal("0"), ge=0)
    tax_rate: Optional[Decimal] = Field(default_factory=_default_tax_rate, ge=0, le=100)
    payment_method: PaymentMethod = PaymentMethod.BANK_TRANSFER
    issue_date: date = Field(default_factory=_today)
    validity_days: int = Field(default_factory=_default_validity_days, ge=1)
    reservation_amount: Optional[Decimal] = Field(None, ge=0)
    vehicle_id: Optional[str] = None
    vehicle_description: str = ""
    notes: str = ""

    @field_validator("concept")
    @classmethod
    def _concept_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("concept is required")
        return value.strip()

    class Config:
        json_schema_extra = {
            "example": {
                "concept": "Quote for used vehicle SEAT Leon 1.5 TSI, plate 1234ABC",
                "base_amount": "20289.26",
                "tax_rate": "21",
                "issue_date": "2026-03-01",
                "validity_days": 15
            }
        }


def _describe(errors: List[Mapping[str, Any]]) -> List[str]:
    problems = []
    for error in errors:
        location = ".".join(str(part) for part in error.get("loc", ()))
        message = error.get("msg", "invalid value")
        problems.append(f"{location}: {message}" if location else message)
    return problems


def parse_form(model: Type[FormT], data: Mapping[str, Any]) -> FormT:
    """
    Build a form from raw input.

    Raises:
        ValidationError: one problem per invalid field
    """

    try:
        return model.model_validate(dict(data))
    except pydantic.ValidationError as e:
        raise ValidationError(_describe(e.errors())) from e


__all__ = [
    "PricingForm",
    "PaymentForm",
    "DeliveryForm",
    "ContractForm",
    "InvoiceForm",
    "DepositForm",
    "ProformaForm",
    "parse_form",
]
