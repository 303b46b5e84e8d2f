"""
Domain: financial model shared by the sale-closing wizard, the contract flow
and the invoice flow.

Formulas:
- final_price = list_price - discount + additional_expenses
- cost_total = acquisition_cost + acquisition_expenses + repair_cost
- margin = final_price - cost_total
- margin_percent = margin / final_price * 100 (0 when final_price <= 0)
- tax_amount = base_amount * tax_rate / 100 (0 when the rate is "not applicable")
- total = base_amount - discount + tax_amount
- amount_to_finance = final_price - down_payment
- installment_estimate = amount_to_finance / installment_count (None when
  installment_count <= 0). Flat division: an estimate with no interest.

Every computation here is pure and never raises. Unparseable input degrades
to zero so previews can be recomputed on every keystroke; callers run the
validate_* functions before confirming anything. Amounts are carried at full
Decimal precision and only rounded by the formatting helpers.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import ClassVar, List, Optional, Union

from .errors import ValidationError

MoneyInput = Union[Decimal, int, float, str, None]

ZERO = Decimal("0")
HUNDRED = Decimal("100")

NOT_APPLICABLE_LABEL = "not applicable"
INSTALLMENT_ESTIMATE_LABEL = "estimate, no interest"


def _parse_decimal(value: MoneyInput) -> Optional[Decimal]:
    """Parse a number into a finite Decimal, or None if it cannot be parsed."""

    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, int):
        result = Decimal(value)
    elif isinstance(value, float):
        # str() keeps the shortest repr (24900.5 -> "24900.5"), not the binary expansion
        result = Decimal(str(value))
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            result = Decimal(text)
        except InvalidOperation:
            return None
    else:
        return None

    if not result.is_finite():
        return None
    return result


def to_money(value: MoneyInput) -> Decimal:
    """Coerce any input to a Decimal amount; invalid input becomes 0."""

    parsed = _parse_decimal(value)
    return parsed if parsed is not None else ZERO


@dataclass(frozen=True, slots=True)
class TaxRate:
    """
    A VAT percentage, or the "not applicable" sentinel.

    A rate of 0% is a real rate and prints as "0%"; the sentinel prints
    "not applicable" and always yields a tax amount of zero.
    """

    percent: Optional[Decimal]

    NOT_APPLICABLE: ClassVar["TaxRate"]

    @staticmethod
    def of(value: Union["TaxRate", MoneyInput]) -> "TaxRate":
        """
        Build a TaxRate from user or storage input.

        None, "", and "not_applicable" / "not applicable" map to the sentinel.
        Any other unparseable value also maps to the sentinel rather than raising;
        validate_tax_rate rejects such input before a document is issued.
        """

        if isinstance(value, TaxRate):
            return value
        if isinstance(value, str) and value.strip().lower().replace("_", " ") == NOT_APPLICABLE_LABEL:
            return TaxRate.NOT_APPLICABLE
        parsed = _parse_decimal(value)
        if parsed is None:
            return TaxRate.NOT_APPLICABLE
        return TaxRate(percent=parsed)

    @property
    def is_applicable(self) -> bool:
        return self.percent is not None

    @property
    def label(self) -> str:
        if self.percent is None:
            return NOT_APPLICABLE_LABEL
        return f"{format(self.percent.normalize(), 'f')}%"

    def to_storage(self) -> Optional[str]:
        """Serialized form: the percentage as a string, or None for the sentinel."""

        return None if self.percent is None else str(self.percent)


TaxRate.NOT_APPLICABLE = TaxRate(percent=None)


# ---------------------------------------------------------------------------
# Scalar formulas
# ---------------------------------------------------------------------------

def final_price(list_price: MoneyInput, discount: MoneyInput, additional_expenses: MoneyInput) -> Decimal:
    return to_money(list_price) - to_money(discount) + to_money(additional_expenses)


def cost_total(acquisition_cost: MoneyInput, acquisition_expenses: MoneyInput, repair_cost: MoneyInput) -> Decimal:
    return to_money(acquisition_cost) + to_money(acquisition_expenses) + to_money(repair_cost)


def margin(final_price_value: MoneyInput, cost_total_value: MoneyInput) -> Decimal:
    return to_money(final_price_value) - to_money(cost_total_value)


def margin_percent(final_price_value: MoneyInput, margin_value: MoneyInput) -> Decimal:
    price = to_money(final_price_value)
    if price <= ZERO:
        return ZERO
    return to_money(margin_value) / price * HUNDRED


def tax_amount(base_amount: MoneyInput, tax_rate: Union[TaxRate, MoneyInput]) -> Decimal:
    rate = TaxRate.of(tax_rate)
    if rate.percent is None:
        return ZERO
    return to_money(base_amount) * rate.percent / HUNDRED


def document_total(base_amount: MoneyInput, discount: MoneyInput, tax_amount_value: MoneyInput) -> Decimal:
    return to_money(base_amount) - to_money(discount) + to_money(tax_amount_value)


def amount_to_finance(final_price_value: MoneyInput, down_payment: MoneyInput) -> Decimal:
    return to_money(final_price_value) - to_money(down_payment)


def installment_estimate(amount_to_finance_value: MoneyInput, installment_count: Optional[int]) -> Optional[Decimal]:
    """Flat division of the financed amount. Not an amortization schedule."""

    if installment_count is None or isinstance(installment_count, bool):
        return None
    try:
        count = int(installment_count)
    except (TypeError, ValueError):
        return None
    if count <= 0:
        return None
    return to_money(amount_to_finance_value) / Decimal(count)


# ---------------------------------------------------------------------------
# Aggregates
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class SaleFigures:
    """Derived figures shown by the sale-closing wizard and frozen into a SaleRecord."""

    list_price: Decimal
    discount: Decimal
    additional_expenses: Decimal
    final_price: Decimal
    cost_total: Decimal
    margin: Decimal
    margin_percent: Decimal


def compute_sale_figures(
    *,
    list_price: MoneyInput,
    discount: MoneyInput,
    additional_expenses: MoneyInput,
    acquisition_cost: MoneyInput,
    acquisition_expenses: MoneyInput,
    repair_cost: MoneyInput,
) -> SaleFigures:
    price = final_price(list_price, discount, additional_expenses)
    costs = cost_total(acquisition_cost, acquisition_expenses, repair_cost)
    gross = margin(price, costs)
    return SaleFigures(
        list_price=to_money(list_price),
        discount=to_money(discount),
        additional_expenses=to_money(additional_expenses),
        final_price=price,
        cost_total=costs,
        margin=gross,
        margin_percent=margin_percent(price, gross),
    )


@dataclass(frozen=True, slots=True)
class FinancingEstimate:
    down_payment: Decimal
    installment_count: Optional[int]
    amount_to_finance: Decimal
    installment_estimate: Optional[Decimal]
    label: str = INSTALLMENT_ESTIMATE_LABEL


def compute_financing(
    *, final_price_value: MoneyInput, down_payment: MoneyInput, installment_count: Optional[int]
) -> FinancingEstimate:
    financed = amount_to_finance(final_price_value, down_payment)
    return FinancingEstimate(
        down_payment=to_money(down_payment),
        installment_count=installment_count,
        amount_to_finance=financed,
        installment_estimate=installment_estimate(financed, installment_count),
    )


@dataclass(frozen=True, slots=True)
class TaxBreakdown:
    """Base, discount, tax and total of a contract or invoice."""

    base_amount: Decimal
    discount: Decimal
    tax_rate: TaxRate
    tax_amount: Decimal
    total: Decimal


def compute_tax_breakdown(
    *, base_amount: MoneyInput, tax_rate: Union[TaxRate, MoneyInput], discount: MoneyInput = None
) -> TaxBreakdown:
    rate = TaxRate.of(tax_rate)
    tax = tax_amount(base_amount, rate)
    return TaxBreakdown(
        base_amount=to_money(base_amount),
        discount=to_money(discount),
        tax_rate=rate,
        tax_amount=tax,
        total=document_total(base_amount, discount, tax),
    )


# ---------------------------------------------------------------------------
# Validation (run by the flows before confirming; never by the formulas)
# ---------------------------------------------------------------------------

def _check_amount(problems: List[str], name: str, value: MoneyInput, *, required: bool = True) -> Optional[Decimal]:
    parsed = _parse_decimal(value)
    if parsed is None:
        if required or (value is not None and value != ""):
            problems.append(f"{name} must be a valid amount")
        return None
    if parsed < ZERO:
        problems.append(f"{name} must not be negative")
        return None
    return parsed


def validate_pricing(list_price: MoneyInput, discount: MoneyInput, additional_expenses: MoneyInput) -> None:
    """Reject negative amounts and a discount larger than list price plus expenses."""

    problems: List[str] = []
    price = _check_amount(problems, "list_price", list_price)
    disc = _check_amount(problems, "discount", discount, required=False)
    extra = _check_amount(problems, "additional_expenses", additional_expenses, required=False)

    if price is not None and disc is not None:
        if disc > price + (extra or ZERO):
            problems.append("discount must not exceed list_price + additional_expenses")

    if problems:
        raise ValidationError(problems)


def validate_invoice_amounts(base_amount: MoneyInput, discount: MoneyInput) -> None:
    problems: List[str] = []
    base = _check_amount(problems, "base_amount", base_amount)
    disc = _check_amount(problems, "discount", discount, required=False)

    if base is not None and base <= ZERO:
        problems.append("base_amount must be greater than zero")
    if base is not None and disc is not None and disc > base:
        problems.append("discount must not exceed base_amount")

    if problems:
        raise ValidationError(problems)


def _is_explicit_not_applicable(value: MoneyInput) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        text = value.strip().lower().replace("_", " ")
        return text in ("", NOT_APPLICABLE_LABEL)
    return False


def validate_tax_rate(tax_rate: Union[TaxRate, MoneyInput]) -> None:
    """
    Accept a percentage between 0 and 100, or an explicit "not applicable"
    (None, "" or the sentinel text). Anything else that does not parse as a
    number is rejected instead of silently meaning "no tax".
    """

    if not isinstance(tax_rate, TaxRate):
        if _parse_decimal(tax_rate) is None and not _is_explicit_not_applicable(tax_rate):
            raise ValidationError(f"tax_rate must be a percentage or {NOT_APPLICABLE_LABEL!r}, got {tax_rate!r}")
    rate = TaxRate.of(tax_rate)
    if rate.percent is not None and (rate.percent < ZERO or rate.percent > HUNDRED):
        raise ValidationError("tax_rate must be between 0 and 100")


def validate_financing(final_price_value: MoneyInput, down_payment: MoneyInput, installment_count: Optional[int]) -> None:
    problems: List[str] = []
    down = _check_amount(problems, "down_payment", down_payment, required=False)

    if installment_estimate(Decimal(1), installment_count) is None:
        problems.append("installment_count must be a positive integer")
    if down is not None and down > to_money(final_price_value):
        problems.append("down_payment must not exceed final_price")

    if problems:
        raise ValidationError(problems)


__all__ = [
    "ZERO",
    "HUNDRED",
    "NOT_APPLICABLE_LABEL",
    "INSTALLMENT_ESTIMATE_LABEL",
    "TaxRate",
    "to_money",
    "final_price",
    "cost_total",
    "margin",
    "margin_percent",
    "tax_amount",
    "document_total",
    "amount_to_finance",
    "installment_estimate",
    "SaleFigures",
    "compute_sale_figures",
    "FinancingEstimate",
    "compute_financing",
    "TaxBreakdown",
    "compute_tax_breakdown",
    "validate_pricing",
    "validate_invoice_amounts",
    "validate_tax_rate",
    "validate_financing",
]
