"""
Domain: payment methods shared by sales, contracts and invoices.
"""

from __future__ import annotations

from enum import Enum
from typing import FrozenSet


class PaymentMethod(str, Enum):
    CASH = "cash"
    BANK_TRANSFER = "bank_transfer"
    FINANCING = "financing"
    LEASING = "leasing"
    RENTING = "renting"
    MIXED = "mixed"

    @property
    def label(self) -> str:
        return _LABELS[self]

    @property
    def is_financed(self) -> bool:
        return self in FINANCED_METHODS


_LABELS = {
    PaymentMethod.CASH: "Cash",
    PaymentMethod.BANK_TRANSFER: "Bank transfer",
    PaymentMethod.FINANCING: "Financing",
    PaymentMethod.LEASING: "Leasing",
    PaymentMethod.RENTING: "Renting",
    PaymentMethod.MIXED: "Mixed payment",
}

# Methods the sale-closing wizard offers.
SALE_PAYMENT_METHODS: FrozenSet[PaymentMethod] = frozenset(
    {PaymentMethod.CASH, PaymentMethod.FINANCING, PaymentMethod.LEASING, PaymentMethod.RENTING}
)

# Methods that carry financing detail (down payment, installments, lender).
FINANCED_METHODS: FrozenSet[PaymentMethod] = frozenset(
    {PaymentMethod.FINANCING, PaymentMethod.LEASING, PaymentMethod.RENTING}
)


__all__ = ["PaymentMethod", "SALE_PAYMENT_METHODS", "FINANCED_METHODS"]
