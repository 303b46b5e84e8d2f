"""
Domain: document number format.

Numbers have the shape PREFIX-YEAR-NNNNNN, where NNNNNN is a zero-padded
ordinal unique within (scope, year). Each scope (contracts, invoices,
deposit agreements, proformas) has its own counter and the counter restarts every calendar year.

This module only formats and parses; allocation lives with the store's
atomic increment and the numbering service.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

ORDINAL_WIDTH = 6

_NUMBER_RE = re.compile(r"^(?P<prefix>[A-Z][A-Z0-9]*)-(?P<year>\d{4})-(?P<ordinal>\d{%d,})$" % ORDINAL_WIDTH)


class DocumentScope(str, Enum):
    CONTRACT = "contract"
    INVOICE = "invoice"
    DEPOSIT = "deposit"
    PROFORMA = "proforma"


@dataclass(frozen=True, slots=True, order=True)
class DocumentNumber:
    prefix: str
    year: int
    ordinal: int

    def __str__(self) -> str:
        return format_document_number(self.prefix, self.year, self.ordinal)


def format_document_number(prefix: str, year: int, ordinal: int) -> str:
    if ordinal < 1:
        raise ValueError("ordinal must be >= 1")
    if not 1000 <= year <= 9999:
        raise ValueError("year must have four digits")
    return f"{prefix}-{year:04d}-{ordinal:0{ORDINAL_WIDTH}d}"


def parse_document_number(value: str) -> DocumentNumber:
    """Split PREFIX-YEAR-NNNNNN into its parts. Raises ValueError on any other shape."""

    match = _NUMBER_RE.match(value or "")
    if match is None:
        raise ValueError(f"not a document number: {value!r}")
    ordinal = int(match.group("ordinal"))
    if ordinal < 1:
        raise ValueError(f"document number ordinal must be >= 1: {value!r}")
    return DocumentNumber(prefix=match.group("prefix"), year=int(match.group("year")), ordinal=ordinal)


__all__ = [
    "ORDINAL_WIDTH",
    "DocumentScope",
    "DocumentNumber",
    "format_document_number",
    "parse_document_number",
]
