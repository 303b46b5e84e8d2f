"""
Domain: Spanish fiscal identity numbers (DNI, NIE, CIF).

Control-character checks only. Presence of a buyer document number is a
mandatory-field rule enforced by the document flows; whether the number is
well formed is reported here and only logged by callers.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

_DNI_LETTERS = "TRWAGMYFPDXBNJZSQVHLCKE"
_NIE_PREFIXES = "XYZ"
_CIF_FIRST_LETTERS = "ABCDEFGHJKLMNPQRSUVW"
_CIF_CONTROL_LETTERS = "JABCDEFGHI"

_DNI_RE = re.compile(r"^[0-9]{8}[A-Z]$")
_NIE_RE = re.compile(r"^[XYZ][0-9]{7}[A-Z]$")
_CIF_RE = re.compile(r"^[ABCDEFGHJKLMNPQRSUVW][0-9]{7}[0-9A-J]$")


def normalize_document_number(value: Optional[str]) -> str:
    """Uppercase and strip separators ("12.345.678-z" -> "12345678Z")."""

    if not value:
        return ""
    return re.sub(r"[^0-9A-Z]", "", value.upper())


def is_valid_dni(value: Optional[str]) -> bool:
    clean = normalize_document_number(value)
    if not _DNI_RE.match(clean):
        return False
    return clean[8] == _DNI_LETTERS[int(clean[:8]) % 23]


def is_valid_nie(value: Optional[str]) -> bool:
    clean = normalize_document_number(value)
    if not _NIE_RE.match(clean):
        return False
    number = int(str(_NIE_PREFIXES.index(clean[0])) + clean[1:8])
    return clean[8] == _DNI_LETTERS[number % 23]


def is_valid_cif(value: Optional[str]) -> bool:
    clean = normalize_document_number(value)
    if not _CIF_RE.match(clean):
        return False

    letter, digits, control = clean[0], clean[1:8], clean[8]

    odd_sum = 0
    even_sum = 0
    for i, ch in enumerate(digits):
        digit = int(ch)
        if i % 2 == 0:
            doubled = digit * 2
            odd_sum += doubled - 9 if doubled > 9 else doubled
        else:
            even_sum += digit

    control_digit = (10 - (odd_sum + even_sum) % 10) % 10
    control_letter = _CIF_CONTROL_LETTERS[control_digit]

    if letter in "KPQS":
        return control == control_letter
    if letter in "ABEH":
        return control == str(control_digit)
    return control in (str(control_digit), control_letter)


@dataclass(frozen=True, slots=True)
class IdentityCheck:
    kind: str  # DNI, NIE, CIF, unknown
    is_valid: bool
    normalized: str


def check_document_number(value: Optional[str]) -> IdentityCheck:
    """Detect the kind of a Spanish fiscal id and validate its control character."""

    clean = normalize_document_number(value)
    if _DNI_RE.match(clean):
        return IdentityCheck(kind="DNI", is_valid=is_valid_dni(clean), normalized=clean)
    if _NIE_RE.match(clean):
        return IdentityCheck(kind="NIE", is_valid=is_valid_nie(clean), normalized=clean)
    if len(clean) == 9 and clean[0] in _CIF_FIRST_LETTERS:
        return IdentityCheck(kind="CIF", is_valid=is_valid_cif(clean), normalized=clean)
    return IdentityCheck(kind="unknown", is_valid=False, normalized=clean)


__all__ = [
    "IdentityCheck",
    "normalize_document_number",
    "is_valid_dni",
    "is_valid_nie",
    "is_valid_cif",
    "check_document_number",
]
