"""
Buyer checks shared by the contract and invoice flows.

Name and document number are mandatory before a number is allocated. The
control character of a Spanish DNI/NIE/CIF is only checked for a warning;
a failing check never blocks the document.
"""

from __future__ import annotations

import logging
from typing import List

from domain.identity import check_document_number
from domain.parties import DocumentType, Person

logger = logging.getLogger(__name__)


def buyer_problems(buyer: Person) -> List[str]:
    return buyer.missing_mandatory_fields()


def warn_on_suspect_document(buyer: Person, *, context: str) -> bool:
    """
    Log a warning when the buyer's fiscal id fails its control check.

    Returns True when the id looks valid (or is a passport, which has no check).
    """

    if buyer.document_type == DocumentType.PASSPORT or not buyer.document_number.strip():
        return True

    result = check_document_number(buyer.document_number)
    if not result.is_valid:
        logger.warning(
            "%s: buyer document %s (%s) fails its control check",
            context,
            result.normalized,
            buyer.document_type.value,
        )
    return result.is_valid


__all__ = ["buyer_problems", "warn_on_suspect_document"]
