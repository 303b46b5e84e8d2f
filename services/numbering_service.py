"""
Numbering service for contracts, invoices, deposit agreements and proformas.

Allocates PREFIX-YEAR-NNNNNN identifiers through the store's atomic
increment. Nothing here reads the highest existing number and adds one;
uniqueness across racing callers is the store's guarantee, and this module
adds bounded retries on top of it.

Retry policy (config.NUMBER_ALLOCATION_ATTEMPTS, default 3):
- A failed allocation (store error, conflict or malformed value) is retried.
- A document insert rejected because its number is already taken triggers a
  fresh allocation within the same bound.
- When the bound is exhausted the caller gets
  NumberingConflictError("could not generate document, try again").

Numbers are only requested by confirmed-creation flows, so an abandoned form
never consumes one. Gaps are allowed.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, Optional, TypeVar

import config
from domain.errors import NumberingConflictError, PersistenceError
from domain.numbering import DocumentScope, parse_document_number
from domain.time import utc_now
from repositories.store import Store

logger = logging.getLogger(__name__)

T = TypeVar("T")

COULD_NOT_GENERATE = "could not generate document, try again"


def _attempt_bound(attempts: Optional[int]) -> int:
    return max(1, attempts if attempts is not None else config.NUMBER_ALLOCATION_ATTEMPTS)


_ALLOCATORS: Dict[DocumentScope, Callable[[Store, int], str]] = {
    DocumentScope.CONTRACT: lambda store, year: store.allocate_contract_number(year),
    DocumentScope.INVOICE: lambda store, year: store.allocate_invoice_number(year),
    DocumentScope.DEPOSIT: lambda store, year: store.allocate_deposit_number(year),
    DocumentScope.PROFORMA: lambda store, year: store.allocate_proforma_number(year),
}


def _allocate_once(store: Store, scope: DocumentScope, year: int) -> str:
    """
    Ask the store for one number and check its shape.

    Raises ValueError when the store hands back something that is not a
    number for the requested year.
    """

    value = _ALLOCATORS[scope](store, year)

    parsed = parse_document_number(value)
    if parsed.year != year:
        raise ValueError(f"allocated number {value} does not belong to year {year}")
    return value


def allocate_number(
    store: Store,
    scope: DocumentScope,
    *,
    year: Optional[int] = None,
    attempts: Optional[int] = None,
) -> str:
    """
    Allocate the next number in `scope` for `year` (default: current UTC year).

    Raises:
        NumberingConflictError: every attempt failed
    """

    year = year if year is not None else utc_now().year
    bound = _attempt_bound(attempts)
    last_error: Optional[Exception] = None

    for attempt in range(1, bound + 1):
        try:
            number = _allocate_once(store, scope, year)
        except (PersistenceError, NumberingConflictError, ValueError) as e:
            last_error = e
            logger.warning(
                "%s number allocation failed (attempt %d/%d): %s", scope.value, attempt, bound, e
            )
            continue
        logger.info("Allocated %s number %s", scope.value, number)
        return number

    raise NumberingConflictError(COULD_NOT_GENERATE) from last_error


def create_contract_number(store: Store, *, year: Optional[int] = None, attempts: Optional[int] = None) -> str:
    return allocate_number(store, DocumentScope.CONTRACT, year=year, attempts=attempts)


def create_invoice_number(store: Store, *, year: Optional[int] = None, attempts: Optional[int] = None) -> str:
    return allocate_number(store, DocumentScope.INVOICE, year=year, attempts=attempts)


def create_deposit_number(store: Store, *, year: Optional[int] = None, attempts: Optional[int] = None) -> str:
    return allocate_number(store, DocumentScope.DEPOSIT, year=year, attempts=attempts)


def create_proforma_number(store: Store, *, year: Optional[int] = None, attempts: Optional[int] = None) -> str:
    return allocate_number(store, DocumentScope.PROFORMA, year=year, attempts=attempts)


def persist_with_number(
    store: Store,
    scope: DocumentScope,
    persist: Callable[[str], T],
    *,
    year: Optional[int] = None,
    attempts: Optional[int] = None,
) -> T:
    """
    Allocate a number and hand it to `persist`, re-allocating on a number clash.

    Each allocation failure and each clash on insert consumes one attempt.
    Other persistence failures from `persist` propagate unchanged.

    Raises:
        NumberingConflictError: the attempt bound was exhausted
        PersistenceError: `persist` failed for a reason other than a clash
    """

    year = year if year is not None else utc_now().year
    bound = _attempt_bound(attempts)
    last_error: Optional[Exception] = None

    for attempt in range(1, bound + 1):
        try:
            number = _allocate_once(store, scope, year)
        except (PersistenceError, NumberingConflictError, ValueError) as e:
            last_error = e
            logger.warning(
                "%s number allocation failed (attempt %d/%d): %s", scope.value, attempt, bound, e
            )
            continue

        try:
            result = persist(number)
        except NumberingConflictError as e:
            last_error = e
            logger.warning(
                "%s number %s already taken on insert (attempt %d/%d)", scope.value, number, attempt, bound
            )
            continue

        logger.info("Persisted %s %s", scope.value, number)
        return result

    raise NumberingConflictError(COULD_NOT_GENERATE) from last_error


__all__ = [
    "COULD_NOT_GENERATE",
    "allocate_number",
    "create_contract_number",
    "create_invoice_number",
    "create_deposit_number",
    "create_proforma_number",
    "persist_with_number",
]
