"""
Document sequence repository (persistence).

Allocation is delegated to the `next_document_sequence` PostgreSQL function
(sql/document_numbering.sql), which performs an insert-or-increment on the
(scope, year) counter row in a single statement. Two concurrent callers can
never receive the same ordinal; nothing here reads the current maximum.
"""

from __future__ import annotations

from typing import Any

from domain.errors import PersistenceError
from domain.numbering import DocumentScope
from repositories.client import execute, supabase

_NEXT_SEQUENCE_RPC: str = "next_document_sequence"


def _extract_ordinal(data: Any) -> int:
    """
    Pull the integer out of an RPC payload.

    PostgREST returns a scalar function result as a bare value, but some
    client versions wrap it as [{"next_document_sequence": n}].
    """

    if isinstance(data, list):
        if len(data) != 1:
            raise ValueError(f"expected a single row, got {len(data)}")
        data = data[0]
    if isinstance(data, dict):
        data = data.get(_NEXT_SEQUENCE_RPC)
    if isinstance(data, bool):
        raise ValueError("boolean is not a sequence value")
    ordinal = int(data)
    if ordinal < 1:
        raise ValueError(f"sequence value must be >= 1, got {ordinal}")
    return ordinal


def next_sequence(scope: DocumentScope, year: int) -> int:
    """
    Atomically allocate the next ordinal for (scope, year).

    Raises:
        PersistenceError: the RPC failed or returned something that is not a positive integer
    """

    response = execute(
        supabase.rpc(_NEXT_SEQUENCE_RPC, {"p_scope": scope.value, "p_year": year}),
        action=f"allocate {scope.value} number",
    )
    try:
        return _extract_ordinal(getattr(response, "data", None))
    except (TypeError, ValueError) as e:
        raise PersistenceError(f"Failed to allocate {scope.value} number: malformed sequence value ({e})") from e


__all__ = ["next_sequence"]
