"""
Domain: error taxonomy.

- ValidationError: a required field is missing or a value is out of range.
  Recovered locally and surfaced to the user; nothing has been written.
- NumberingConflictError: a document number could not be allocated (race or
  store failure) after the bounded retries.
- PersistenceError: the store is unavailable or a write failed; the operation
  is aborted with nothing partially saved.
- InvariantViolation: a programming-level misuse the state machine should have
  prevented (e.g. closing a sale twice). Never retried.
"""

from __future__ import annotations

from typing import Iterable, List


class DealershipError(Exception):
    """Base class for every error raised by the sales core."""


class ValidationError(DealershipError, ValueError):
    """Raised when user-provided data fails validation before any side effect."""

    def __init__(self, problems: Iterable[str] | str):
        if isinstance(problems, str):
            problems = [problems]
        self.problems: List[str] = list(problems)
        super().__init__("; ".join(self.problems) or "invalid input")


class NumberingConflictError(DealershipError):
    """Raised when a unique document number could not be allocated."""


class PersistenceError(DealershipError, RuntimeError):
    """Raised when the persistence collaborator fails a read or write."""


class InvariantViolation(DealershipError):
    """Raised when an operation would break a lifecycle invariant."""


__all__ = [
    "DealershipError",
    "ValidationError",
    "NumberingConflictError",
    "PersistenceError",
    "InvariantViolation",
]
