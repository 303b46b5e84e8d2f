"""
Supabase client initialization.

This module contains *only* the database connection setup and the small
helper every repository uses to execute a query. It exposes a single
`supabase` client object for the other repository modules to import.

Environment variables required (see config.py):
- SUPABASE_URL: Your Supabase project URL
- SUPABASE_KEY: Your Supabase API key (use a server-side key only on the backend)
"""

from __future__ import annotations

from typing import Any

import httpx
from postgrest.exceptions import APIError
from supabase import Client, create_client  # type: ignore[import-not-found]

import config
from domain.errors import PersistenceError

if not config.SUPABASE_URL:
    raise RuntimeError(
        "Missing environment variable: SUPABASE_URL. "
        "Set SUPABASE_URL to your Supabase project URL."
    )

if not config.SUPABASE_KEY:
    raise RuntimeError(
        "Missing environment variable: SUPABASE_KEY. "
        "Set SUPABASE_KEY to your Supabase API key."
    )

# Official Supabase Python client instance to be imported by other modules.
supabase: Client = create_client(config.SUPABASE_URL, config.SUPABASE_KEY)

# PostgreSQL SQLSTATE for unique_violation.
UNIQUE_VIOLATION = "23505"


class DuplicateKeyError(PersistenceError):
    """A write hit a unique constraint."""


def execute(query: Any, *, action: str) -> Any:
    """
    Execute a PostgREST query builder and translate failures.

    Raises:
        DuplicateKeyError: the write violated a unique constraint
        PersistenceError: any other API or transport failure
    """

    try:
        response = query.execute()
    except APIError as e:
        if getattr(e, "code", None) == UNIQUE_VIOLATION:
            raise DuplicateKeyError(f"Failed to {action}: {e.message}") from e
        raise PersistenceError(f"Failed to {action}: {e.message}") from e
    except httpx.HTTPError as e:
        raise PersistenceError(f"Failed to {action}: {e}") from e

    # Older clients report errors on the response instead of raising.
    error = getattr(response, "error", None)
    if error:
        raise PersistenceError(f"Failed to {action}: {error}")
    return response


def rows_of(response: Any) -> list:
    return getattr(response, "data", None) or []


__all__ = ["supabase", "execute", "rows_of", "DuplicateKeyError", "UNIQUE_VIOLATION"]
