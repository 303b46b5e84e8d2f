"""
Opportunity repository (persistence).

This module provides *only* persistence operations for the Opportunity domain
entity. Transition rules live in domain.opportunity; this module stores
whatever state it is handed.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional

from domain.opportunity import Opportunity, OpportunityState, Priority
from domain.time import parse_utc_datetime, to_iso_utc
from repositories.client import execute, rows_of, supabase
from repositories.row_mapping import optional_text, text

# Supabase table name for opportunities (leads).
# Keep this aligned with your database schema.
_OPPORTUNITIES_TABLE: str = "opportunities"


def _opportunity_to_row(opportunity: Opportunity) -> dict[str, Any]:
    """Convert a domain Opportunity to a Supabase row payload."""

    return {
        "opportunity_id": opportunity.opportunity_id,
        "buyer_id": opportunity.buyer_id,
        "vehicle_id": opportunity.vehicle_id,
        "state": opportunity.state.value,
        "priority": opportunity.priority.value,
        "created_at_utc": to_iso_utc(opportunity.created_at, name="created_at"),
        "last_interaction_at_utc": to_iso_utc(opportunity.last_interaction_at, name="last_interaction_at"),
        "closed_at_utc": (
            to_iso_utc(opportunity.closed_at, name="closed_at") if opportunity.closed_at is not None else None
        ),
        "lost_reason": opportunity.lost_reason,
        "notes": opportunity.notes,
    }


def _row_to_opportunity(row: Mapping[str, Any]) -> Opportunity:
    """Convert a Supabase row into a domain Opportunity."""

    return Opportunity(
        opportunity_id=str(row["opportunity_id"]),
        buyer_id=str(row["buyer_id"]),
        state=OpportunityState(str(row["state"])),
        created_at=parse_utc_datetime(row["created_at_utc"]),
        last_interaction_at=parse_utc_datetime(row["last_interaction_at_utc"]),
        vehicle_id=optional_text(row, "vehicle_id"),
        priority=Priority(row.get("priority") or Priority.MEDIUM.value),
        closed_at=parse_utc_datetime(row["closed_at_utc"]) if row.get("closed_at_utc") else None,
        lost_reason=optional_text(row, "lost_reason"),
        notes=text(row, "notes"),
    )


def get_opportunity_by_id(opportunity_id: str) -> Optional[Opportunity]:
    response = execute(
        supabase.table(_OPPORTUNITIES_TABLE).select("*").eq("opportunity_id", opportunity_id).limit(1),
        action="get opportunity",
    )
    rows = rows_of(response)
    if not rows:
        return None
    return _row_to_opportunity(rows[0])


def upsert_opportunity(opportunity: Opportunity) -> Opportunity:
    """
    Insert or update an Opportunity keyed by opportunity_id.

    Raises:
    - PersistenceError if Supabase rejects the write.
    - ValueError for non-UTC timestamps.
    """

    payload = _opportunity_to_row(opportunity)
    execute(
        supabase.table(_OPPORTUNITIES_TABLE).upsert(payload, on_conflict="opportunity_id"),
        action="save opportunity",
    )
    return opportunity


__all__ = ["get_opportunity_by_id", "upsert_opportunity"]
