"""
Opportunity service: persisted state transitions.

Loads the opportunity, applies the domain transition and saves the new
instance. Reaching "sold" is not possible here; see sale_closing_service.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from domain.errors import InvariantViolation
from domain.opportunity import Opportunity, OpportunityState
from domain.time import utc_now
from repositories.store import Store

logger = logging.getLogger(__name__)


def load_opportunity(store: Store, opportunity_id: str) -> Opportunity:
    opportunity = store.get_opportunity(opportunity_id)
    if opportunity is None:
        raise InvariantViolation(f"opportunity {opportunity_id} does not exist")
    return opportunity


def change_state(
    store: Store,
    opportunity_id: str,
    target: OpportunityState,
    *,
    lost_reason: Optional[str] = None,
    at: Optional[datetime] = None,
) -> Opportunity:
    """
    Move an opportunity to `target` and persist it.

    Raises:
        InvariantViolation: unknown opportunity, illegal or no-op transition,
            or a direct move to sold
        PersistenceError: the store failed
    """

    opportunity = load_opportunity(store, opportunity_id)
    try:
        updated = opportunity.transition(target, at=at or utc_now(), lost_reason=lost_reason)
    except InvariantViolation as e:
        logger.error("Rejected opportunity transition: %s", e)
        raise

    saved = store.save_opportunity(updated)
    logger.info(
        "Opportunity %s moved %s -> %s", opportunity_id, opportunity.state.value, saved.state.value
    )
    return saved


def reactivate(store: Store, opportunity_id: str, *, at: Optional[datetime] = None) -> Opportunity:
    """Reopen a lost opportunity; it always comes back as `new`."""

    opportunity = load_opportunity(store, opportunity_id)
    try:
        updated = opportunity.reactivate(at=at or utc_now())
    except InvariantViolation as e:
        logger.error("Rejected opportunity reactivation: %s", e)
        raise

    saved = store.save_opportunity(updated)
    logger.info("Opportunity %s reactivated", opportunity_id)
    return saved


__all__ = ["load_opportunity", "change_state", "reactivate"]
