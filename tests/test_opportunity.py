"""
Tests for `domain/opportunity.py` and `services/opportunity_service.py`.

Covers contract rules:
- The transition graph is flat between non-terminal states.
- "sold" can never be set through a transition.
- "lost" only leaves through reactivate, which returns to "new".
- Same-state transitions are rejected.
"""

from __future__ import annotations

from dataclasses import FrozenInstanceError
from datetime import datetime, timedelta, timezone

import pytest

from domain.errors import InvariantViolation
from domain.opportunity import (
    LEGAL_TRANSITIONS,
    TERMINAL_STATES,
    Opportunity,
    OpportunityState,
    is_legal_transition,
)
from services.opportunity_service import change_state, reactivate

T1 = datetime(2026, 3, 2, 10, 0, 0, tzinfo=timezone.utc)


def test_transition_table_is_flat_between_open_states() -> None:
    open_states = [state for state in OpportunityState if state not in TERMINAL_STATES]

    for source in open_states:
        for target in OpportunityState:
            expected = target is not source and target is not OpportunityState.SOLD
            assert is_legal_transition(source, target) is expected


def test_terminal_states_have_no_outgoing_transitions() -> None:
    assert not [pair for pair in LEGAL_TRANSITIONS if pair[0] in TERMINAL_STATES]


def test_direct_jump_between_open_states(opportunity: Opportunity) -> None:
    moved = opportunity.transition(OpportunityState.TEST_DRIVE_SCHEDULED, at=T1)

    assert moved.state == OpportunityState.TEST_DRIVE_SCHEDULED
    assert moved.last_interaction_at == T1
    assert opportunity.state == OpportunityState.NEGOTIATION


def test_transition_to_sold_is_rejected(opportunity: Opportunity) -> None:
    with pytest.raises(InvariantViolation):
        opportunity.transition(OpportunityState.SOLD, at=T1)


def test_same_state_transition_is_rejected(opportunity: Opportunity) -> None:
    with pytest.raises(InvariantViolation):
        opportunity.transition(OpportunityState.NEGOTIATION, at=T1)


def test_lost_records_reason_and_close_time(opportunity: Opportunity) -> None:
    lost = opportunity.transition(OpportunityState.LOST, at=T1, lost_reason="bought elsewhere")

    assert lost.closed_at == T1
    assert lost.lost_reason == "bought elsewhere"
    with pytest.raises(InvariantViolation):
        lost.transition(OpportunityState.CONTACTED, at=T1)


def test_reactivate_returns_lost_to_new(opportunity: Opportunity) -> None:
    lost = opportunity.transition(OpportunityState.LOST, at=T1)
    reopened = lost.reactivate(at=T1 + timedelta(days=1))

    assert reopened.state == OpportunityState.NEW
    assert reopened.closed_at is None
    assert reopened.lost_reason is None


def test_reactivate_only_from_lost(opportunity: Opportunity) -> None:
    with pytest.raises(InvariantViolation):
        opportunity.reactivate(at=T1)


def test_sold_accepts_nothing(opportunity: Opportunity) -> None:
    sold = opportunity.mark_sold(at=T1)

    with pytest.raises(InvariantViolation):
        sold.transition(OpportunityState.NEW, at=T1)
    with pytest.raises(InvariantViolation):
        sold.reactivate(at=T1)
    with pytest.raises(InvariantViolation):
        sold.mark_sold(at=T1)


def test_timestamps_must_be_utc(opportunity: Opportunity) -> None:
    with pytest.raises(ValueError):
        opportunity.transition(OpportunityState.CONTACTED, at=datetime(2026, 3, 2, 10, 0, 0))


def test_opportunity_is_immutable(opportunity: Opportunity) -> None:
    with pytest.raises(FrozenInstanceError):
        opportunity.state = OpportunityState.LOST  # type: ignore[misc]


def test_change_state_persists(seeded_store) -> None:
    saved = change_state(seeded_store, "opp-1", OpportunityState.PROPOSAL_SENT, at=T1)

    assert seeded_store.opportunities["opp-1"] == saved
    assert saved.state == OpportunityState.PROPOSAL_SENT


def test_change_state_rejects_sold_without_writing(seeded_store) -> None:
    with pytest.raises(InvariantViolation):
        change_state(seeded_store, "opp-1", OpportunityState.SOLD, at=T1)

    assert seeded_store.writes() == []


def test_reactivate_service(seeded_store) -> None:
    change_state(seeded_store, "opp-1", OpportunityState.LOST, at=T1)

    reopened = reactivate(seeded_store, "opp-1", at=T1)

    assert reopened.state == OpportunityState.NEW
    assert seeded_store.opportunities["opp-1"].state == OpportunityState.NEW
