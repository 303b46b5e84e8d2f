"""
Domain: Opportunity (sales lead) lifecycle.

States:
  new, contacted, negotiation, visit_scheduled, test_drive_scheduled,
  proposal_sent, financing, offer_sent, sold, lost

Rules implemented here:
- The transition graph is flat: any non-terminal state may move directly to
  any other listed state (the sales team jumps from "new" to "negotiation").
- "sold" is never reachable through `transition`. Only the sale-closing
  workflow may mark an opportunity sold, and only together with a SaleRecord.
- "sold" and "lost" are terminal. "lost" can be reopened by `reactivate`,
  which always returns the opportunity to "new".
- Entities are immutable; every transition returns a new Opportunity.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import FrozenSet, Optional, Tuple

from .errors import InvariantViolation
from .time import require_utc_timestamp


class OpportunityState(str, Enum):
    NEW = "new"
    CONTACTED = "contacted"
    NEGOTIATION = "negotiation"
    VISIT_SCHEDULED = "visit_scheduled"
    TEST_DRIVE_SCHEDULED = "test_drive_scheduled"
    PROPOSAL_SENT = "proposal_sent"
    FINANCING = "financing"
    OFFER_SENT = "offer_sent"
    SOLD = "sold"
    LOST = "lost"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATES


class Priority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


INITIAL_STATE = OpportunityState.NEW
TERMINAL_STATES: FrozenSet[OpportunityState] = frozenset({OpportunityState.SOLD, OpportunityState.LOST})
REACTIVATION_TARGET = OpportunityState.NEW


def _build_transition_table() -> FrozenSet[Tuple[OpportunityState, OpportunityState]]:
    pairs = set()
    for source in OpportunityState:
        if source in TERMINAL_STATES:
            continue
        for target in OpportunityState:
            if target is source or target is OpportunityState.SOLD:
                continue
            pairs.add((source, target))
    return frozenset(pairs)


# Legal (from, to) pairs for `transition`. Reaching SOLD goes through close_sale;
# leaving LOST goes through reactivate.
LEGAL_TRANSITIONS: FrozenSet[Tuple[OpportunityState, OpportunityState]] = _build_transition_table()


def is_legal_transition(source: OpportunityState, target: OpportunityState) -> bool:
    return (source, target) in LEGAL_TRANSITIONS


@dataclass(frozen=True, slots=True)
class Opportunity:
    """
    A tracked potential sale tied to a buyer and optionally a vehicle.

    `closed_at` is set when the opportunity reaches sold or lost and cleared by
    reactivation.
    """

    opportunity_id: str
    buyer_id: str
    state: OpportunityState
    created_at: datetime
    last_interaction_at: datetime
    vehicle_id: Optional[str] = None
    priority: Priority = Priority.MEDIUM
    closed_at: Optional[datetime] = None
    lost_reason: Optional[str] = None
    notes: str = ""

    def __post_init__(self) -> None:
        require_utc_timestamp("created_at", self.created_at)
        require_utc_timestamp("last_interaction_at", self.last_interaction_at)
        if self.closed_at is not None:
            require_utc_timestamp("closed_at", self.closed_at)

    @property
    def is_sold(self) -> bool:
        return self.state == OpportunityState.SOLD

    def transition(self, target: OpportunityState, *, at: datetime, lost_reason: Optional[str] = None) -> "Opportunity":
        """
        Move to `target` through the flat transition table.

        Raises InvariantViolation for sold targets, terminal sources and no-op moves.
        """

        require_utc_timestamp("at", at)
        target = OpportunityState(target)

        if target == OpportunityState.SOLD:
            raise InvariantViolation(
                f"opportunity {self.opportunity_id} cannot be marked sold directly; use the sale-closing workflow"
            )
        if not is_legal_transition(self.state, target):
            raise InvariantViolation(
                f"illegal transition {self.state.value} -> {target.value} for opportunity {self.opportunity_id}"
            )

        return replace(
            self,
            state=target,
            last_interaction_at=at,
            closed_at=at if target == OpportunityState.LOST else None,
            lost_reason=lost_reason if target == OpportunityState.LOST else None,
        )

    def reactivate(self, *, at: datetime) -> "Opportunity":
        """Reopen a lost opportunity. The target state is always `new`."""

        require_utc_timestamp("at", at)
        if self.state != OpportunityState.LOST:
            raise InvariantViolation(
                f"only lost opportunities can be reactivated (opportunity {self.opportunity_id} is {self.state.value})"
            )
        return replace(
            self,
            state=REACTIVATION_TARGET,
            last_interaction_at=at,
            closed_at=None,
            lost_reason=None,
        )

    def mark_sold(self, *, at: datetime) -> "Opportunity":
        """
        Terminal transition used only by the sale-closing workflow, after the
        SaleRecord has been written.
        """

        require_utc_timestamp("at", at)
        if self.state in TERMINAL_STATES:
            raise InvariantViolation(
                f"opportunity {self.opportunity_id} is already {self.state.value} and cannot be sold"
            )
        return replace(self, state=OpportunityState.SOLD, last_interaction_at=at, closed_at=at)


__all__ = [
    "OpportunityState",
    "Priority",
    "INITIAL_STATE",
    "TERMINAL_STATES",
    "REACTIVATION_TARGET",
    "LEGAL_TRANSITIONS",
    "is_legal_transition",
    "Opportunity",
]
