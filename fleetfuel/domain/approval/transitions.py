"""Fuel-request approval state machine.

The whole rule set lives in ``TRANSITIONS``: one row per validation stage,
keyed by the status a request must be in and the role allowed to decide it.
Inserting or removing a stage means editing this table only.

    pending --supervisor--> supervisor_approved --fueler--> fueler_approved
            --director--> director_approved

Any stage may reject instead, which ends the request in ``rejected``.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional

from fleetfuel.domain.identity.entities import Role
from fleetfuel.domain.requests.entities import Outcome, RequestStatus


@dataclass(frozen=True)
class Transition:
    from_status: RequestStatus
    role: Role
    on_approve: RequestStatus
    on_reject: RequestStatus
    level: int

    def next_status(self, outcome: Outcome) -> RequestStatus:
        return self.on_approve if outcome == Outcome.APPROVED else self.on_reject


TRANSITIONS: tuple[Transition, ...] = (
    Transition(
        from_status=RequestStatus.PENDING,
        role=Role.SUPERVISOR,
        on_approve=RequestStatus.SUPERVISOR_APPROVED,
        on_reject=RequestStatus.REJECTED,
        level=1,
    ),
    Transition(
        from_status=RequestStatus.SUPERVISOR_APPROVED,
        role=Role.FUELER,
        on_approve=RequestStatus.FUELER_APPROVED,
        on_reject=RequestStatus.REJECTED,
        level=2,
    ),
    Transition(
        from_status=RequestStatus.FUELER_APPROVED,
        role=Role.DIRECTOR,
        on_approve=RequestStatus.DIRECTOR_APPROVED,
        on_reject=RequestStatus.REJECTED,
        level=3,
    ),
)

_BY_KEY = {(t.from_status, t.role): t for t in TRANSITIONS}
_BY_ROLE = {t.role: t for t in TRANSITIONS}

# Statuses reached once level 2 (pump operator) has approved.
SERVED_QUANTITY_STATUSES = frozenset({RequestStatus.FUELER_APPROVED, RequestStatus.DIRECTOR_APPROVED})


class TransitionVerdict(str, Enum):
    ALLOW = "ALLOW"
    STALE = "STALE"
    DENY = "DENY"


@dataclass(frozen=True)
class TransitionDecision:
    verdict: TransitionVerdict
    transition: Optional[Transition] = None
    next_status: Optional[RequestStatus] = None
    reason: Optional[str] = None

    @property
    def level(self) -> int | None:
        return self.transition.level if self.transition else None


def find_transition(status: RequestStatus, role: Role) -> Transition | None:
    return _BY_KEY.get((RequestStatus(status), Role(role)))


def stage_for_role(role: Role) -> Transition | None:
    """The stage a role decides, or None for roles outside the chain."""
    return _BY_ROLE.get(Role(role))


def actionable_status(role: Role) -> RequestStatus | None:
    stage = stage_for_role(role)
    return stage.from_status if stage else None


def authorize_transition(
    status: RequestStatus,
    role: Role,
    outcome: Outcome,
    decided_levels: Iterable[int] = (),
) -> TransitionDecision:
    """
    Decide whether `role` may record `outcome` on a request in `status`.

    The check follows a fixed order:
    1. STALE if the role's own stage already has a validation record, i.e.
       somebody (possibly this caller) decided it first.
    2. ALLOW if the transition table has an entry for (status, role).
    3. DENY otherwise.

    Args:
        status: Current request status.
        role: Role of the acting identity.
        outcome: Requested outcome.
        decided_levels: Levels already recorded for the request.

    Returns:
        A TransitionDecision; on ALLOW it carries the transition and the
        status the request moves to.
    """
    status = RequestStatus(status)
    role = Role(role)
    outcome = Outcome(outcome)

    own_stage = stage_for_role(role)
    if own_stage is not None and own_stage.level in set(decided_levels):
        return TransitionDecision(
            verdict=TransitionVerdict.STALE,
            transition=own_stage,
            reason=f"Level {own_stage.level} was already decided; request is now '{status.value}'",
        )

    transition = find_transition(status, role)
    if transition is None:
        return TransitionDecision(
            verdict=TransitionVerdict.DENY,
            reason=f"Role '{role.value}' cannot decide a request in status '{status.value}'",
        )

    return TransitionDecision(
        verdict=TransitionVerdict.ALLOW,
        transition=transition,
        next_status=transition.next_status(outcome),
    )
