from __future__ import annotations

import pytest

from fleetfuel.domain.approval import (
    TRANSITIONS,
    TransitionVerdict,
    actionable_status,
    authorize_transition,
    find_transition,
    stage_for_role,
)
from fleetfuel.domain.identity import Role
from fleetfuel.domain.requests import Outcome, RequestStatus


def test_table_has_one_stage_per_level_in_order() -> None:
    assert [t.level for t in TRANSITIONS] == [1, 2, 3]
    assert [t.role for t in TRANSITIONS] == [Role.SUPERVISOR, Role.FUELER, Role.DIRECTOR]
    # Each stage starts where the previous one approves to.
    for previous, current in zip(TRANSITIONS, TRANSITIONS[1:]):
        assert previous.on_approve == current.from_status


@pytest.mark.parametrize(
    "status, role, outcome, expected",
    [
        (RequestStatus.PENDING, Role.SUPERVISOR, Outcome.APPROVED, RequestStatus.SUPERVISOR_APPROVED),
        (RequestStatus.PENDING, Role.SUPERVISOR, Outcome.REJECTED, RequestStatus.REJECTED),
        (RequestStatus.SUPERVISOR_APPROVED, Role.FUELER, Outcome.APPROVED, RequestStatus.FUELER_APPROVED),
        (RequestStatus.FUELER_APPROVED, Role.DIRECTOR, Outcome.APPROVED, RequestStatus.DIRECTOR_APPROVED),
        (RequestStatus.FUELER_APPROVED, Role.DIRECTOR, Outcome.REJECTED, RequestStatus.REJECTED),
    ],
)
def test_allowed_transitions(status, role, outcome, expected) -> None:
    decision = authorize_transition(status, role, outcome)

    assert decision.verdict == TransitionVerdict.ALLOW
    assert decision.next_status == expected
    assert decision.level == find_transition(status, role).level


@pytest.mark.parametrize(
    "status, role",
    [
        (RequestStatus.PENDING, Role.FUELER),
        (RequestStatus.PENDING, Role.DIRECTOR),
        (RequestStatus.PENDING, Role.DRIVER),
        (RequestStatus.PENDING, Role.ADMIN),
        (RequestStatus.SUPERVISOR_APPROVED, Role.DIRECTOR),
        (RequestStatus.DIRECTOR_APPROVED, Role.DIRECTOR),
    ],
)
def test_transitions_outside_the_table_are_denied(status, role) -> None:
    decision = authorize_transition(status, role, Outcome.APPROVED)

    assert decision.verdict == TransitionVerdict.DENY
    assert decision.next_status is None


def test_already_decided_stage_is_stale() -> None:
    # Supervisor approved at level 1; the request has moved on.
    decision = authorize_transition(
        RequestStatus.SUPERVISOR_APPROVED, Role.SUPERVISOR, Outcome.APPROVED, decided_levels=[1]
    )

    assert decision.verdict == TransitionVerdict.STALE
    assert decision.level == 1


def test_nothing_is_allowed_from_rejected() -> None:
    for role in Role:
        decision = authorize_transition(RequestStatus.REJECTED, role, Outcome.APPROVED, decided_levels=[1])
        assert decision.verdict != TransitionVerdict.ALLOW


def test_verb_outcomes_are_accepted() -> None:
    decision = authorize_transition("pending", "supervisor", "reject")

    assert decision.next_status == RequestStatus.REJECTED


def test_actionable_status_per_role() -> None:
    assert actionable_status(Role.SUPERVISOR) == RequestStatus.PENDING
    assert actionable_status(Role.FUELER) == RequestStatus.SUPERVISOR_APPROVED
    assert actionable_status(Role.DIRECTOR) == RequestStatus.FUELER_APPROVED
    assert actionable_status(Role.DRIVER) is None
    assert stage_for_role(Role.ADMIN) is None
