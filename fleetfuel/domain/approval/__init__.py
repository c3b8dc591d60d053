"""This module handles fuel-request approvals and rejections."""
from .engine import ApprovalEngine, DecisionResult, SubmissionResult, can_view
from .transitions import (
    TRANSITIONS,
    Transition,
    TransitionDecision,
    TransitionVerdict,
    actionable_status,
    authorize_transition,
    find_transition,
    stage_for_role,
)
