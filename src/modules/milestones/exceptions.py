"""Milestone domain exceptions.

Raised by the scheduling, state-machine, delay and recalculation layers.
Each carries a stable ``code`` plus structured fields that the API layer
copies into the error body (``allowed``, ``blocking_step_key``,
``missing_documents``, ``failed_milestone_id``...).
"""

from __future__ import annotations

from modules.core.exceptions import DomainError


class MilestoneError(DomainError):
    """Base class for milestone rule violations."""

    code = "milestone_error"


class MissingAnchorDate(MilestoneError):
    """The order lacks the anchor date its trade term requires."""

    code = "missing_anchor_date"
    default_detail = "The order has no anchor date for its trade term."


class MilestoneNotFound(MilestoneError):
    code = "milestone_not_found"
    default_detail = "Milestone not found."


class OrderAlreadyActivated(MilestoneError):
    """Milestones are generated once per order."""

    code = "order_already_activated"
    default_detail = "The order already has milestones."


class NotAuthorized(MilestoneError):
    """Actor is neither an administrator nor in the milestone's role."""

    code = "not_authorized"
    default_detail = "You are not allowed to operate this milestone."


class InvalidTransition(MilestoneError):
    """Transition not in the state machine; ``allowed`` lists valid targets."""

    code = "invalid_transition"


class DependencyNotMet(MilestoneError):
    """A required predecessor is not done; ``blocking_step_key`` names it."""

    code = "dependency_not_met"


class EvidenceMissing(MilestoneError):
    """Required documents are missing; ``missing_documents`` lists them."""

    code = "evidence_missing"


class BlockedReasonRequired(MilestoneError):
    code = "blocked_reason_required"
    default_detail = "A reason is required to block a milestone."


class DelayRequestNotFound(MilestoneError):
    code = "delay_request_not_found"
    default_detail = "Delay request not found."


class InvalidDelayRequest(MilestoneError):
    code = "invalid_delay_request"


class DelayRequestAlreadyDecided(MilestoneError):
    code = "delay_request_already_decided"
    default_detail = "The delay request has already been decided."


class DelayDecisionNotAllowed(MilestoneError):
    """Only the order creator or an administrator decides delay requests."""

    code = "delay_decision_not_allowed"
    default_detail = "Only the order creator or an administrator can decide this request."


class RecalculationPartialFailure(MilestoneError):
    """A recalculation batch stopped partway.

    Changes ``plan[:failed_index]`` are applied; resume with
    ``apply_plan(plan, start_index=failed_index)``.
    """

    code = "recalculation_partial_failure"

    def __init__(self, failed_milestone_id, failed_index: int, applied, plan) -> None:
        super().__init__(
            f"Recalculation failed at milestone {failed_milestone_id} "
            f"({failed_index} of {len(plan)} changes applied).",
            failed_milestone_id=str(failed_milestone_id),
            failed_index=failed_index,
        )
        self.failed_milestone_id = failed_milestone_id
        self.failed_index = failed_index
        self.applied = applied
        self.plan = plan
