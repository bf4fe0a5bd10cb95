"""Delay request workflow.

A delay request proposes either a new anchor date for the order or a new
due date for one milestone.  It starts ``pending``; the order's creator or
an administrator approves or rejects it.  Approval runs the recalculation
engine inside the same transaction.

Requests cannot be raised on a closed order.

Log actions: ``request_delay`` on creation, ``approve_delay`` followed by
``recalc_schedule`` on approval, ``reject_delay`` on rejection.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, List, Optional

import structlog
from django.db import transaction
from django.utils import timezone

from modules.milestones.authorization import RoleAuthorizationPolicy
from modules.milestones.constants import DelayStatus, LogAction
from modules.milestones.dtos import ImpactedMilestoneDTO
from modules.milestones.events import DelayRequestDecided
from modules.milestones.exceptions import (
    DelayDecisionNotAllowed,
    DelayRequestAlreadyDecided,
    DelayRequestNotFound,
    MilestoneNotFound,
)
from modules.orders.exceptions import OrderClosed
from shared.infrastructure.bus import event_bus

if TYPE_CHECKING:
    from modules.core.actors import Actor
    from modules.milestones.authorization import AuthorizationPolicy
    from modules.milestones.dtos import CreateDelayRequestDTO
    from modules.milestones.models import DelayRequest
    from modules.milestones.recalculation import (
        DateChange,
        RecalculationResult,
        ScheduleRecalculator,
    )
    from modules.milestones.repositories.interfaces import (
        IDelayRequestRepository,
        IMilestoneRepository,
    )

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class DelayApproval:
    delay_request: DelayRequest
    recalculation: RecalculationResult


class DelayRequestService:
    """Application service for delay requests."""

    def __init__(
        self,
        delay_repository: IDelayRequestRepository,
        milestone_repository: IMilestoneRepository,
        recalculator: ScheduleRecalculator,
        policy: Optional[AuthorizationPolicy] = None,
    ) -> None:
        self._delay_repo = delay_repository
        self._milestone_repo = milestone_repository
        self._recalculator = recalculator
        self._policy = policy or RoleAuthorizationPolicy()

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    @transaction.atomic
    def create_request(self, dto: CreateDelayRequestDTO, actor: Actor) -> DelayRequest:
        milestone = self._milestone_repo.get_by_id(str(dto.milestone_id))
        if milestone is None:
            raise MilestoneNotFound(f"Milestone {dto.milestone_id} not found.")
        if milestone.order.is_closed:
            raise OrderClosed(
                f"Order {milestone.order.order_number} is {milestone.order.outcome}.",
                outcome=milestone.order.outcome,
            )

        delay_request = self._delay_repo.create(
            {
                "order_id": milestone.order_id,
                "milestone": milestone,
                "requested_by": actor.user_id,
                "reason_type": dto.reason_type,
                "reason_detail": dto.reason_detail,
                "proposed_new_anchor_date": dto.proposed_new_anchor_date,
                "proposed_new_due_date": dto.proposed_new_due_date,
                "requires_customer_approval": dto.requires_customer_approval,
                "customer_approval_evidence_url": dto.customer_approval_evidence_url,
                "status": DelayStatus.PENDING,
            }
        )
        self._milestone_repo.add_log(
            milestone,
            actor,
            LogAction.REQUEST_DELAY,
            note=dto.reason_detail,
            payload={
                "delay_request_id": str(delay_request.id),
                "reason_type": str(dto.reason_type),
            },
        )
        return delay_request

    @transaction.atomic
    def approve(self, request_id, actor: Actor, note: str = "") -> DelayApproval:
        """Approve a pending request and recalculate the schedule.

        Raises:
            DelayRequestNotFound, DelayRequestAlreadyDecided,
            DelayDecisionNotAllowed, RecalculationPartialFailure.
        """
        delay_request = self._decide(request_id, actor, DelayStatus.APPROVED, note)
        milestone = delay_request.milestone
        self._milestone_repo.add_log(
            milestone,
            actor,
            LogAction.APPROVE_DELAY,
            note=note,
            payload={"delay_request_id": str(delay_request.id)},
        )

        if delay_request.is_anchor_change:
            result = self._recalculator.recalculate_from_anchor(
                delay_request.order,
                delay_request.proposed_new_anchor_date,
                milestone,
                actor,
            )
        else:
            result = self._recalculator.shift_from_milestone(
                milestone, delay_request.proposed_new_due_date, actor
            )
        return DelayApproval(delay_request=delay_request, recalculation=result)

    @transaction.atomic
    def reject(self, request_id, actor: Actor, note: str = "") -> DelayRequest:
        delay_request = self._decide(request_id, actor, DelayStatus.REJECTED, note)
        self._milestone_repo.add_log(
            delay_request.milestone,
            actor,
            LogAction.REJECT_DELAY,
            note=note,
            payload={"delay_request_id": str(delay_request.id)},
        )
        return delay_request

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_request(self, request_id) -> DelayRequest:
        delay_request = self._delay_repo.get_by_id(str(request_id))
        if delay_request is None:
            raise DelayRequestNotFound(f"Delay request {request_id} not found.")
        return delay_request

    def list_requests(self, filters=None) -> List[DelayRequest]:
        return self._delay_repo.list(filters)

    def preview_impact(self, request_id) -> List[ImpactedMilestoneDTO]:
        """Milestones the request would move, without writing anything."""
        delay_request = self.get_request(request_id)
        plan: tuple[DateChange, ...]
        if delay_request.is_anchor_change:
            plan = self._recalculator.plan_for_anchor(
                delay_request.order, delay_request.proposed_new_anchor_date
            )
        else:
            plan = self._recalculator.plan_for_shift(
                delay_request.milestone, delay_request.proposed_new_due_date
            )
        return [ImpactedMilestoneDTO.from_change(c) for c in plan if not c.is_noop]

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _decide(self, request_id, actor: Actor, decision: str, note: str) -> DelayRequest:
        delay_request = self._delay_repo.get_for_update(str(request_id))
        if delay_request is None:
            raise DelayRequestNotFound(f"Delay request {request_id} not found.")
        if delay_request.status != DelayStatus.PENDING:
            raise DelayRequestAlreadyDecided(
                f"Delay request {request_id} is already {delay_request.status}.",
                status=delay_request.status,
            )
        if not self._policy.can_decide_delay(actor, delay_request.order):
            raise DelayDecisionNotAllowed()

        delay_request.status = decision
        delay_request.decided_by = actor.user_id
        delay_request.decided_at = timezone.now()
        delay_request.decision_note = note or ""
        self._delay_repo.save(delay_request)

        logger.info(
            "delay_request.decided",
            delay_request_id=str(delay_request.id),
            decision=str(decision),
            actor_id=actor.user_id,
        )
        event = DelayRequestDecided(
            aggregate_id=delay_request.id,
            order_id=delay_request.order_id,
            decision=str(decision),
            decided_by=actor.user_id,
        )
        transaction.on_commit(lambda: event_bus.publish(event))
        return delay_request
