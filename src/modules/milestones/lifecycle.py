"""Order close-out: completion and the cancel request workflow.

Business rules enforced:
- Only the order creator or an administrator completes an order or
  decides a cancel request.
- An order is completed only once it is activated and every milestone is
  ``done``; ``open_steps`` on the error lists what is outstanding.
- Anyone may request a cancellation while the order is open.  Approval
  closes the order as ``cancelled`` and appends ``Order cancelled: ...``
  to the notes of every milestone that is not done.
- A closed order cannot be completed, cancelled or requested for
  cancellation again.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, List, Optional

import structlog
from django.db import transaction
from django.utils import timezone

from modules.milestones.authorization import RoleAuthorizationPolicy
from modules.milestones.constants import LogAction
from modules.milestones.notes import append_note
from modules.orders.constants import CancelStatus, OrderOutcome
from modules.orders.events import CancelRequested, ExportOrderClosed
from modules.orders.exceptions import (
    CancelRequestAlreadyDecided,
    CancelRequestNotFound,
    ExportOrderNotFound,
    OrderActionNotAllowed,
    OrderClosed,
    OrderNotCompletable,
)
from shared.infrastructure.bus import event_bus

if TYPE_CHECKING:
    from modules.core.actors import Actor
    from modules.milestones.authorization import AuthorizationPolicy
    from modules.milestones.repositories.interfaces import IMilestoneRepository
    from modules.orders.dtos import CreateCancelRequestDTO
    from modules.orders.models import CancelRequest, ExportOrder
    from modules.orders.repositories.interfaces import (
        ICancelRequestRepository,
        IExportOrderRepository,
    )

logger = structlog.get_logger(__name__)

CANCELLED_NOTE_PREFIX = "Order cancelled: "


def _ensure_open(order: ExportOrder) -> None:
    if order.is_closed:
        raise OrderClosed(
            f"Order {order.order_number} is {order.outcome}.",
            outcome=order.outcome,
        )


class OrderLifecycleService:
    """Application service closing orders, by completion or cancellation."""

    def __init__(
        self,
        order_repository: IExportOrderRepository,
        milestone_repository: IMilestoneRepository,
        cancel_repository: ICancelRequestRepository,
        policy: Optional[AuthorizationPolicy] = None,
    ) -> None:
        self._order_repo = order_repository
        self._milestone_repo = milestone_repository
        self._cancel_repo = cancel_repository
        self._policy = policy or RoleAuthorizationPolicy()

    # ------------------------------------------------------------------
    # Completion
    # ------------------------------------------------------------------

    @transaction.atomic
    def complete_order(self, order_id, actor: Actor) -> ExportOrder:
        """Close the order as ``completed``.

        Raises:
            ExportOrderNotFound: the order does not exist.
            OrderClosed: the order is already completed or cancelled.
            OrderActionNotAllowed: actor is neither creator nor administrator.
            OrderNotCompletable: not activated, or milestones still open.
        """
        order = self._locked_order(order_id)
        _ensure_open(order)
        if not self._policy.can_manage_order(actor, order):
            raise OrderActionNotAllowed()
        if not order.is_activated:
            raise OrderNotCompletable(
                f"Order {order.order_number} has not been activated.", open_steps=[]
            )

        open_steps = [
            str(m.step_key)
            for m in self._milestone_repo.list_for_order(order.id)
            if not m.is_terminal
        ]
        if open_steps:
            raise OrderNotCompletable(
                f"{len(open_steps)} milestone(s) are not done yet.",
                open_steps=open_steps,
            )

        self._order_repo.mark_closed(order, OrderOutcome.COMPLETED)
        logger.info(
            "export_order.completed",
            order_id=str(order.id),
            actor_id=actor.user_id,
        )
        self._publish_closed(order, actor)
        return order

    # ------------------------------------------------------------------
    # Cancellation
    # ------------------------------------------------------------------

    @transaction.atomic
    def request_cancel(
        self, order_id, dto: CreateCancelRequestDTO, actor: Actor
    ) -> CancelRequest:
        order = self._locked_order(order_id)
        _ensure_open(order)

        cancel_request = self._cancel_repo.create(
            {
                "order": order,
                "requested_by": actor.user_id,
                "reason_type": dto.reason_type,
                "reason_detail": dto.reason_detail,
                "status": CancelStatus.PENDING,
            }
        )
        event = CancelRequested(
            aggregate_id=order.id,
            cancel_request_id=str(cancel_request.id),
            reason_type=str(dto.reason_type),
            requested_by=actor.user_id,
        )
        transaction.on_commit(lambda: event_bus.publish(event))
        return cancel_request

    @transaction.atomic
    def approve_cancel(self, request_id, actor: Actor, note: str = "") -> CancelRequest:
        """Approve a pending request and close the order as ``cancelled``.

        Raises:
            CancelRequestNotFound, CancelRequestAlreadyDecided,
            OrderActionNotAllowed, OrderClosed.
        """
        cancel_request = self._pending_request(request_id, actor)
        order = self._locked_order(cancel_request.order_id)
        _ensure_open(order)

        self._decide(cancel_request, actor, CancelStatus.APPROVED, note)
        self._order_repo.mark_closed(
            order,
            OrderOutcome.CANCELLED,
            reason=cancel_request.reason_detail,
            approved_by=actor.user_id,
        )

        cancelled_note = CANCELLED_NOTE_PREFIX + cancel_request.reason_detail
        frozen = 0
        for milestone in self._milestone_repo.list_for_order(order.id):
            if milestone.is_terminal:
                continue
            milestone.notes = append_note(milestone.notes, cancelled_note)
            self._milestone_repo.save(milestone)
            self._milestone_repo.add_log(
                milestone,
                actor,
                LogAction.UPDATE,
                note=cancelled_note,
                payload={"cancel_request_id": str(cancel_request.id)},
            )
            frozen += 1

        logger.info(
            "export_order.cancelled",
            order_id=str(order.id),
            cancel_request_id=str(cancel_request.id),
            open_milestones=frozen,
        )
        cancel_request.order = order
        self._publish_closed(order, actor)
        return cancel_request

    @transaction.atomic
    def reject_cancel(self, request_id, actor: Actor, note: str = "") -> CancelRequest:
        cancel_request = self._pending_request(request_id, actor)
        return self._decide(cancel_request, actor, CancelStatus.REJECTED, note)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_cancel_request(self, request_id) -> CancelRequest:
        cancel_request = self._cancel_repo.get_by_id(str(request_id))
        if cancel_request is None:
            raise CancelRequestNotFound(f"Cancel request {request_id} not found.")
        return cancel_request

    def list_cancel_requests(self, order_id) -> List[CancelRequest]:
        if self._order_repo.get_by_id(str(order_id)) is None:
            raise ExportOrderNotFound(f"Export order {order_id} not found.")
        return self._cancel_repo.list({"order_id": order_id})

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _locked_order(self, order_id) -> ExportOrder:
        order = self._order_repo.get_for_update(str(order_id))
        if order is None:
            raise ExportOrderNotFound(f"Export order {order_id} not found.")
        return order

    def _pending_request(self, request_id, actor: Actor) -> CancelRequest:
        cancel_request = self._cancel_repo.get_for_update(str(request_id))
        if cancel_request is None:
            raise CancelRequestNotFound(f"Cancel request {request_id} not found.")
        if cancel_request.status != CancelStatus.PENDING:
            raise CancelRequestAlreadyDecided(
                f"Cancel request {request_id} is already {cancel_request.status}.",
                status=cancel_request.status,
            )
        if not self._policy.can_manage_order(actor, cancel_request.order):
            raise OrderActionNotAllowed()
        return cancel_request

    def _decide(
        self, cancel_request: CancelRequest, actor: Actor, decision: str, note: str
    ) -> CancelRequest:
        cancel_request.status = decision
        cancel_request.decided_by = actor.user_id
        cancel_request.decided_at = timezone.now()
        cancel_request.decision_note = note or ""
        self._cancel_repo.save(cancel_request)
        logger.info(
            "cancel_request.decided",
            cancel_request_id=str(cancel_request.id),
            decision=str(decision),
            actor_id=actor.user_id,
        )
        return cancel_request

    def _publish_closed(self, order: ExportOrder, actor: Actor) -> None:
        event = ExportOrderClosed(
            aggregate_id=order.id, outcome=str(order.outcome), closed_by=actor.user_id
        )
        transaction.on_commit(lambda: event_bus.publish(event))
