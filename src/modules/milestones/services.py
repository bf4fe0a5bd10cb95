"""Milestone service layer: generation and the status state machine.

Business rules enforced by ``transition`` (in this order):
1. The order is not closed (completed or cancelled).
2. The actor is an administrator or holds the milestone's owner role.
3. Entering ``in_progress`` requires every required predecessor ``done``.
4. The transition is in ``VALID_TRANSITIONS`` (``done`` is terminal).
5. Blocking requires a reason.
6. Completing requires the step's documents (or one attachment when the
   step only sets ``evidence_required``).
7. Notes are updated, an audit entry is written and events are published
   after commit.
8. Completing a milestone auto-advances the earliest ``not_started``
   milestone of the order when its dependencies allow it.

The milestone row is re-read with ``SELECT ... FOR UPDATE`` inside the
transaction, so concurrent transitions on one milestone are serialized and
the later one is validated against the earlier one's result.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, List, Optional

import structlog
from django.db import transaction

from modules.core.actors import SYSTEM_ACTOR
from modules.milestones.authorization import RoleAuthorizationPolicy
from modules.milestones.catalog import templates_for
from modules.milestones.constants import LogAction, MilestoneStatus
from modules.milestones.dependencies import can_enter_in_progress
from modules.milestones.events import MilestoneBlocked, MilestoneStatusChanged
from modules.milestones.evidence import check_evidence
from modules.milestones.exceptions import (
    BlockedReasonRequired,
    DependencyNotMet,
    EvidenceMissing,
    InvalidTransition,
    MilestoneNotFound,
    NotAuthorized,
    OrderAlreadyActivated,
)
from modules.milestones.health import OrderHealth, compute_order_health
from modules.milestones.models import Milestone
from modules.milestones.notes import append_note, format_blocked_reason
from modules.milestones.scheduling import ScheduleInput, compute_dates
from modules.orders.events import ExportOrderActivated
from modules.orders.exceptions import ExportOrderNotFound, OrderClosed
from shared.infrastructure.bus import event_bus

if TYPE_CHECKING:
    from modules.core.actors import Actor
    from modules.milestones.authorization import AuthorizationPolicy
    from modules.milestones.dtos import RegisterEvidenceDTO
    from modules.milestones.models import EvidenceAttachment, MilestoneLog
    from modules.milestones.repositories.interfaces import IMilestoneRepository
    from modules.orders.repositories.interfaces import IExportOrderRepository

logger = structlog.get_logger(__name__)


def _action_for(from_status: str, to_status: str) -> str:
    if to_status == MilestoneStatus.DONE:
        return LogAction.MARK_DONE
    if to_status == MilestoneStatus.BLOCKED:
        return LogAction.MARK_BLOCKED
    if from_status == MilestoneStatus.BLOCKED:
        return LogAction.UNBLOCK
    return LogAction.MARK_IN_PROGRESS


class MilestoneService:
    """Application service for milestone use-cases.

    Receives repositories and the authorization policy via constructor
    injection.
    """

    def __init__(
        self,
        milestone_repository: IMilestoneRepository,
        order_repository: IExportOrderRepository,
        policy: Optional[AuthorizationPolicy] = None,
    ) -> None:
        self._milestone_repo = milestone_repository
        self._order_repo = order_repository
        self._policy = policy or RoleAuthorizationPolicy()

    # ------------------------------------------------------------------
    # Generation
    # ------------------------------------------------------------------

    @transaction.atomic
    def activate_order(self, order_id, actor: Actor) -> List[Milestone]:
        """Generate the order's milestone set and start the earliest milestone
        whose dependency gate passes.

        Raises:
            ExportOrderNotFound: the order does not exist.
            OrderAlreadyActivated: milestones were generated before.
            MissingAnchorDate: the trade term's anchor date is missing.
        """
        order = self._order_repo.get_for_update(str(order_id))
        if order is None:
            raise ExportOrderNotFound(f"Export order {order_id} not found.")
        if order.is_activated or self._milestone_repo.has_milestones(order.id):
            raise OrderAlreadyActivated(
                f"Order {order.order_number} already has milestones."
            )

        log = logger.bind(order_id=str(order.id), actor_id=actor.user_id)
        schedule_input = ScheduleInput.from_order(order)
        templates = templates_for(schedule_input)
        dates = compute_dates(schedule_input, templates)

        milestones = self._milestone_repo.create_many(
            [
                Milestone(
                    order=order,
                    step_key=template.step_key,
                    name=template.name,
                    sequence=index,
                    owner_role=template.role,
                    planned_at=dates[template.step_key].planned_at,
                    due_at=dates[template.step_key].due_at,
                    is_required=template.required,
                    is_critical=template.critical,
                    evidence_required=template.evidence_required,
                    predecessor_keys=[str(p) for p in template.predecessors],
                )
                for index, template in enumerate(templates)
            ]
        )
        for milestone in milestones:
            self._milestone_repo.add_log(
                milestone,
                actor,
                LogAction.CREATE,
                to_status=milestone.status,
                note=f"Generated {milestone.step_key} due {milestone.due_at.isoformat()}",
            )

        # a tight schedule can put a dependent step before po_confirmed
        startable = [m for m in milestones if can_enter_in_progress(m, milestones).allowed]
        first = min(startable, key=lambda m: (m.due_at, m.sequence))
        first.status = MilestoneStatus.IN_PROGRESS
        self._milestone_repo.save(first)
        self._milestone_repo.add_log(
            first,
            actor,
            LogAction.MARK_IN_PROGRESS,
            from_status=MilestoneStatus.NOT_STARTED,
            to_status=MilestoneStatus.IN_PROGRESS,
            note="Order activated",
        )
        self._order_repo.mark_activated(order)

        log.info(
            "export_order.activated",
            milestone_count=len(milestones),
            first_step=str(first.step_key),
        )
        event = ExportOrderActivated(aggregate_id=order.id, milestone_count=len(milestones))
        transaction.on_commit(lambda: event_bus.publish(event))
        return sorted(milestones, key=lambda m: (m.due_at, m.sequence))

    # ------------------------------------------------------------------
    # State machine
    # ------------------------------------------------------------------

    @transaction.atomic
    def transition(
        self,
        milestone_id,
        target_status: str,
        actor: Actor,
        note: Optional[str] = None,
    ) -> Milestone:
        """Move a milestone to ``target_status``.

        Raises:
            MilestoneNotFound: the milestone does not exist.
            OrderClosed: the order is completed or cancelled.
            NotAuthorized: actor is not admin and not in the owner role.
            DependencyNotMet: a required predecessor is not done.
            InvalidTransition: the state machine forbids the move.
            BlockedReasonRequired: blocking without a reason.
            EvidenceMissing: required documents are missing.
        """
        milestone = self._milestone_repo.get_for_update(str(milestone_id))
        if milestone is None:
            raise MilestoneNotFound(f"Milestone {milestone_id} not found.")
        if milestone.order.is_closed:
            raise OrderClosed(
                f"Order {milestone.order.order_number} is {milestone.order.outcome}.",
                outcome=milestone.order.outcome,
            )

        from_status = milestone.status
        log = logger.bind(
            milestone_id=str(milestone.id),
            step_key=str(milestone.step_key),
            actor_id=actor.user_id,
        )

        if not self._policy.can_operate(actor, milestone):
            log.warning("milestone.transition_denied", actor_role=actor.role)
            raise NotAuthorized(
                f"Role {actor.role or '-'} cannot operate {milestone.step_key} "
                f"(owner role {milestone.owner_role}).",
                owner_role=milestone.owner_role,
            )

        if target_status == MilestoneStatus.IN_PROGRESS:
            siblings = self._milestone_repo.list_for_order(milestone.order_id)
            gate = can_enter_in_progress(milestone, siblings)
            if not gate.allowed:
                raise DependencyNotMet(
                    f"{milestone.step_key} is waiting for {gate.blocking_step_key}.",
                    blocking_step_key=gate.blocking_step_key,
                )

        if target_status not in MilestoneStatus.values or not milestone.can_transition_to(
            target_status
        ):
            raise InvalidTransition(
                f"Cannot move {milestone.step_key} from {from_status} to {target_status}.",
                from_status=from_status,
                to_status=target_status,
                allowed=milestone.allowed_transitions(),
            )

        reason = (note or "").strip()
        if target_status == MilestoneStatus.BLOCKED and not reason:
            raise BlockedReasonRequired()

        if target_status == MilestoneStatus.DONE:
            evidence = check_evidence(
                milestone.step_key,
                milestone.evidence_required,
                self._milestone_repo.document_types_for(milestone.id),
            )
            if not evidence.satisfied:
                detail = (
                    "Missing required documents: " + ", ".join(evidence.missing)
                    if evidence.missing
                    else "At least one evidence attachment is required."
                )
                raise EvidenceMissing(detail, missing_documents=list(evidence.missing))

        if target_status == MilestoneStatus.BLOCKED:
            milestone.notes = format_blocked_reason(reason, milestone.notes)
        elif reason:
            milestone.notes = append_note(milestone.notes, reason)
        milestone.status = target_status
        self._milestone_repo.save(milestone)

        self._milestone_repo.add_log(
            milestone,
            actor,
            _action_for(from_status, target_status),
            from_status=from_status,
            to_status=target_status,
            note=reason,
        )
        log.info(
            "milestone.transitioned",
            from_status=str(from_status),
            to_status=str(target_status),
        )
        self._publish_status_changed(milestone, from_status, actor, reason)

        if target_status == MilestoneStatus.DONE:
            self._auto_advance(milestone)
        return milestone

    def mark_in_progress(self, milestone_id, actor: Actor, note: Optional[str] = None) -> Milestone:
        return self.transition(milestone_id, MilestoneStatus.IN_PROGRESS, actor, note)

    def mark_done(self, milestone_id, actor: Actor, note: Optional[str] = None) -> Milestone:
        return self.transition(milestone_id, MilestoneStatus.DONE, actor, note)

    def mark_blocked(self, milestone_id, actor: Actor, reason: str) -> Milestone:
        return self.transition(milestone_id, MilestoneStatus.BLOCKED, actor, reason)

    def unblock(self, milestone_id, actor: Actor, note: Optional[str] = None) -> Milestone:
        """Blocked -> in progress; other states are rejected."""
        milestone = self.get_milestone(milestone_id)
        if milestone.status != MilestoneStatus.BLOCKED:
            raise InvalidTransition(
                f"{milestone.step_key} is not blocked.",
                from_status=milestone.status,
                to_status=MilestoneStatus.IN_PROGRESS,
                allowed=milestone.allowed_transitions(),
            )
        return self.transition(milestone_id, MilestoneStatus.IN_PROGRESS, actor, note)

    # ------------------------------------------------------------------
    # Other commands
    # ------------------------------------------------------------------

    @transaction.atomic
    def assign_owner(self, milestone_id, owner_user_id: str, actor: Actor) -> Milestone:
        """Assign an individual owner (administrators only)."""
        if not self._policy.is_admin(actor):
            raise NotAuthorized("Only administrators can assign milestone owners.")
        milestone = self._milestone_repo.get_for_update(str(milestone_id))
        if milestone is None:
            raise MilestoneNotFound(f"Milestone {milestone_id} not found.")

        previous = milestone.owner_user_id
        milestone.owner_user_id = owner_user_id
        self._milestone_repo.save(milestone)
        self._milestone_repo.add_log(
            milestone,
            actor,
            LogAction.UPDATE,
            note=f"Owner assigned: {owner_user_id or '-'}",
            payload={"owner_user_id": owner_user_id, "previous_owner_user_id": previous},
        )
        logger.info(
            "milestone.owner_assigned",
            milestone_id=str(milestone.id),
            owner_user_id=owner_user_id,
        )
        return milestone

    @transaction.atomic
    def register_evidence(
        self, milestone_id, dto: RegisterEvidenceDTO, actor: Actor
    ) -> EvidenceAttachment:
        """Record metadata of a document uploaded to the external store."""
        milestone = self.get_milestone(milestone_id)
        if not self._policy.can_operate(actor, milestone):
            raise NotAuthorized(
                f"Role {actor.role or '-'} cannot upload evidence for {milestone.step_key}.",
                owner_role=milestone.owner_role,
            )
        attachment = self._milestone_repo.add_attachment(
            milestone,
            {
                "document_type": dto.document_type,
                "file_name": dto.file_name,
                "file_url": dto.file_url,
                "uploaded_by": actor.user_id,
            },
        )
        self._milestone_repo.add_log(
            milestone,
            actor,
            LogAction.UPLOAD_EVIDENCE,
            note=f"{dto.document_type}: {dto.file_name}",
            payload={
                "attachment_id": str(attachment.id),
                "document_type": str(dto.document_type),
            },
        )
        return attachment

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_milestone(self, milestone_id) -> Milestone:
        milestone = self._milestone_repo.get_by_id(str(milestone_id))
        if milestone is None:
            raise MilestoneNotFound(f"Milestone {milestone_id} not found.")
        return milestone

    def list_for_order(self, order_id) -> List[Milestone]:
        if self._order_repo.get_by_id(str(order_id)) is None:
            raise ExportOrderNotFound(f"Export order {order_id} not found.")
        return self._milestone_repo.list_for_order(order_id)

    def list_for_owner(self, owner_user_id: str) -> List[Milestone]:
        """Worklist of milestones assigned to ``owner_user_id``, by due date."""
        return self._milestone_repo.list_for_owner(owner_user_id)

    def logs_for(self, milestone_id) -> List[MilestoneLog]:
        milestone = self.get_milestone(milestone_id)
        return self._milestone_repo.logs_for(milestone.id)

    def order_health(self, order_id, now: Optional[datetime] = None) -> OrderHealth:
        return compute_order_health(self.list_for_order(order_id), now=now)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _auto_advance(self, completed: Milestone) -> Optional[Milestone]:
        siblings = self._milestone_repo.list_for_order(completed.order_id)
        candidates = [m for m in siblings if m.status == MilestoneStatus.NOT_STARTED]
        if not candidates:
            return None
        nxt = min(candidates, key=lambda m: (m.due_at, m.sequence))

        gate = can_enter_in_progress(nxt, siblings)
        if not gate.allowed:
            logger.info(
                "milestone.auto_advance_skipped",
                milestone_id=str(nxt.id),
                step_key=str(nxt.step_key),
                blocking_step_key=gate.blocking_step_key,
            )
            return None

        note = f"Started automatically after {completed.step_key} was completed"
        nxt.status = MilestoneStatus.IN_PROGRESS
        nxt.notes = append_note(nxt.notes, note)
        self._milestone_repo.save(nxt)
        self._milestone_repo.add_log(
            nxt,
            SYSTEM_ACTOR,
            LogAction.AUTO_ADVANCE,
            from_status=MilestoneStatus.NOT_STARTED,
            to_status=MilestoneStatus.IN_PROGRESS,
            note=note,
        )
        logger.info(
            "milestone.auto_advanced",
            milestone_id=str(nxt.id),
            step_key=str(nxt.step_key),
            after=str(completed.step_key),
        )
        self._publish_status_changed(nxt, MilestoneStatus.NOT_STARTED, SYSTEM_ACTOR, note)
        return nxt

    def _publish_status_changed(
        self, milestone: Milestone, from_status: str, actor: Actor, reason: str
    ) -> None:
        events = [
            MilestoneStatusChanged(
                aggregate_id=milestone.id,
                order_id=milestone.order_id,
                step_key=str(milestone.step_key),
                from_status=str(from_status),
                to_status=str(milestone.status),
                actor_id=actor.user_id,
            )
        ]
        if milestone.status == MilestoneStatus.BLOCKED:
            events.append(
                MilestoneBlocked(
                    aggregate_id=milestone.id,
                    order_id=milestone.order_id,
                    step_key=str(milestone.step_key),
                    reason=reason,
                )
            )
        for event in events:
            transaction.on_commit(lambda e=event: event_bus.publish(e))
