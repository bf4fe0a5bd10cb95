"""Django ORM implementations of the milestone repositories."""

from __future__ import annotations

from datetime import date
from typing import Any, Dict, List, Optional, Sequence

import structlog
from django.core.exceptions import ValidationError
from django.db import transaction

from modules.core.actors import Actor
from modules.milestones.exceptions import MilestoneNotFound
from modules.milestones.models import (
    DelayRequest,
    EvidenceAttachment,
    Milestone,
    MilestoneLog,
    MilestoneReminder,
)
from modules.milestones.repositories.interfaces import (
    IDelayRequestRepository,
    IMilestoneRepository,
)

logger = structlog.get_logger(__name__)


class MilestoneDjangoRepository(IMilestoneRepository):
    """Concrete milestone repository backed by Django ORM."""

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def get_by_id(self, id: str) -> Optional[Milestone]:
        """Returns ``None`` for non-existent or malformed IDs."""
        try:
            return Milestone.objects.select_related("order").filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def get_for_update(self, id: str) -> Optional[Milestone]:
        try:
            return (
                Milestone.objects.select_for_update()
                .select_related("order")
                .filter(id=id)
                .first()
            )
        except (ValueError, ValidationError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[Milestone]:
        queryset = Milestone.objects.select_related("order")
        if filters:
            queryset = queryset.filter(**filters)
        return list(queryset)

    def list_for_order(self, order_id: Any) -> List[Milestone]:
        return list(
            Milestone.objects.filter(order_id=order_id).order_by("due_at", "sequence")
        )

    def list_for_owner(self, owner_user_id: str) -> List[Milestone]:
        return list(
            Milestone.objects.select_related("order")
            .filter(owner_user_id=owner_user_id)
            .order_by("due_at", "sequence")
        )

    def has_milestones(self, order_id: Any) -> bool:
        return Milestone.objects.filter(order_id=order_id).exists()

    def logs_for(self, milestone_id: Any) -> List[MilestoneLog]:
        return list(MilestoneLog.objects.filter(milestone_id=milestone_id))

    def document_types_for(self, milestone_id: Any) -> List[str]:
        return list(
            EvidenceAttachment.objects.filter(milestone_id=milestone_id).values_list(
                "document_type", flat=True
            )
        )

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    def save(self, entity: Milestone) -> Milestone:
        entity.save()
        return entity

    @transaction.atomic
    def create_many(self, milestones: Sequence[Milestone]) -> List[Milestone]:
        for milestone in milestones:
            milestone.save()
        return list(milestones)

    def update_dates(self, milestone_id: Any, planned_at: date, due_at: date) -> Milestone:
        milestone = self.get_by_id(str(milestone_id))
        if milestone is None:
            raise MilestoneNotFound(f"Milestone {milestone_id} not found.")
        milestone.planned_at = planned_at
        milestone.due_at = due_at
        milestone.save(update_fields=["planned_at", "due_at"])
        return milestone

    def add_log(
        self,
        milestone: Milestone,
        actor: Actor,
        action: str,
        from_status: Optional[str] = None,
        to_status: Optional[str] = None,
        note: str = "",
        payload: Optional[Dict[str, Any]] = None,
    ) -> MilestoneLog:
        entry = MilestoneLog.objects.create(
            milestone=milestone,
            order_id=milestone.order_id,
            actor_id=actor.user_id,
            actor_role=actor.role,
            action=action,
            from_status=from_status,
            to_status=to_status,
            note=note or "",
            payload=payload,
        )
        logger.info(
            "milestone.log_added",
            milestone_id=str(milestone.id),
            action=str(action),
            actor_id=actor.user_id,
        )
        return entry

    def add_attachment(self, milestone: Milestone, data: Dict[str, Any]) -> EvidenceAttachment:
        return EvidenceAttachment.objects.create(
            milestone=milestone, order_id=milestone.order_id, **data
        )

    def record_reminder(self, milestone: Milestone, kind: str) -> bool:
        _, created = MilestoneReminder.objects.get_or_create(
            milestone=milestone, kind=kind, due_at=milestone.due_at
        )
        return created


class DelayRequestDjangoRepository(IDelayRequestRepository):
    """Concrete delay-request repository backed by Django ORM."""

    def create(self, data: Dict[str, Any]) -> DelayRequest:
        request = DelayRequest.objects.create(**data)
        logger.info(
            "delay_request.created",
            delay_request_id=str(request.id),
            milestone_id=str(request.milestone_id),
        )
        return request

    def get_by_id(self, id: str) -> Optional[DelayRequest]:
        try:
            return (
                DelayRequest.objects.select_related("order", "milestone")
                .filter(id=id)
                .first()
            )
        except (ValueError, ValidationError):
            return None

    def get_for_update(self, id: str) -> Optional[DelayRequest]:
        try:
            return (
                DelayRequest.objects.select_for_update()
                .select_related("order", "milestone")
                .filter(id=id)
                .first()
            )
        except (ValueError, ValidationError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[DelayRequest]:
        queryset = DelayRequest.objects.select_related("order", "milestone")
        if filters:
            queryset = queryset.filter(**filters)
        return list(queryset)

    def save(self, entity: DelayRequest) -> DelayRequest:
        entity.save()
        return entity
