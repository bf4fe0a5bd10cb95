"""Asynchronous tasks of the milestones module."""

from __future__ import annotations

from datetime import datetime
from typing import Dict, Optional

import structlog
from celery import shared_task
from django.utils import timezone

from modules.milestones.constants import MilestoneStatus, ReminderKind
from modules.milestones.health import is_due_soon, is_overdue
from modules.milestones.repositories.django_repository import MilestoneDjangoRepository
from modules.milestones.repositories.interfaces import IMilestoneRepository

logger = structlog.get_logger(__name__)


def record_due_reminders(
    repository: IMilestoneRepository, now: Optional[datetime] = None
) -> Dict[str, int]:
    """Record one reminder per open milestone that is overdue or due soon.

    Reminders are unique per milestone, kind and due date, so re-running
    the scan creates nothing new until a due date moves.
    """
    now = now or timezone.now()
    created = {ReminderKind.DUE_SOON.value: 0, ReminderKind.OVERDUE.value: 0}
    open_milestones = repository.list(
        {"status__in": [MilestoneStatus.NOT_STARTED, MilestoneStatus.IN_PROGRESS, MilestoneStatus.BLOCKED]}
    )
    for milestone in open_milestones:
        if is_overdue(milestone, now):
            kind = ReminderKind.OVERDUE
        elif is_due_soon(milestone, now):
            kind = ReminderKind.DUE_SOON
        else:
            continue
        if repository.record_reminder(milestone, kind):
            created[kind.value] += 1
    return created


@shared_task(name="milestones.scan_due_milestones")
def scan_due_milestones() -> Dict[str, int]:
    """Periodic scan feeding the external reminder/escalation process."""
    created = record_due_reminders(MilestoneDjangoRepository())
    logger.info("milestones.reminder_scan_completed", **created)
    return created
