"""Order health traffic light and due-date predicates.

A milestone's deadline is the end of its due day in the configured
timezone.

- RED: any milestone blocked, or an in-progress milestone overdue.
- YELLOW: an in-progress milestone past its planned date, or due within
  ``MILESTONE_DUE_SOON_HOURS``.
- GREEN: otherwise (including an order with no milestones).
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Iterable, Optional

from django.conf import settings
from django.utils import timezone

from modules.milestones.constants import HealthColor, MilestoneStatus


@dataclass(frozen=True)
class OrderHealth:
    color: str
    reason: str


def deadline_of(day: date) -> datetime:
    return timezone.make_aware(datetime.combine(day + timedelta(days=1), time.min))


def is_overdue(milestone, now: datetime) -> bool:
    if milestone.status == MilestoneStatus.DONE:
        return False
    return now >= deadline_of(milestone.due_at)


def is_due_soon(milestone, now: datetime, hours: Optional[int] = None) -> bool:
    if milestone.status == MilestoneStatus.DONE:
        return False
    if hours is None:
        hours = settings.MILESTONE_DUE_SOON_HOURS
    remaining = deadline_of(milestone.due_at) - now
    return timedelta(0) < remaining <= timedelta(hours=hours)


def _names(milestones) -> str:
    return ", ".join(m.name for m in milestones)


def compute_order_health(
    milestones: Iterable,
    now: Optional[datetime] = None,
    due_soon_hours: Optional[int] = None,
) -> OrderHealth:
    milestones = list(milestones)
    if not milestones:
        return OrderHealth(HealthColor.GREEN, "No milestones")
    now = now or timezone.now()

    blocked = [m for m in milestones if m.status == MilestoneStatus.BLOCKED]
    if blocked:
        return OrderHealth(
            HealthColor.RED,
            f"{len(blocked)} milestone(s) blocked: {_names(blocked)}",
        )

    in_progress = [m for m in milestones if m.status == MilestoneStatus.IN_PROGRESS]
    overdue = [m for m in in_progress if is_overdue(m, now)]
    if overdue:
        return OrderHealth(
            HealthColor.RED,
            f"{len(overdue)} in-progress milestone(s) overdue: {_names(overdue)}",
        )

    at_risk = [
        m
        for m in in_progress
        if now >= deadline_of(m.planned_at) or is_due_soon(m, now, due_soon_hours)
    ]
    if at_risk:
        return OrderHealth(
            HealthColor.YELLOW,
            f"{len(at_risk)} milestone(s) approaching deadline: {_names(at_risk)}",
        )
    return OrderHealth(HealthColor.GREEN, "All milestones on track")
