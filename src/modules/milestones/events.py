"""Domain events for the milestones bounded context."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional
from uuid import UUID

from shared.domain.events import DomainEvent


@dataclass(frozen=True)
class MilestoneStatusChanged(DomainEvent):
    """Raised after a milestone changes status (``aggregate_id`` is the milestone)."""

    order_id: Optional[UUID] = None
    step_key: str = ""
    from_status: str = ""
    to_status: str = ""
    actor_id: str = ""


@dataclass(frozen=True)
class MilestoneBlocked(DomainEvent):
    """Raised when a milestone is blocked, carrying the reason."""

    order_id: Optional[UUID] = None
    step_key: str = ""
    reason: str = ""


@dataclass(frozen=True)
class ScheduleRecalculated(DomainEvent):
    """Raised after a recalculation plan was applied (``aggregate_id`` is the order)."""

    mode: str = ""
    changed_count: int = 0
    delta_days: Optional[int] = None


@dataclass(frozen=True)
class DelayRequestDecided(DomainEvent):
    """Raised when a delay request is approved or rejected."""

    order_id: Optional[UUID] = None
    decision: str = ""
    decided_by: str = ""
