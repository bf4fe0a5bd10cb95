"""Delay recalculation engine.

Two modes:

- **anchor**: the order's anchor date changes; every milestone gets the
  dates of a fresh ``compute_dates`` run against the new anchor.
- **shift**: one milestone gets a new due date; every other milestone due
  on or after the target's *original* due date moves by the same number of
  calendar days.  Earlier milestones are untouched.

Recalculation first builds a plan of absolute ``DateChange`` values from
the state before any write, then applies it row by row.  Re-applying a
change is harmless, so after a ``RecalculationPartialFailure`` the plan can
be resumed from ``failed_index``.  Statuses are never touched.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from typing import TYPE_CHECKING, Any, List, Optional, Sequence, Tuple

import structlog
from django.db import transaction

from modules.milestones.catalog import templates_for
from modules.milestones.constants import LogAction
from modules.milestones.events import ScheduleRecalculated
from modules.milestones.exceptions import RecalculationPartialFailure
from modules.milestones.scheduling import ScheduleInput, compute_dates
from shared.infrastructure.bus import event_bus

if TYPE_CHECKING:
    from modules.core.actors import Actor
    from modules.milestones.repositories.interfaces import IMilestoneRepository
    from modules.orders.repositories.interfaces import IExportOrderRepository

logger = structlog.get_logger(__name__)

MODE_ANCHOR = "anchor"
MODE_SHIFT = "shift"


@dataclass(frozen=True)
class DateChange:
    milestone_id: Any
    step_key: str
    old_planned_at: date
    old_due_at: date
    new_planned_at: date
    new_due_at: date

    @property
    def delta_days(self) -> int:
        return (self.new_due_at - self.old_due_at).days

    @property
    def is_noop(self) -> bool:
        return (
            self.old_due_at == self.new_due_at
            and self.old_planned_at == self.new_planned_at
        )


@dataclass(frozen=True)
class RecalculationResult:
    mode: str
    plan: Tuple[DateChange, ...]
    updated: List[Any]
    note: str
    delta_days: Optional[int] = None
    new_anchor_date: Optional[date] = None


# ---------------------------------------------------------------------------
# Planning (pure)
# ---------------------------------------------------------------------------


def plan_anchor_change(
    order: ScheduleInput, milestones: Sequence, new_anchor: date
) -> Tuple[DateChange, ...]:
    """Changes that bring every milestone to a fresh schedule on ``new_anchor``."""
    fresh = order.with_anchor(new_anchor)
    dates = compute_dates(fresh, templates_for(fresh))
    changes = []
    for milestone in milestones:
        scheduled = dates.get(milestone.step_key)
        if scheduled is None:
            continue
        changes.append(
            DateChange(
                milestone_id=milestone.id,
                step_key=milestone.step_key,
                old_planned_at=milestone.planned_at,
                old_due_at=milestone.due_at,
                new_planned_at=scheduled.planned_at,
                new_due_at=scheduled.due_at,
            )
        )
    return tuple(changes)


def plan_due_date_shift(
    target, milestones: Sequence, new_due: date
) -> Tuple[DateChange, ...]:
    """Target moves to ``new_due``; later-or-equal milestones move by the same delta."""
    original_due = target.due_at
    delta = timedelta(days=(new_due - original_due).days)
    changes = [
        DateChange(
            milestone_id=target.id,
            step_key=target.step_key,
            old_planned_at=target.planned_at,
            old_due_at=original_due,
            new_planned_at=new_due,
            new_due_at=new_due,
        )
    ]
    for milestone in milestones:
        if milestone.id == target.id or milestone.due_at < original_due:
            continue
        changes.append(
            DateChange(
                milestone_id=milestone.id,
                step_key=milestone.step_key,
                old_planned_at=milestone.planned_at,
                old_due_at=milestone.due_at,
                new_planned_at=milestone.planned_at + delta,
                new_due_at=milestone.due_at + delta,
            )
        )
    return tuple(changes)


# ---------------------------------------------------------------------------
# Applying
# ---------------------------------------------------------------------------


def apply_plan(
    plan: Sequence[DateChange], repository: IMilestoneRepository, start_index: int = 0
) -> List[Any]:
    """Write ``plan[start_index:]`` one row at a time.

    Raises:
        RecalculationPartialFailure: a row failed; earlier rows stay written.
    """
    applied: List[Any] = []
    for index in range(start_index, len(plan)):
        change = plan[index]
        try:
            applied.append(
                repository.update_dates(
                    change.milestone_id, change.new_planned_at, change.new_due_at
                )
            )
        except Exception as exc:
            logger.error(
                "schedule.recalculation_failed",
                milestone_id=str(change.milestone_id),
                failed_index=index,
                error=str(exc),
            )
            raise RecalculationPartialFailure(
                change.milestone_id, index, applied, tuple(plan)
            ) from exc
    return applied


class ScheduleRecalculator:
    """Plans, applies and records schedule recalculations for one order."""

    def __init__(
        self,
        milestone_repository: IMilestoneRepository,
        order_repository: IExportOrderRepository,
    ) -> None:
        self._milestone_repo = milestone_repository
        self._order_repo = order_repository

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def plan_for_anchor(self, order, new_anchor: date) -> Tuple[DateChange, ...]:
        milestones = self._milestone_repo.list_for_order(order.id)
        return plan_anchor_change(ScheduleInput.from_order(order), milestones, new_anchor)

    def plan_for_shift(self, target, new_due: date) -> Tuple[DateChange, ...]:
        milestones = self._milestone_repo.list_for_order(target.order_id)
        return plan_due_date_shift(target, milestones, new_due)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def recalculate_from_anchor(
        self, order, new_anchor: date, log_milestone, actor: Actor
    ) -> RecalculationResult:
        """Move the order's anchor and regenerate every milestone date."""
        plan = self.plan_for_anchor(order, new_anchor)
        self._order_repo.update_anchor(order, new_anchor)
        updated = apply_plan(plan, self._milestone_repo)
        note = f"Schedule regenerated from new anchor date {new_anchor.isoformat()}"
        self._record(
            order.id,
            log_milestone,
            actor,
            note,
            MODE_ANCHOR,
            plan,
            payload={"new_anchor_date": new_anchor.isoformat()},
        )
        return RecalculationResult(
            mode=MODE_ANCHOR,
            plan=plan,
            updated=updated,
            note=note,
            new_anchor_date=new_anchor,
        )

    def shift_from_milestone(self, target, new_due: date, actor: Actor) -> RecalculationResult:
        """Move ``target`` to ``new_due`` and shift the milestones after it."""
        plan = self.plan_for_shift(target, new_due)
        delta = plan[0].delta_days
        updated = apply_plan(plan, self._milestone_repo)
        direction = "later" if delta >= 0 else "earlier"
        note = (
            f"Schedule shifted {abs(delta)} day(s) {direction} from "
            f"{target.step_key} (new due date {new_due.isoformat()})"
        )
        self._record(
            target.order_id,
            target,
            actor,
            note,
            MODE_SHIFT,
            plan,
            payload={"delta_days": delta, "new_due_date": new_due.isoformat()},
            delta_days=delta,
        )
        return RecalculationResult(
            mode=MODE_SHIFT, plan=plan, updated=updated, note=note, delta_days=delta
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _record(
        self,
        order_id,
        log_milestone,
        actor: Actor,
        note: str,
        mode: str,
        plan: Sequence[DateChange],
        payload: dict,
        delta_days: Optional[int] = None,
    ) -> None:
        changed = sum(1 for change in plan if not change.is_noop)
        self._milestone_repo.add_log(
            log_milestone,
            actor,
            LogAction.RECALC_SCHEDULE,
            note=note,
            payload={**payload, "mode": mode, "changed_count": changed},
        )
        logger.info(
            "schedule.recalculated",
            order_id=str(order_id),
            mode=mode,
            changed_count=changed,
            delta_days=delta_days,
        )
        event = ScheduleRecalculated(
            aggregate_id=order_id,
            mode=mode,
            changed_count=changed,
            delta_days=delta_days,
        )
        transaction.on_commit(lambda: event_bus.publish(event))
