"""Event handlers for milestone domain events.

Handlers only log; the notification process reads the audit log and the
reminder table.
"""

from __future__ import annotations

import structlog

from modules.milestones.events import (
    DelayRequestDecided,
    MilestoneBlocked,
    MilestoneStatusChanged,
    ScheduleRecalculated,
)
from shared.domain.bus import IEventHandler

logger = structlog.get_logger(__name__)


class MilestoneStatusChangedHandler(IEventHandler[MilestoneStatusChanged]):
    def handle(self, event: MilestoneStatusChanged) -> None:
        logger.info(
            "milestone.status_changed_event_handled",
            milestone_id=str(event.aggregate_id),
            order_id=str(event.order_id),
            step_key=event.step_key,
            from_status=event.from_status,
            to_status=event.to_status,
        )


class MilestoneBlockedHandler(IEventHandler[MilestoneBlocked]):
    def handle(self, event: MilestoneBlocked) -> None:
        logger.warning(
            "milestone.blocked_event_handled",
            milestone_id=str(event.aggregate_id),
            order_id=str(event.order_id),
            step_key=event.step_key,
            reason=event.reason,
        )


class ScheduleRecalculatedHandler(IEventHandler[ScheduleRecalculated]):
    def handle(self, event: ScheduleRecalculated) -> None:
        logger.info(
            "schedule.recalculated_event_handled",
            order_id=str(event.aggregate_id),
            mode=event.mode,
            changed_count=event.changed_count,
            delta_days=event.delta_days,
        )


class DelayRequestDecidedHandler(IEventHandler[DelayRequestDecided]):
    def handle(self, event: DelayRequestDecided) -> None:
        logger.info("delay_request.decided_event_handled", **event.as_log_fields())


milestone_status_changed_handler = MilestoneStatusChangedHandler()
milestone_blocked_handler = MilestoneBlockedHandler()
schedule_recalculated_handler = ScheduleRecalculatedHandler()
delay_request_decided_handler = DelayRequestDecidedHandler()
