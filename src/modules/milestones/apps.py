from django.apps import AppConfig


class MilestonesConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "modules.milestones"
    label = "milestones"

    def ready(self) -> None:
        from modules.milestones.events import (
            DelayRequestDecided,
            MilestoneBlocked,
            MilestoneStatusChanged,
            ScheduleRecalculated,
        )
        from modules.milestones.handlers import (
            delay_request_decided_handler,
            milestone_blocked_handler,
            milestone_status_changed_handler,
            schedule_recalculated_handler,
        )
        from shared.infrastructure.bus import event_bus

        event_bus.subscribe(MilestoneStatusChanged, milestone_status_changed_handler)
        event_bus.subscribe(MilestoneBlocked, milestone_blocked_handler)
        event_bus.subscribe(ScheduleRecalculated, schedule_recalculated_handler)
        event_bus.subscribe(DelayRequestDecided, delay_request_decided_handler)
