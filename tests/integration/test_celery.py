"""Integration tests for the Celery configuration and the reminder scan."""

from datetime import date

import pytest

from modules.milestones.constants import MilestoneStatus, ReminderKind, StepKey
from modules.milestones.models import Milestone, MilestoneReminder

pytestmark = pytest.mark.integration


class TestCeleryConfig:
    def test_celery_app_is_importable(self):
        from config.celery import app

        assert app.main == "metronome"

    def test_celery_app_exported_from_init(self):
        from config import celery_app

        assert celery_app.main == "metronome"

    def test_celery_serializer_is_json(self, settings):
        assert settings.CELERY_TASK_SERIALIZER == "json"
        assert settings.CELERY_RESULT_SERIALIZER == "json"
        assert settings.CELERY_ACCEPT_CONTENT == ["json"]

    def test_celery_timezone_matches_django(self, settings):
        assert settings.CELERY_TIMEZONE == settings.TIME_ZONE

    def test_reminder_scan_is_scheduled(self, settings):
        tasks = {entry["task"] for entry in settings.CELERY_BEAT_SCHEDULE.values()}
        assert "milestones.scan_due_milestones" in tasks


class TestScanDueMilestones:
    def test_eager_run_records_overdue_reminder(self, make_order):
        from modules.milestones.tasks import scan_due_milestones

        order = make_order()
        Milestone.objects.create(
            order=order,
            step_key=StepKey.PO_CONFIRMED,
            name="PO confirmed",
            sequence=0,
            owner_role="sales",
            planned_at=date(2000, 1, 3),
            due_at=date(2000, 1, 4),
            status=MilestoneStatus.IN_PROGRESS,
        )

        result = scan_due_milestones.delay()

        assert result.successful()
        assert result.result == {"due_soon": 0, "overdue": 1}
        assert MilestoneReminder.objects.filter(kind=ReminderKind.OVERDUE).count() == 1
