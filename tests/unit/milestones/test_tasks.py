from __future__ import annotations

from datetime import date, datetime
from zoneinfo import ZoneInfo

import pytest

from modules.milestones.constants import MilestoneStatus, ReminderKind, StepKey
from modules.milestones.models import Milestone, MilestoneReminder
from modules.milestones.repositories.django_repository import MilestoneDjangoRepository
from modules.milestones.tasks import record_due_reminders

pytestmark = pytest.mark.unit

SHANGHAI = ZoneInfo("Asia/Shanghai")
NOW = datetime(2024, 1, 4, 12, 0, tzinfo=SHANGHAI)


class TestRecordDueReminders:
    def test_overdue_and_due_soon(self, activated):
        created = record_due_reminders(MilestoneDjangoRepository(), now=NOW)

        assert created == {"due_soon": 2, "overdue": 1}
        overdue = MilestoneReminder.objects.get(kind=ReminderKind.OVERDUE)
        assert overdue.milestone_id == activated[StepKey.PO_CONFIRMED].id
        assert overdue.due_at == date(2024, 1, 2)
        due_soon = set(
            MilestoneReminder.objects.filter(kind=ReminderKind.DUE_SOON).values_list(
                "milestone__step_key", flat=True
            )
        )
        assert due_soon == {StepKey.FINANCE_APPROVAL, StepKey.ORDER_DOCS_COMPLETE}

    def test_rescan_is_idempotent(self, activated):
        repository = MilestoneDjangoRepository()
        record_due_reminders(repository, now=NOW)

        assert record_due_reminders(repository, now=NOW) == {"due_soon": 0, "overdue": 0}
        assert MilestoneReminder.objects.count() == 3

    def test_moved_due_date_gets_new_reminder(self, activated):
        repository = MilestoneDjangoRepository()
        record_due_reminders(repository, now=NOW)
        Milestone.objects.filter(id=activated[StepKey.PO_CONFIRMED].id).update(
            due_at=date(2024, 1, 3)
        )

        assert record_due_reminders(repository, now=NOW)["overdue"] == 1

    def test_done_milestones_ignored(self, activated):
        Milestone.objects.filter(step_key=StepKey.PO_CONFIRMED).update(
            status=MilestoneStatus.DONE
        )
        created = record_due_reminders(MilestoneDjangoRepository(), now=NOW)
        assert created["overdue"] == 0

    def test_nothing_due(self, activated):
        early = datetime(2023, 12, 1, tzinfo=SHANGHAI)
        assert record_due_reminders(MilestoneDjangoRepository(), now=early) == {
            "due_soon": 0,
            "overdue": 0,
        }
