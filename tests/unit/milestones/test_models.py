"""Unit tests for milestone models.

Covers:
- DelayRequest carries exactly one proposed date (database constraint).
- Terminal milestone status.
"""

from __future__ import annotations

from datetime import date

import pytest
from django.db import IntegrityError, transaction

from modules.milestones.constants import DelayReason, MilestoneStatus, StepKey
from modules.milestones.models import DelayRequest

pytestmark = pytest.mark.unit


def _delay(milestone, **dates):
    return DelayRequest.objects.create(
        order=milestone.order,
        milestone=milestone,
        requested_by="sales-user",
        reason_type=DelayReason.SUPPLIER_DELAY,
        **dates,
    )


class TestDelayRequestConstraint:
    def test_constraint_uses_condition(self):
        (constraint,) = DelayRequest._meta.constraints
        assert constraint.name == "delay_requests_exactly_one_proposal"
        assert constraint.condition is not None

    def test_single_proposal_is_stored(self, activated):
        delay = _delay(activated[StepKey.BOOKING_DONE], proposed_new_due_date=date(2024, 2, 27))
        assert delay.is_anchor_change is False

    def test_both_proposals_are_rejected(self, activated):
        with pytest.raises(IntegrityError), transaction.atomic():
            _delay(
                activated[StepKey.BOOKING_DONE],
                proposed_new_due_date=date(2024, 2, 27),
                proposed_new_anchor_date=date(2024, 3, 8),
            )

    def test_no_proposal_is_rejected(self, activated):
        with pytest.raises(IntegrityError), transaction.atomic():
            _delay(activated[StepKey.BOOKING_DONE])


class TestMilestoneTerminal:
    def test_only_done_is_terminal(self, activated):
        milestone = activated[StepKey.PO_CONFIRMED]
        for status in MilestoneStatus:
            milestone.status = status
            assert milestone.is_terminal is (status == MilestoneStatus.DONE)
