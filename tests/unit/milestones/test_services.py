"""Unit tests for MilestoneService.

Covers:
- Activation: milestone generation, first milestone started, audit log.
- Transition checks: role, dependencies, state machine, blocked reason,
  evidence.
- Auto-advance after completion.
- Owner assignment, evidence registration, health.
"""

from __future__ import annotations

from datetime import date
from unittest.mock import patch

import pytest
from freezegun import freeze_time

from modules.core.constants import SYSTEM_ACTOR_ID, Role
from modules.milestones.constants import HealthColor, LogAction, MilestoneStatus, StepKey
from modules.milestones.dependencies import can_enter_in_progress
from modules.milestones.dtos import RegisterEvidenceDTO
from modules.milestones.events import MilestoneBlocked, MilestoneStatusChanged
from modules.milestones.exceptions import (
    BlockedReasonRequired,
    DependencyNotMet,
    EvidenceMissing,
    InvalidTransition,
    MilestoneNotFound,
    MissingAnchorDate,
    NotAuthorized,
    OrderAlreadyActivated,
)
from modules.milestones.models import Milestone, MilestoneLog
from modules.orders.constants import TradeTerm
from modules.orders.exceptions import ExportOrderNotFound

pytestmark = pytest.mark.unit

S = StepKey


# ---------------------------------------------------------------------------
# Activation
# ---------------------------------------------------------------------------


class TestActivateOrder:
    def test_generates_milestones_by_due_date(self, order, milestone_service, admin_actor):
        milestones = milestone_service.activate_order(order.id, admin_actor)

        assert len(milestones) == 18
        due_dates = [m.due_at for m in milestones]
        assert due_dates == sorted(due_dates)
        assert milestones[0].step_key == S.PO_CONFIRMED

    def test_first_milestone_is_started(self, activated):
        assert activated[S.PO_CONFIRMED].status == MilestoneStatus.IN_PROGRESS
        others = [m for key, m in activated.items() if key != S.PO_CONFIRMED]
        assert all(m.status == MilestoneStatus.NOT_STARTED for m in others)

    def test_tight_schedule_starts_only_gated_milestones(
        self, make_order, milestone_service, admin_actor
    ):
        with freeze_time("2024-01-02 03:00:00"):
            order = make_order(etd=date(2024, 1, 26))
        milestones = milestone_service.activate_order(order.id, admin_actor)

        # production-derived steps fall due before the order is even placed
        assert milestones[0].step_key != S.PO_CONFIRMED
        started = [m for m in milestones if m.status == MilestoneStatus.IN_PROGRESS]
        assert [m.step_key for m in started] == [S.PO_CONFIRMED]
        for milestone in started:
            assert can_enter_in_progress(milestone, milestones).allowed

    def test_copies_template_attributes(self, activated):
        production = activated[S.PRODUCTION_START]
        assert production.owner_role == Role.PRODUCTION
        assert production.due_at == date(2024, 2, 2)
        assert production.planned_at == date(2024, 2, 1)
        assert production.predecessor_keys == [
            S.MATERIALS_RECEIVED_INSPECTED,
            S.PPS_CUSTOMER_APPROVED,
        ]
        assert activated[S.MID_QC_CHECK].is_required is False

    def test_writes_audit_entries(self, order, activated):
        logs = MilestoneLog.objects.filter(order=order)
        assert logs.filter(action=LogAction.CREATE).count() == 18
        started = logs.get(action=LogAction.MARK_IN_PROGRESS)
        assert started.milestone_id == activated[S.PO_CONFIRMED].id
        assert started.note == "Order activated"

    def test_marks_order_activated(self, order, activated):
        order.refresh_from_db()
        assert order.is_activated is True

    def test_second_activation_is_rejected(self, order, activated, milestone_service, admin_actor):
        with pytest.raises(OrderAlreadyActivated):
            milestone_service.activate_order(order.id, admin_actor)
        assert Milestone.objects.filter(order=order).count() == 18

    def test_unknown_order(self, milestone_service, admin_actor):
        with pytest.raises(ExportOrderNotFound):
            milestone_service.activate_order("00000000-0000-0000-0000-000000000000", admin_actor)

    def test_missing_anchor_generates_nothing(self, make_order, milestone_service, admin_actor):
        order = make_order(trade_term=TradeTerm.DDP, etd=date(2024, 3, 1))
        with pytest.raises(MissingAnchorDate):
            milestone_service.activate_order(order.id, admin_actor)
        assert not Milestone.objects.filter(order=order).exists()

    def test_third_party_inspection_included(self, make_order, milestone_service, admin_actor):
        order = make_order(needs_third_party_qc=True)
        milestones = milestone_service.activate_order(order.id, admin_actor)
        assert S.THIRD_PARTY_INSPECTION in {m.step_key for m in milestones}


# ---------------------------------------------------------------------------
# Transitions
# ---------------------------------------------------------------------------


class TestTransitionChecks:
    def test_wrong_role_is_rejected(self, activated, milestone_service, actor_for):
        with pytest.raises(NotAuthorized) as exc_info:
            milestone_service.mark_done(activated[S.PO_CONFIRMED].id, actor_for(Role.QC))
        assert exc_info.value.extra["owner_role"] == Role.SALES

    def test_role_check_comes_before_state_machine(self, activated, milestone_service, actor_for):
        with pytest.raises(NotAuthorized):
            milestone_service.transition(
                activated[S.PAYMENT_RECEIVED].id, MilestoneStatus.DONE, actor_for(Role.QC)
            )

    def test_dependency_not_met(self, activated, milestone_service, actor_for):
        with pytest.raises(DependencyNotMet) as exc_info:
            milestone_service.mark_in_progress(
                activated[S.ORDER_DOCS_COMPLETE].id, actor_for(Role.SALES)
            )
        assert exc_info.value.extra["blocking_step_key"] == S.PO_CONFIRMED

    def test_not_started_cannot_jump_to_done(self, activated, milestone_service, admin_actor):
        with pytest.raises(InvalidTransition) as exc_info:
            milestone_service.mark_done(activated[S.FINANCE_APPROVAL].id, admin_actor)
        assert exc_info.value.extra["allowed"] == ["blocked", "in_progress"]
        assert exc_info.value.extra["from_status"] == MilestoneStatus.NOT_STARTED

    def test_unknown_status_is_invalid(self, activated, milestone_service, admin_actor):
        with pytest.raises(InvalidTransition):
            milestone_service.transition(activated[S.PO_CONFIRMED].id, "paused", admin_actor)

    def test_block_requires_reason(self, activated, milestone_service, admin_actor):
        with pytest.raises(BlockedReasonRequired):
            milestone_service.mark_blocked(activated[S.PO_CONFIRMED].id, admin_actor, "  ")

    def test_done_requires_documents(self, activated, milestone_service, actor_for):
        with pytest.raises(EvidenceMissing) as exc_info:
            milestone_service.mark_done(activated[S.PO_CONFIRMED].id, actor_for(Role.SALES))
        assert exc_info.value.extra["missing_documents"] == ["PO", "PO_CONFIRM_EMAIL"]

    def test_partial_documents_list_the_rest(self, activated, milestone_service, admin_actor, upload):
        upload(activated[S.PO_CONFIRMED], "PO")
        with pytest.raises(EvidenceMissing) as exc_info:
            milestone_service.mark_done(activated[S.PO_CONFIRMED].id, admin_actor)
        assert exc_info.value.extra["missing_documents"] == ["PO_CONFIRM_EMAIL"]

    def test_unknown_milestone(self, milestone_service, admin_actor):
        with pytest.raises(MilestoneNotFound):
            milestone_service.mark_done("00000000-0000-0000-0000-000000000000", admin_actor)


class TestTransitions:
    def test_complete_with_documents(self, activated, milestone_service, actor_for, upload):
        po = activated[S.PO_CONFIRMED]
        upload(po, "PO", "PO_CONFIRM_EMAIL")

        done = milestone_service.mark_done(po.id, actor_for(Role.SALES), note="Signed PO")

        assert done.status == MilestoneStatus.DONE
        assert "Signed PO" in done.notes
        entry = milestone_service.logs_for(po.id)[0]
        assert entry.action == LogAction.MARK_DONE
        assert entry.from_status == MilestoneStatus.IN_PROGRESS
        assert entry.to_status == MilestoneStatus.DONE

    @pytest.mark.parametrize("target", list(MilestoneStatus))
    def test_done_is_terminal(self, target, activated, milestone_service, admin_actor, upload):
        po = activated[S.PO_CONFIRMED]
        upload(po, "PO", "PO_CONFIRM_EMAIL")
        milestone_service.mark_done(po.id, admin_actor)

        with pytest.raises(InvalidTransition) as exc_info:
            milestone_service.transition(po.id, target, admin_actor, note="Too late")
        assert exc_info.value.extra["allowed"] == []
        po.refresh_from_db()
        assert po.status == MilestoneStatus.DONE

    def test_reblocking_keeps_later_notes(self, activated, milestone_service, admin_actor):
        po = activated[S.PO_CONFIRMED]
        milestone_service.mark_blocked(po.id, admin_actor, "Credit hold")
        milestone_service.unblock(po.id, admin_actor, note="Credit released")

        again = milestone_service.mark_blocked(po.id, admin_actor, "Limit exceeded")

        first_line, second_line = again.notes.split("\n")
        assert first_line == "Blocked reason: Limit exceeded"
        assert second_line.endswith("] Credit released")
        assert again.blocked_reason == "Limit exceeded"

    def test_block_and_unblock(self, activated, milestone_service, admin_actor):
        po = activated[S.PO_CONFIRMED]

        blocked = milestone_service.mark_blocked(po.id, admin_actor, "Customer silent")
        assert blocked.status == MilestoneStatus.BLOCKED
        assert blocked.notes == "Blocked reason: Customer silent"
        assert blocked.blocked_reason == "Customer silent"

        resumed = milestone_service.unblock(po.id, admin_actor)
        assert resumed.status == MilestoneStatus.IN_PROGRESS
        actions = [e.action for e in milestone_service.logs_for(po.id)]
        assert actions[:2] == [LogAction.UNBLOCK, LogAction.MARK_BLOCKED]

    def test_reblocking_replaces_reason(self, activated, milestone_service, admin_actor):
        po = activated[S.PO_CONFIRMED]
        milestone_service.mark_blocked(po.id, admin_actor, "Credit hold")
        milestone_service.unblock(po.id, admin_actor)

        again = milestone_service.mark_blocked(po.id, admin_actor, "Limit exceeded")
        assert again.notes == "Blocked reason: Limit exceeded"

    def test_unblock_requires_blocked(self, activated, milestone_service, admin_actor):
        with pytest.raises(InvalidTransition):
            milestone_service.unblock(activated[S.PO_CONFIRMED].id, admin_actor)

    def test_events_published_after_commit(
        self, activated, milestone_service, admin_actor, django_capture_on_commit_callbacks
    ):
        with patch("modules.milestones.services.event_bus") as bus:
            with django_capture_on_commit_callbacks(execute=True):
                milestone_service.mark_blocked(
                    activated[S.PO_CONFIRMED].id, admin_actor, "Waiting"
                )

        published = [c.args[0] for c in bus.publish.call_args_list]
        assert isinstance(published[0], MilestoneStatusChanged)
        assert published[0].to_status == MilestoneStatus.BLOCKED
        assert isinstance(published[1], MilestoneBlocked)
        assert published[1].reason == "Waiting"


class TestAutoAdvance:
    def test_next_milestone_starts_automatically(
        self, order, activated, milestone_service, actor_for, upload, reload
    ):
        po = activated[S.PO_CONFIRMED]
        upload(po, "PO", "PO_CONFIRM_EMAIL")
        milestone_service.mark_done(po.id, actor_for(Role.SALES))

        finance = reload(order)[S.FINANCE_APPROVAL]
        assert finance.status == MilestoneStatus.IN_PROGRESS
        assert "Started automatically after po_confirmed was completed" in finance.notes
        entry = milestone_service.logs_for(finance.id)[0]
        assert entry.action == LogAction.AUTO_ADVANCE
        assert entry.actor_id == SYSTEM_ACTOR_ID

    def test_skipped_when_dependencies_pending(
        self, order, activated, milestone_service, admin_actor, upload, reload
    ):
        upload(activated[S.PO_CONFIRMED], "PO", "PO_CONFIRM_EMAIL")
        milestone_service.mark_done(activated[S.PO_CONFIRMED].id, admin_actor)
        # finance_approval is now in progress; complete the sales branch only
        milestone_service.mark_in_progress(activated[S.ORDER_DOCS_COMPLETE].id, admin_actor)
        upload(activated[S.ORDER_DOCS_COMPLETE], "PRODUCTION_SHEET")
        milestone_service.mark_done(activated[S.ORDER_DOCS_COMPLETE].id, admin_actor)
        milestones = reload(order)
        assert milestones[S.RM_PURCHASE_SHEET_SUBMIT].status == MilestoneStatus.IN_PROGRESS

        upload(milestones[S.RM_PURCHASE_SHEET_SUBMIT], "PROCUREMENT_SHEET")
        milestone_service.mark_done(milestones[S.RM_PURCHASE_SHEET_SUBMIT].id, admin_actor)

        milestones = reload(order)
        assert milestones[S.FINANCE_PURCHASE_APPROVAL].status == MilestoneStatus.NOT_STARTED
        assert milestones[S.FINANCE_APPROVAL].status == MilestoneStatus.IN_PROGRESS


# ---------------------------------------------------------------------------
# Other commands and queries
# ---------------------------------------------------------------------------


class TestAssignOwner:
    def test_admin_assigns(self, activated, milestone_service, admin_actor):
        milestone = milestone_service.assign_owner(
            activated[S.BOOKING_DONE].id, "logistics-7", admin_actor
        )
        assert milestone.owner_user_id == "logistics-7"
        entry = milestone_service.logs_for(milestone.id)[0]
        assert entry.action == LogAction.UPDATE
        assert entry.payload["owner_user_id"] == "logistics-7"

    def test_non_admin_is_rejected(self, activated, milestone_service, actor_for):
        with pytest.raises(NotAuthorized):
            milestone_service.assign_owner(
                activated[S.BOOKING_DONE].id, "x", actor_for(Role.LOGISTICS)
            )


class TestRegisterEvidence:
    def test_owner_role_uploads(self, activated, milestone_service, actor_for):
        attachment = milestone_service.register_evidence(
            activated[S.BOOKING_DONE].id,
            RegisterEvidenceDTO(
                document_type="BOOKING_CONFIRMATION",
                file_name="so.pdf",
                file_url="https://files.example.com/so.pdf",
            ),
            actor_for(Role.LOGISTICS),
        )
        assert attachment.uploaded_by == "logistics-user"
        entry = milestone_service.logs_for(activated[S.BOOKING_DONE].id)[0]
        assert entry.action == LogAction.UPLOAD_EVIDENCE

    def test_other_role_is_rejected(self, activated, milestone_service, actor_for):
        with pytest.raises(NotAuthorized):
            milestone_service.register_evidence(
                activated[S.BOOKING_DONE].id,
                RegisterEvidenceDTO(file_name="x.pdf", file_url="https://files.example.com/x"),
                actor_for(Role.FINANCE),
            )


class TestQueries:
    def test_list_for_unknown_order(self, milestone_service):
        with pytest.raises(ExportOrderNotFound):
            milestone_service.list_for_order("00000000-0000-0000-0000-000000000000")

    def test_health_turns_red_when_blocked(self, order, activated, milestone_service, admin_actor):
        milestone_service.mark_blocked(activated[S.PO_CONFIRMED].id, admin_actor, "Waiting")
        assert milestone_service.order_health(order.id).color == HealthColor.RED

    def test_worklist_for_owner(self, make_order, activated, milestone_service, admin_actor):
        with freeze_time("2024-01-02 03:00:00"):
            other = make_order(etd=date(2024, 2, 16))
        other_booking = {
            m.step_key: m for m in milestone_service.activate_order(other.id, admin_actor)
        }[S.BOOKING_DONE]
        for milestone in (
            activated[S.SHIPMENT_DONE],
            activated[S.BOOKING_DONE],
            other_booking,
        ):
            milestone_service.assign_owner(milestone.id, "logistics-7", admin_actor)
        milestone_service.assign_owner(activated[S.PO_CONFIRMED].id, "sales-2", admin_actor)

        worklist = milestone_service.list_for_owner("logistics-7")

        assert [m.id for m in worklist] == [
            other_booking.id,
            activated[S.BOOKING_DONE].id,
            activated[S.SHIPMENT_DONE].id,
        ]
        assert worklist[0].due_at < worklist[1].due_at < worklist[2].due_at

    def test_worklist_empty_for_unassigned_user(self, activated, milestone_service):
        assert milestone_service.list_for_owner("nobody") == []
