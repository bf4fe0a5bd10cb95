"""Milestone, audit log, evidence, delay request and reminder models.

Business rules implemented:
- One milestone per step per order (unique ``order`` + ``step_key``).
- Status values are the ``MilestoneStatus`` enum; transitions are
  validated by the service layer against ``VALID_TRANSITIONS``.
- ``predecessor_keys`` is a denormalized copy of the template's
  predecessors narrowed to the steps generated for the order.
- ``MilestoneLog`` is append-only.
- A delay request proposes exactly one of a new anchor date or a new due
  date for its milestone (database check constraint).
- ``MilestoneReminder`` is unique per milestone, kind and due date so the
  reminder scan can run repeatedly.
"""

from __future__ import annotations

from django.db import models

from modules.core.models import BaseModel
from modules.milestones.constants import (
    TERMINAL_STATES,
    VALID_TRANSITIONS,
    DelayReason,
    DelayStatus,
    LogAction,
    MilestoneStatus,
    ReminderKind,
    StepKey,
)
from modules.milestones.evidence import DocumentType
from modules.milestones.notes import extract_blocked_reason


class Milestone(BaseModel):
    """One execution checkpoint of an export order."""

    order: models.ForeignKey = models.ForeignKey(
        "orders.ExportOrder",
        on_delete=models.CASCADE,
        related_name="milestones",
    )
    step_key: models.CharField = models.CharField(max_length=40, choices=StepKey.choices)
    name: models.CharField = models.CharField(max_length=120)
    sequence: models.PositiveSmallIntegerField = models.PositiveSmallIntegerField(default=0)
    owner_role: models.CharField = models.CharField(max_length=32)
    owner_user_id: models.CharField = models.CharField(max_length=255, blank=True, default="")
    planned_at: models.DateField = models.DateField()
    due_at: models.DateField = models.DateField()
    status: models.CharField = models.CharField(
        max_length=20,
        choices=MilestoneStatus.choices,
        default=MilestoneStatus.NOT_STARTED,
    )
    notes: models.TextField = models.TextField(blank=True, default="")
    is_required: models.BooleanField = models.BooleanField(default=True)
    is_critical: models.BooleanField = models.BooleanField(default=False)
    evidence_required: models.BooleanField = models.BooleanField(default=False)
    predecessor_keys: models.JSONField = models.JSONField(default=list, blank=True)

    class Meta:
        db_table = "milestones"
        ordering = ["due_at", "sequence"]
        constraints = [
            models.UniqueConstraint(
                fields=["order", "step_key"], name="milestones_order_step_uniq"
            ),
        ]
        indexes = [
            models.Index(fields=["status", "due_at"], name="milestones_status_due_idx"),
        ]

    # ------------------------------------------------------------------
    # State Machine helpers
    # ------------------------------------------------------------------

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATES

    def allowed_transitions(self) -> list[str]:
        return sorted(VALID_TRANSITIONS.get(self.status, set()))

    def can_transition_to(self, new_status: str) -> bool:
        return new_status in VALID_TRANSITIONS.get(self.status, set())

    @property
    def blocked_reason(self) -> str | None:
        if self.status != MilestoneStatus.BLOCKED:
            return None
        return extract_blocked_reason(self.notes)

    def __str__(self) -> str:
        return f"{self.step_key} [{self.status}] due {self.due_at}"


class MilestoneLog(BaseModel):
    """Append-only audit record of a milestone action."""

    milestone: models.ForeignKey = models.ForeignKey(
        "milestones.Milestone",
        on_delete=models.CASCADE,
        related_name="logs",
    )
    order: models.ForeignKey = models.ForeignKey(
        "orders.ExportOrder",
        on_delete=models.CASCADE,
        related_name="milestone_logs",
    )
    actor_id: models.CharField = models.CharField(max_length=255)
    actor_role: models.CharField = models.CharField(max_length=32, blank=True, default="")
    action: models.CharField = models.CharField(max_length=32, choices=LogAction.choices)
    from_status: models.CharField = models.CharField(  # noqa: DJ01
        max_length=20, choices=MilestoneStatus.choices, null=True, blank=True
    )
    to_status: models.CharField = models.CharField(  # noqa: DJ01
        max_length=20, choices=MilestoneStatus.choices, null=True, blank=True
    )
    note: models.TextField = models.TextField(blank=True, default="")
    payload: models.JSONField = models.JSONField(null=True, blank=True)

    class Meta:
        db_table = "milestone_logs"
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(fields=["milestone", "-created_at"], name="mlog_milestone_created_idx"),
            models.Index(fields=["order", "-created_at"], name="mlog_order_created_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.action}: {self.from_status} -> {self.to_status}"


class EvidenceAttachment(BaseModel):
    """Metadata of a document uploaded to an external store."""

    milestone: models.ForeignKey = models.ForeignKey(
        "milestones.Milestone",
        on_delete=models.CASCADE,
        related_name="attachments",
    )
    order: models.ForeignKey = models.ForeignKey(
        "orders.ExportOrder",
        on_delete=models.CASCADE,
        related_name="attachments",
    )
    document_type: models.CharField = models.CharField(
        max_length=32, choices=DocumentType.choices, default=DocumentType.OTHER
    )
    file_name: models.CharField = models.CharField(max_length=255)
    file_url: models.URLField = models.URLField(max_length=500)
    uploaded_by: models.CharField = models.CharField(max_length=255)

    class Meta:
        db_table = "evidence_attachments"
        ordering = ["created_at"]

    def __str__(self) -> str:
        return f"{self.document_type}: {self.file_name}"


class DelayRequest(BaseModel):
    """Request to move a milestone's due date or the order's anchor date."""

    order: models.ForeignKey = models.ForeignKey(
        "orders.ExportOrder",
        on_delete=models.CASCADE,
        related_name="delay_requests",
    )
    milestone: models.ForeignKey = models.ForeignKey(
        "milestones.Milestone",
        on_delete=models.CASCADE,
        related_name="delay_requests",
    )
    requested_by: models.CharField = models.CharField(max_length=255)
    reason_type: models.CharField = models.CharField(max_length=32, choices=DelayReason.choices)
    reason_detail: models.TextField = models.TextField(blank=True, default="")
    proposed_new_anchor_date: models.DateField = models.DateField(null=True, blank=True)
    proposed_new_due_date: models.DateField = models.DateField(null=True, blank=True)
    requires_customer_approval: models.BooleanField = models.BooleanField(default=False)
    customer_approval_evidence_url: models.URLField = models.URLField(
        max_length=500, blank=True, default=""
    )
    status: models.CharField = models.CharField(
        max_length=10, choices=DelayStatus.choices, default=DelayStatus.PENDING
    )
    decided_by: models.CharField = models.CharField(max_length=255, blank=True, default="")
    decided_at: models.DateTimeField = models.DateTimeField(null=True, blank=True)
    decision_note: models.TextField = models.TextField(blank=True, default="")

    class Meta:
        db_table = "delay_requests"
        ordering = ["-created_at"]
        constraints = [
            models.CheckConstraint(
                condition=(
                    models.Q(
                        proposed_new_anchor_date__isnull=False,
                        proposed_new_due_date__isnull=True,
                    )
                    | models.Q(
                        proposed_new_anchor_date__isnull=True,
                        proposed_new_due_date__isnull=False,
                    )
                ),
                name="delay_requests_exactly_one_proposal",
            ),
        ]

    @property
    def is_anchor_change(self) -> bool:
        return self.proposed_new_anchor_date is not None

    def __str__(self) -> str:
        return f"{self.milestone_id} [{self.status}] {self.reason_type}"


class MilestoneReminder(BaseModel):
    """Reminder recorded by the due-date scan for the notification process."""

    milestone: models.ForeignKey = models.ForeignKey(
        "milestones.Milestone",
        on_delete=models.CASCADE,
        related_name="reminders",
    )
    kind: models.CharField = models.CharField(max_length=10, choices=ReminderKind.choices)
    due_at: models.DateField = models.DateField()

    class Meta:
        db_table = "milestone_reminders"
        ordering = ["-created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["milestone", "kind", "due_at"],
                name="milestone_reminders_uniq",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.kind} {self.milestone_id} ({self.due_at})"
