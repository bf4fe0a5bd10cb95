"""Milestone DTOs for the Service Layer (Pydantic v2, immutable).

- ``CreateDelayRequestDTO``: exactly one of a new anchor date or a new
  due date must be proposed.
- ``RegisterEvidenceDTO``: metadata of an externally stored document.
- ``ImpactedMilestoneDTO``: one line of a delay-impact preview.
"""

from __future__ import annotations

from datetime import date
from typing import TYPE_CHECKING, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from modules.milestones.constants import DelayReason
from modules.milestones.evidence import DocumentType

if TYPE_CHECKING:
    from modules.milestones.recalculation import DateChange


class CreateDelayRequestDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    milestone_id: UUID
    reason_type: DelayReason
    reason_detail: str = ""
    proposed_new_anchor_date: Optional[date] = None
    proposed_new_due_date: Optional[date] = None
    requires_customer_approval: bool = False
    customer_approval_evidence_url: str = ""

    @model_validator(mode="after")
    def exactly_one_proposal(self):
        proposals = [self.proposed_new_anchor_date, self.proposed_new_due_date]
        if sum(p is not None for p in proposals) != 1:
            raise ValueError(
                "Provide exactly one of proposed_new_anchor_date or proposed_new_due_date."
            )
        return self


class RegisterEvidenceDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    document_type: DocumentType = DocumentType.OTHER
    file_name: str
    file_url: str

    @field_validator("file_name", "file_url")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Must not be blank.")
        return v.strip()


class ImpactedMilestoneDTO(BaseModel):
    """Current and proposed dates of one milestone affected by a delay."""

    model_config = ConfigDict(frozen=True)

    milestone_id: UUID
    step_key: str
    current_due_at: date
    new_due_at: date
    current_planned_at: date
    new_planned_at: date
    delta_days: int

    @classmethod
    def from_change(cls, change: DateChange) -> ImpactedMilestoneDTO:
        return cls(
            milestone_id=change.milestone_id,
            step_key=str(change.step_key),
            current_due_at=change.old_due_at,
            new_due_at=change.new_due_at,
            current_planned_at=change.old_planned_at,
            new_planned_at=change.new_planned_at,
            delta_days=change.delta_days,
        )
