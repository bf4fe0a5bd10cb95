"""Milestone DRF serializers for API input/output."""

from __future__ import annotations

from rest_framework import serializers

from modules.milestones.constants import DelayReason, MilestoneStatus
from modules.milestones.evidence import (
    DocumentType,
    optional_documents_for,
    required_documents_for,
)
from modules.milestones.models import (
    DelayRequest,
    EvidenceAttachment,
    Milestone,
    MilestoneLog,
)

# ---------------------------------------------------------------------------
# Input Serializers
# ---------------------------------------------------------------------------


class TransitionSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=MilestoneStatus.choices)
    note = serializers.CharField(required=False, default="", allow_blank=True)


class AssignOwnerSerializer(serializers.Serializer):
    owner_user_id = serializers.CharField(allow_blank=True, max_length=255)


class RegisterEvidenceSerializer(serializers.Serializer):
    document_type = serializers.ChoiceField(
        choices=DocumentType.choices, default=DocumentType.OTHER
    )
    file_name = serializers.CharField(max_length=255)
    file_url = serializers.URLField(max_length=500)


class CreateDelayRequestSerializer(serializers.Serializer):
    milestone_id = serializers.UUIDField()
    reason_type = serializers.ChoiceField(choices=DelayReason.choices)
    reason_detail = serializers.CharField(required=False, default="", allow_blank=True)
    proposed_new_anchor_date = serializers.DateField(required=False, allow_null=True)
    proposed_new_due_date = serializers.DateField(required=False, allow_null=True)
    requires_customer_approval = serializers.BooleanField(required=False, default=False)
    customer_approval_evidence_url = serializers.URLField(
        required=False, default="", allow_blank=True
    )


class DecisionSerializer(serializers.Serializer):
    note = serializers.CharField(required=False, default="", allow_blank=True)


# ---------------------------------------------------------------------------
# Output Serializers (Read)
# ---------------------------------------------------------------------------


class MilestoneSerializer(serializers.ModelSerializer):
    blocked_reason = serializers.CharField(read_only=True, allow_null=True)
    required_documents = serializers.SerializerMethodField()
    optional_documents = serializers.SerializerMethodField()

    class Meta:
        model = Milestone
        fields = [
            "id",
            "order_id",
            "step_key",
            "name",
            "sequence",
            "owner_role",
            "owner_user_id",
            "planned_at",
            "due_at",
            "status",
            "notes",
            "blocked_reason",
            "is_required",
            "is_critical",
            "evidence_required",
            "required_documents",
            "optional_documents",
            "predecessor_keys",
            "updated_at",
        ]
        read_only_fields = fields

    def get_required_documents(self, obj: Milestone) -> list[str]:
        return [str(d) for d in required_documents_for(obj.step_key)]

    def get_optional_documents(self, obj: Milestone) -> list[str]:
        return [str(d) for d in optional_documents_for(obj.step_key)]


class MilestoneLogSerializer(serializers.ModelSerializer):
    class Meta:
        model = MilestoneLog
        fields = [
            "id",
            "milestone_id",
            "actor_id",
            "actor_role",
            "action",
            "from_status",
            "to_status",
            "note",
            "payload",
            "created_at",
        ]
        read_only_fields = fields


class EvidenceAttachmentSerializer(serializers.ModelSerializer):
    class Meta:
        model = EvidenceAttachment
        fields = [
            "id",
            "milestone_id",
            "document_type",
            "file_name",
            "file_url",
            "uploaded_by",
            "created_at",
        ]
        read_only_fields = fields


class DelayRequestSerializer(serializers.ModelSerializer):
    class Meta:
        model = DelayRequest
        fields = [
            "id",
            "order_id",
            "milestone_id",
            "requested_by",
            "reason_type",
            "reason_detail",
            "proposed_new_anchor_date",
            "proposed_new_due_date",
            "requires_customer_approval",
            "customer_approval_evidence_url",
            "status",
            "decided_by",
            "decided_at",
            "decision_note",
            "created_at",
        ]
        read_only_fields = fields
