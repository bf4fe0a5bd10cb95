"""Export-order DRF serializers for API input/output.

Business validation lives in ``CreateExportOrderDTO``; these serializers
only check shapes and types.
"""

from __future__ import annotations

from rest_framework import serializers

from modules.orders.constants import CancelReason, OrderType, PackagingType, TradeTerm
from modules.orders.models import CancelRequest, ExportOrder


class CreateExportOrderSerializer(serializers.Serializer):
    customer_name = serializers.CharField(max_length=200)
    trade_term = serializers.ChoiceField(choices=TradeTerm.choices)
    etd = serializers.DateField(required=False, allow_null=True)
    warehouse_due_date = serializers.DateField(required=False, allow_null=True)
    order_type = serializers.ChoiceField(choices=OrderType.choices, default=OrderType.BULK)
    packaging_type = serializers.ChoiceField(
        choices=PackagingType.choices, default=PackagingType.STANDARD
    )
    needs_pp_sample = serializers.BooleanField(required=False, default=True)
    needs_third_party_qc = serializers.BooleanField(required=False, default=False)
    notes = serializers.CharField(required=False, default="", allow_blank=True)


class CreateCancelRequestSerializer(serializers.Serializer):
    reason_type = serializers.ChoiceField(choices=CancelReason.choices)
    reason_detail = serializers.CharField(allow_blank=True)


class ExportOrderSerializer(serializers.ModelSerializer):
    anchor_date = serializers.DateField(read_only=True, allow_null=True)

    class Meta:
        model = ExportOrder
        fields = [
            "id",
            "order_number",
            "customer_name",
            "trade_term",
            "etd",
            "warehouse_due_date",
            "anchor_date",
            "order_type",
            "packaging_type",
            "needs_pp_sample",
            "needs_third_party_qc",
            "created_by",
            "activated_at",
            "outcome",
            "closed_at",
            "termination_reason",
            "termination_approved_by",
            "notes",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class ExportOrderListSerializer(serializers.ModelSerializer):
    class Meta:
        model = ExportOrder
        fields = [
            "id",
            "order_number",
            "customer_name",
            "trade_term",
            "order_type",
            "activated_at",
            "outcome",
            "created_at",
        ]
        read_only_fields = fields


class CancelRequestSerializer(serializers.ModelSerializer):
    class Meta:
        model = CancelRequest
        fields = [
            "id",
            "order_id",
            "requested_by",
            "reason_type",
            "reason_detail",
            "status",
            "decided_by",
            "decided_at",
            "decision_note",
            "created_at",
        ]
        read_only_fields = fields
