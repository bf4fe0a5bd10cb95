"""Unit tests for export-order serializers."""

from __future__ import annotations

from datetime import date

import pytest

from modules.orders.serializers import (
    CreateExportOrderSerializer,
    ExportOrderListSerializer,
    ExportOrderSerializer,
)

pytestmark = pytest.mark.unit


class TestCreateExportOrderSerializer:
    def test_valid_payload_gets_defaults(self):
        serializer = CreateExportOrderSerializer(
            data={"customer_name": "Acme", "trade_term": "FOB", "etd": "2024-03-01"}
        )
        assert serializer.is_valid(), serializer.errors
        data = serializer.validated_data
        assert data["etd"] == date(2024, 3, 1)
        assert data["order_type"] == "bulk"
        assert data["packaging_type"] == "standard"
        assert data["needs_pp_sample"] is True

    def test_unknown_trade_term_is_invalid(self):
        serializer = CreateExportOrderSerializer(
            data={"customer_name": "Acme", "trade_term": "CIF"}
        )
        assert not serializer.is_valid()
        assert "trade_term" in serializer.errors

    def test_customer_name_required(self):
        serializer = CreateExportOrderSerializer(data={"trade_term": "FOB"})
        assert not serializer.is_valid()
        assert "customer_name" in serializer.errors


class TestOutputSerializers:
    def test_detail_includes_anchor_date(self, make_order):
        order = make_order(etd=date(2024, 3, 1))
        data = ExportOrderSerializer(order).data
        assert data["anchor_date"] == "2024-03-01"
        assert data["order_number"] == order.order_number
        assert data["activated_at"] is None

    def test_list_is_lightweight(self, make_order):
        data = ExportOrderListSerializer(make_order()).data
        assert "notes" not in data
        assert set(data) >= {"id", "order_number", "customer_name", "trade_term"}
