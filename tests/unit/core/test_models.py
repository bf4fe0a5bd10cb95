"""Unit tests for BaseModel (through ExportOrder) and StaffProfile."""

from __future__ import annotations

import uuid

import pytest
from django.contrib.auth import get_user_model
from freezegun import freeze_time

from modules.core.constants import Role
from modules.core.models import StaffProfile
from modules.orders.models import ExportOrder

pytestmark = pytest.mark.unit


class TestBaseModel:
    """UUIDv7 PK and timestamp behaviour."""

    def test_id_is_uuid_version_7(self, make_order):
        order = make_order()
        assert isinstance(order.id, uuid.UUID)
        assert order.id.version == 7

    def test_ids_are_time_ordered(self, make_order):
        a = make_order()
        b = make_order()
        assert str(a.id) < str(b.id)

    def test_id_is_not_editable(self):
        field = ExportOrder._meta.get_field("id")
        assert field.editable is False

    def test_save_with_update_fields_includes_updated_at(self, make_order):
        with freeze_time("2024-01-02 03:00:00"):
            order = make_order()
        original_updated = order.updated_at

        with freeze_time("2024-01-03 03:00:00"):
            order.notes = "changed"
            order.save(update_fields=["notes"])

        order.refresh_from_db()
        assert order.updated_at > original_updated
        assert order.created_at < order.updated_at


class TestStaffProfile:
    def test_profile_reachable_from_user(self):
        user = get_user_model().objects.create_user("fin", password="finpass123")
        StaffProfile.objects.create(user=user, role=Role.FINANCE)
        user.refresh_from_db()
        assert user.staff_profile.role == Role.FINANCE

    def test_default_role_is_sales(self):
        user = get_user_model().objects.create_user("newbie", password="newpass123")
        profile = StaffProfile.objects.create(user=user)
        assert profile.role == Role.SALES
