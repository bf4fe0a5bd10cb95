from datetime import date

import pytest
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient

from modules.core.actors import Actor
from modules.core.constants import Role
from modules.core.models import StaffProfile
from modules.orders.constants import TradeTerm
from modules.orders.models import ExportOrder

CREATOR_ID = "creator-1"


@pytest.fixture(autouse=True)
def _use_db(db):
    """Automatically use the test database for all tests."""


@pytest.fixture()
def api_client():
    """DRF APIClient for testing API endpoints."""
    return APIClient()


@pytest.fixture()
def api_client_with_correlation(api_client):
    """APIClient pre-configured with a known correlation ID header."""
    cid = "test-correlation-id-fixture"
    api_client.defaults["HTTP_X_REQUEST_ID"] = cid
    return api_client, cid


# ---------------------------------------------------------------------------
# Actors
# ---------------------------------------------------------------------------


@pytest.fixture()
def admin_actor():
    return Actor(user_id="admin-1", role=Role.ADMIN, display_name="Admin")


@pytest.fixture()
def creator_actor():
    return Actor(user_id=CREATOR_ID, role=Role.SALES, display_name="Sales")


@pytest.fixture()
def actor_for():
    """Build an actor holding ``role``."""

    def _make(role: str, user_id: str | None = None) -> Actor:
        return Actor(user_id=user_id or f"{role}-user", role=role, display_name=role)

    return _make


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------


@pytest.fixture()
def make_order():
    """Create an ``ExportOrder`` row; FOB shipping 2024-03-01 by default."""
    counter = {"n": 0}

    def _make(**overrides) -> ExportOrder:
        counter["n"] += 1
        data = {
            "order_number": f"EO-TEST-{counter['n']:04d}",
            "customer_name": "Test Customer",
            "trade_term": TradeTerm.FOB,
            "etd": date(2024, 3, 1),
            "created_by": CREATOR_ID,
        }
        data.update(overrides)
        return ExportOrder.objects.create(**data)

    return _make


# ---------------------------------------------------------------------------
# HTTP clients
# ---------------------------------------------------------------------------


@pytest.fixture()
def staff_client():
    """APIClient force-authenticated as a Django user with ``role``."""

    def _make(role: str, username: str | None = None) -> tuple[APIClient, object]:
        user = get_user_model().objects.create_user(
            username=username or f"{role}-client", password="testpass123"
        )
        StaffProfile.objects.create(user=user, role=role, display_name=role)
        client = APIClient()
        client.force_authenticate(user=user)
        return client, user

    return _make
