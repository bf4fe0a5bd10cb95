"""Integration tests for authentication and the caller's role.

Validates:
  - Protected DRF endpoints return 401 without a token.
  - Protected DRF endpoints return 401 with an invalid or malformed token.
  - ``/api/v1/me`` reports the role the milestone engine will use.
"""

import pytest
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient

from modules.core.constants import Role

pytestmark = pytest.mark.integration


class TestProtectedEndpoints:
    """All DRF endpoints require a valid JWT by default (Fail Closed)."""

    def test_no_token_returns_401(self, api_client):
        response = api_client.get("/api/v1/me")
        assert response.status_code == 401

    def test_invalid_token_returns_401(self, api_client):
        api_client.credentials(HTTP_AUTHORIZATION="Bearer invalid.token.here")
        response = api_client.get("/api/v1/me")
        assert response.status_code == 401

    def test_malformed_auth_header_returns_401(self, api_client):
        api_client.credentials(HTTP_AUTHORIZATION="Token some-token")
        response = api_client.get("/api/v1/me")
        assert response.status_code == 401

    def test_empty_bearer_returns_401(self, api_client):
        api_client.credentials(HTTP_AUTHORIZATION="Bearer ")
        response = api_client.get("/api/v1/me")
        assert response.status_code == 401

    def test_401_includes_www_authenticate_header(self, api_client):
        response = api_client.get("/api/v1/me")
        assert response.status_code == 401
        assert "Bearer" in response.get("WWW-Authenticate", "")

    def test_milestone_endpoints_require_auth(self, api_client):
        assert api_client.get("/api/v1/export-orders/").status_code == 401
        assert api_client.get("/api/v1/delay-requests/").status_code == 401


class TestMe:
    def test_staff_profile_role_is_reported(self, staff_client):
        client, user = staff_client(Role.QC, username="qc-inspector")
        response = client.get("/api/v1/me")
        assert response.status_code == 200
        data = response.json()
        assert data["user_id"] == str(user.pk)
        assert data["role"] == "qc"

    def test_superuser_without_profile_is_admin(self):
        user = get_user_model().objects.create_superuser("root", password="rootpass123")
        client = APIClient()
        client.force_authenticate(user=user)
        response = client.get("/api/v1/me")
        assert response.json()["role"] == "admin"

    def test_user_without_profile_has_no_role(self):
        user = get_user_model().objects.create_user("plain", password="plainpass123")
        client = APIClient()
        client.force_authenticate(user=user)
        response = client.get("/api/v1/me")
        assert response.json()["role"] == ""
