"""Base abstract model and staff directory for the metronome service.

Provides:
- ``BaseModel``: UUIDv7 primary key + created_at / updated_at timestamps.
- ``StaffProfile``: one row per Django user carrying the business role
  (sales, finance, qc, ...) used by milestone authorization.

``save()`` guard ensures ``updated_at`` is included when ``update_fields``
is specified (Django skips ``auto_now`` fields otherwise).
"""

from __future__ import annotations

import uuid6
from django.conf import settings
from django.db import models

from modules.core.constants import Role

# ---------------------------------------------------------------------------
# BaseModel
# ---------------------------------------------------------------------------


class BaseModel(models.Model):
    """Abstract base with UUIDv7 PK and timestamp bookkeeping."""

    id = models.UUIDField(
        primary_key=True,
        default=uuid6.uuid7,
        editable=False,
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True

    def save(self, *args, **kwargs) -> None:
        """Ensure ``updated_at`` is refreshed even when ``update_fields`` is passed."""
        update_fields = kwargs.get("update_fields")
        if update_fields is not None and "updated_at" not in update_fields:
            kwargs["update_fields"] = list(update_fields) + ["updated_at"]
        super().save(*args, **kwargs)


# ---------------------------------------------------------------------------
# Staff directory
# ---------------------------------------------------------------------------


class StaffProfile(BaseModel):
    """Business role of a locally authenticated user.

    Users authenticated through Auth0 carry the role in their token and
    do not need a profile row.
    """

    user: models.OneToOneField = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="staff_profile",
    )
    role: models.CharField = models.CharField(
        max_length=32,
        choices=Role.choices,
        default=Role.SALES,
    )
    display_name: models.CharField = models.CharField(
        max_length=120, blank=True, default=""
    )

    class Meta:
        db_table = "staff_profiles"
        ordering = ["created_at"]

    def __str__(self) -> str:
        return f"{self.user} ({self.role})"
