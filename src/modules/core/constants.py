"""Shared constants for the staff directory."""

from django.db import models


class Role(models.TextChoices):
    ADMIN = "admin", "Administrator"
    SALES = "sales", "Sales"
    FINANCE = "finance", "Finance"
    PROCUREMENT = "procurement", "Procurement"
    QC = "qc", "Quality control"
    PRODUCTION = "production", "Production"
    LOGISTICS = "logistics", "Logistics"


SYSTEM_ACTOR_ID = "system"
