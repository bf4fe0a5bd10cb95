"""ExportOrder, its cancel requests and the per-day order-number counter.

Business rules implemented:
- Exactly one anchor date matters per order: ``etd`` for FOB,
  ``warehouse_due_date`` for DDP.
- ``order_number`` (``EO-YYYYMMDD-NNNN``) is allocated from
  ``OrderNumberSequence`` under a row lock, so concurrent creations on the
  same day never collide.
- ``created_by`` stores the actor identifier (Django user pk or Auth0
  ``sub``); the creator may decide delay requests on the order.
- An order is closed once ``outcome`` is set: ``completed`` after every
  milestone is done, ``cancelled`` when a cancel request is approved.
  Closed orders accept no further milestone changes.
"""

from __future__ import annotations

from datetime import date
from typing import Optional

from django.db import models

from modules.core.models import BaseModel
from modules.orders.constants import (
    ANCHOR_FIELD_BY_TRADE_TERM,
    CancelReason,
    CancelStatus,
    OrderOutcome,
    OrderType,
    PackagingType,
    TradeTerm,
)


class ExportOrder(BaseModel):
    """Garment-export order whose milestones the engine schedules."""

    order_number: models.CharField = models.CharField(
        max_length=20, unique=True, editable=False
    )
    customer_name: models.CharField = models.CharField(max_length=200)
    trade_term: models.CharField = models.CharField(
        max_length=3, choices=TradeTerm.choices
    )
    etd: models.DateField = models.DateField(null=True, blank=True)
    warehouse_due_date: models.DateField = models.DateField(null=True, blank=True)
    order_type: models.CharField = models.CharField(
        max_length=10, choices=OrderType.choices, default=OrderType.BULK
    )
    packaging_type: models.CharField = models.CharField(
        max_length=10, choices=PackagingType.choices, default=PackagingType.STANDARD
    )
    needs_pp_sample: models.BooleanField = models.BooleanField(default=True)
    needs_third_party_qc: models.BooleanField = models.BooleanField(default=False)
    created_by: models.CharField = models.CharField(max_length=255)
    activated_at: models.DateTimeField = models.DateTimeField(null=True, blank=True)
    outcome: models.CharField = models.CharField(
        max_length=10, choices=OrderOutcome.choices, blank=True, default=""
    )
    closed_at: models.DateTimeField = models.DateTimeField(null=True, blank=True)
    termination_reason: models.TextField = models.TextField(blank=True, default="")
    termination_approved_by: models.CharField = models.CharField(
        max_length=255, blank=True, default=""
    )
    notes: models.TextField = models.TextField(blank=True, default="")

    class Meta:
        db_table = "export_orders"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["trade_term"], name="export_orders_term_idx"),
            models.Index(fields=["-created_at"], name="export_orders_created_idx"),
        ]

    # ------------------------------------------------------------------
    # Anchors
    # ------------------------------------------------------------------

    @property
    def anchor_field(self) -> str:
        return ANCHOR_FIELD_BY_TRADE_TERM[self.trade_term]

    @property
    def anchor_date(self) -> Optional[date]:
        """The date the schedule is computed from (may be ``None``)."""
        return getattr(self, self.anchor_field)

    @property
    def is_activated(self) -> bool:
        return self.activated_at is not None

    @property
    def is_closed(self) -> bool:
        return bool(self.outcome)

    def __str__(self) -> str:
        return f"{self.order_number} ({self.customer_name})"


class OrderNumberSequence(models.Model):
    """Last order number issued for a calendar day."""

    day: models.DateField = models.DateField(primary_key=True)
    last_value: models.PositiveIntegerField = models.PositiveIntegerField(default=0)

    class Meta:
        db_table = "export_order_number_sequences"

    def __str__(self) -> str:
        return f"{self.day:%Y%m%d}:{self.last_value}"


class CancelRequest(BaseModel):
    """Request to cancel an order, decided by its creator or an administrator."""

    order: models.ForeignKey = models.ForeignKey(
        ExportOrder, on_delete=models.CASCADE, related_name="cancel_requests"
    )
    requested_by: models.CharField = models.CharField(max_length=255)
    reason_type: models.CharField = models.CharField(max_length=32, choices=CancelReason.choices)
    reason_detail: models.TextField = models.TextField()
    status: models.CharField = models.CharField(
        max_length=10, choices=CancelStatus.choices, default=CancelStatus.PENDING
    )
    decided_by: models.CharField = models.CharField(max_length=255, blank=True, default="")
    decided_at: models.DateTimeField = models.DateTimeField(null=True, blank=True)
    decision_note: models.TextField = models.TextField(blank=True, default="")

    class Meta:
        db_table = "export_order_cancel_requests"
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"{self.order_id} [{self.status}] {self.reason_type}"
