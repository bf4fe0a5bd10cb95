"""Django ORM implementations of the export-order repositories."""

from __future__ import annotations

from datetime import date
from typing import Any, Dict, List, Optional

import structlog
from django.core.exceptions import ValidationError
from django.db import transaction
from django.utils import timezone

from modules.orders.constants import ORDER_NUMBER_PREFIX
from modules.orders.models import CancelRequest, ExportOrder, OrderNumberSequence
from modules.orders.repositories.interfaces import (
    ICancelRequestRepository,
    IExportOrderRepository,
)

logger = structlog.get_logger(__name__)


class ExportOrderDjangoRepository(IExportOrderRepository):
    """Concrete ExportOrder repository backed by Django ORM."""

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    @transaction.atomic
    def create(self, data: Dict[str, Any]) -> ExportOrder:
        order = ExportOrder(**data)
        if not order.order_number:
            order.order_number = self.allocate_order_number(timezone.localdate())
        order.save()
        logger.info(
            "export_order.created",
            order_id=str(order.id),
            order_number=order.order_number,
        )
        return order

    @transaction.atomic
    def allocate_order_number(self, day: date) -> str:
        """Increment the per-day counter under ``SELECT ... FOR UPDATE``."""
        OrderNumberSequence.objects.get_or_create(day=day)
        sequence = OrderNumberSequence.objects.select_for_update().get(day=day)
        sequence.last_value += 1
        sequence.save(update_fields=["last_value"])
        return f"{ORDER_NUMBER_PREFIX}-{day:%Y%m%d}-{sequence.last_value:04d}"

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def get_by_id(self, id: str) -> Optional[ExportOrder]:
        """Returns ``None`` for non-existent or malformed IDs."""
        try:
            return ExportOrder.objects.filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def get_for_update(self, id: str) -> Optional[ExportOrder]:
        try:
            return ExportOrder.objects.select_for_update().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[ExportOrder]:
        queryset = ExportOrder.objects.all()
        if filters:
            queryset = queryset.filter(**filters)
        return list(queryset)

    # ------------------------------------------------------------------
    # Update
    # ------------------------------------------------------------------

    def save(self, entity: ExportOrder) -> ExportOrder:
        entity.save()
        return entity

    def update_anchor(self, order: ExportOrder, new_date: date) -> ExportOrder:
        field = order.anchor_field
        setattr(order, field, new_date)
        order.save(update_fields=[field])
        logger.info(
            "export_order.anchor_updated",
            order_id=str(order.id),
            field=field,
            new_date=new_date.isoformat(),
        )
        return order

    def mark_activated(self, order: ExportOrder) -> ExportOrder:
        order.activated_at = timezone.now()
        order.save(update_fields=["activated_at"])
        return order

    def mark_closed(
        self,
        order: ExportOrder,
        outcome: str,
        reason: str = "",
        approved_by: str = "",
    ) -> ExportOrder:
        order.outcome = outcome
        order.closed_at = timezone.now()
        order.termination_reason = reason
        order.termination_approved_by = approved_by
        order.save(
            update_fields=[
                "outcome",
                "closed_at",
                "termination_reason",
                "termination_approved_by",
            ]
        )
        logger.info(
            "export_order.closed",
            order_id=str(order.id),
            outcome=str(outcome),
        )
        return order


class CancelRequestDjangoRepository(ICancelRequestRepository):
    """Concrete cancel-request repository backed by Django ORM."""

    def create(self, data: Dict[str, Any]) -> CancelRequest:
        request = CancelRequest.objects.create(**data)
        logger.info(
            "cancel_request.created",
            cancel_request_id=str(request.id),
            order_id=str(request.order_id),
        )
        return request

    def get_by_id(self, id: str) -> Optional[CancelRequest]:
        try:
            return CancelRequest.objects.select_related("order").filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def get_for_update(self, id: str) -> Optional[CancelRequest]:
        try:
            return (
                CancelRequest.objects.select_for_update()
                .select_related("order")
                .filter(id=id)
                .first()
            )
        except (ValueError, ValidationError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[CancelRequest]:
        queryset = CancelRequest.objects.select_related("order")
        if filters:
            queryset = queryset.filter(**filters)
        return list(queryset)

    def save(self, entity: CancelRequest) -> CancelRequest:
        entity.save()
        return entity
