"""Export-order service layer (Use Cases).

Business rules enforced:
- The anchor date required by the trade term is present (DTO validation).
- Order numbers are issued by the repository's serializing allocator.
- The creator recorded on the order is the acting user.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, List, Optional

import structlog
from django.db import transaction

from modules.orders.events import ExportOrderCreated
from modules.orders.exceptions import ExportOrderNotFound
from shared.infrastructure.bus import event_bus

if TYPE_CHECKING:
    from modules.core.actors import Actor
    from modules.orders.dtos import CreateExportOrderDTO
    from modules.orders.models import ExportOrder
    from modules.orders.repositories.interfaces import IExportOrderRepository

logger = structlog.get_logger(__name__)


class ExportOrderService:
    """Application service for export-order use-cases."""

    def __init__(self, order_repository: IExportOrderRepository) -> None:
        self._order_repo = order_repository

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    @transaction.atomic
    def create_order(self, dto: CreateExportOrderDTO, actor: Actor) -> ExportOrder:
        order = self._order_repo.create(
            {
                "customer_name": dto.customer_name,
                "trade_term": dto.trade_term,
                "etd": dto.etd,
                "warehouse_due_date": dto.warehouse_due_date,
                "order_type": dto.order_type,
                "packaging_type": dto.packaging_type,
                "needs_pp_sample": dto.needs_pp_sample,
                "needs_third_party_qc": dto.needs_third_party_qc,
                "notes": dto.notes,
                "created_by": actor.user_id,
            }
        )
        logger.info(
            "export_order.creation_completed",
            order_id=str(order.id),
            order_number=order.order_number,
            trade_term=str(order.trade_term),
            actor_id=actor.user_id,
        )
        event = ExportOrderCreated(aggregate_id=order.id, order_number=order.order_number)
        transaction.on_commit(lambda: event_bus.publish(event))
        return order

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_order(self, order_id: str) -> ExportOrder:
        order = self._order_repo.get_by_id(str(order_id))
        if order is None:
            raise ExportOrderNotFound(f"Export order {order_id} not found.")
        return order

    def list_orders(self, filters: Optional[Dict[str, Any]] = None) -> List[ExportOrder]:
        return self._order_repo.list(filters)
