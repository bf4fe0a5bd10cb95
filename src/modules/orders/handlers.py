"""Event handlers for export-order domain events."""

from __future__ import annotations

import structlog

from modules.orders.events import (
    CancelRequested,
    ExportOrderActivated,
    ExportOrderClosed,
    ExportOrderCreated,
)
from shared.domain.bus import IEventHandler

logger = structlog.get_logger(__name__)


class ExportOrderCreatedHandler(IEventHandler[ExportOrderCreated]):
    def handle(self, event: ExportOrderCreated) -> None:
        logger.info(
            "export_order.created_event_handled",
            order_id=str(event.aggregate_id),
            order_number=event.order_number,
        )


class ExportOrderActivatedHandler(IEventHandler[ExportOrderActivated]):
    def handle(self, event: ExportOrderActivated) -> None:
        logger.info(
            "export_order.activated_event_handled",
            order_id=str(event.aggregate_id),
            milestone_count=event.milestone_count,
        )


class CancelRequestedHandler(IEventHandler[CancelRequested]):
    def handle(self, event: CancelRequested) -> None:
        logger.info("export_order.cancel_requested_event_handled", **event.as_log_fields())


class ExportOrderClosedHandler(IEventHandler[ExportOrderClosed]):
    def handle(self, event: ExportOrderClosed) -> None:
        logger.info(
            "export_order.closed_event_handled",
            order_id=str(event.aggregate_id),
            outcome=event.outcome,
            closed_by=event.closed_by,
        )


export_order_created_handler = ExportOrderCreatedHandler()
export_order_activated_handler = ExportOrderActivatedHandler()
cancel_requested_handler = CancelRequestedHandler()
export_order_closed_handler = ExportOrderClosedHandler()
