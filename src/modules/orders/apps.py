from django.apps import AppConfig


class OrdersConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "modules.orders"
    label = "orders"

    def ready(self) -> None:
        from modules.orders.events import (
            CancelRequested,
            ExportOrderActivated,
            ExportOrderClosed,
            ExportOrderCreated,
        )
        from modules.orders.handlers import (
            cancel_requested_handler,
            export_order_activated_handler,
            export_order_closed_handler,
            export_order_created_handler,
        )
        from shared.infrastructure.bus import event_bus

        event_bus.subscribe(ExportOrderCreated, export_order_created_handler)
        event_bus.subscribe(ExportOrderActivated, export_order_activated_handler)
        event_bus.subscribe(CancelRequested, cancel_requested_handler)
        event_bus.subscribe(ExportOrderClosed, export_order_closed_handler)
