"""Export-order repositories package."""

from modules.orders.repositories.django_repository import (
    CancelRequestDjangoRepository,
    ExportOrderDjangoRepository,
)
from modules.orders.repositories.interfaces import (
    ICancelRequestRepository,
    IExportOrderRepository,
)

__all__ = [
    "IExportOrderRepository",
    "ICancelRequestRepository",
    "ExportOrderDjangoRepository",
    "CancelRequestDjangoRepository",
]
