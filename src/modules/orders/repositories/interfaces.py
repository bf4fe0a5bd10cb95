"""Export-order repository interface.

Extends ``IRepository[ExportOrder]`` with order-number allocation,
row-locked reads, anchor updates used by delay recalculation and
close-out.  ``ICancelRequestRepository`` stores cancel requests.
"""

from __future__ import annotations

from abc import abstractmethod
from datetime import date
from typing import TYPE_CHECKING, Any, Dict, Optional

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.orders.models import CancelRequest, ExportOrder


class IExportOrderRepository(IRepository["ExportOrder"]):
    """Repository contract for the ExportOrder aggregate."""

    @abstractmethod
    def create(self, data: Dict[str, Any]) -> ExportOrder:
        """Create an order; ``data`` holds model field values."""

    @abstractmethod
    def get_for_update(self, id: str) -> Optional[ExportOrder]:
        """Retrieve an order with a row-level lock."""

    @abstractmethod
    def allocate_order_number(self, day: date) -> str:
        """Issue the next ``EO-YYYYMMDD-NNNN`` number for ``day``."""

    @abstractmethod
    def update_anchor(self, order: ExportOrder, new_date: date) -> ExportOrder:
        """Set the anchor field selected by the order's trade term."""

    @abstractmethod
    def mark_activated(self, order: ExportOrder) -> ExportOrder:
        """Stamp ``activated_at``."""

    @abstractmethod
    def mark_closed(
        self,
        order: ExportOrder,
        outcome: str,
        reason: str = "",
        approved_by: str = "",
    ) -> ExportOrder:
        """Set ``outcome`` and stamp ``closed_at``."""


class ICancelRequestRepository(IRepository["CancelRequest"]):
    """Repository contract for order cancel requests."""

    @abstractmethod
    def create(self, data: Dict[str, Any]) -> CancelRequest:
        """Create a pending cancel request."""

    @abstractmethod
    def get_for_update(self, id: str) -> Optional[CancelRequest]:
        """Retrieve a cancel request with a row-level lock."""
