"""Domain events for the export-orders bounded context."""

from __future__ import annotations

from dataclasses import dataclass

from shared.domain.events import DomainEvent


@dataclass(frozen=True)
class ExportOrderCreated(DomainEvent):
    """Raised when an export order is created."""

    order_number: str = ""


@dataclass(frozen=True)
class ExportOrderActivated(DomainEvent):
    """Raised when an order's milestone set has been generated."""

    milestone_count: int = 0


@dataclass(frozen=True)
class CancelRequested(DomainEvent):
    """Raised when someone asks to cancel an order (``aggregate_id`` is the order)."""

    cancel_request_id: str = ""
    reason_type: str = ""
    requested_by: str = ""


@dataclass(frozen=True)
class ExportOrderClosed(DomainEvent):
    """Raised when an order is completed or cancelled."""

    outcome: str = ""
    closed_by: str = ""
