"""Export-order domain exceptions.

Raised by the Service Layer; the API layer translates them into the
standard error body.
"""

from __future__ import annotations

from modules.core.exceptions import DomainError


class ExportOrderError(DomainError):
    """Base class for export-order rule violations."""

    code = "export_order_error"


class ExportOrderNotFound(ExportOrderError):
    """The requested export order does not exist."""

    code = "export_order_not_found"
    default_detail = "Export order not found."


class InvalidExportOrder(ExportOrderError):
    """Input fails the export-order rules (blank customer, missing anchor)."""

    code = "invalid_export_order"


class OrderClosed(ExportOrderError):
    """The order is completed or cancelled; its milestones are frozen."""

    code = "order_closed"
    default_detail = "The order is already closed."


class OrderNotCompletable(ExportOrderError):
    """Completion needs an activated order whose milestones are all done.

    ``open_steps`` lists the step keys still outstanding.
    """

    code = "order_not_completable"


class OrderActionNotAllowed(ExportOrderError):
    """Only the order creator or an administrator closes or cancels an order."""

    code = "order_action_not_allowed"
    default_detail = "Only the order creator or an administrator can do this."


class InvalidCancelRequest(ExportOrderError):
    code = "invalid_cancel_request"


class CancelRequestNotFound(ExportOrderError):
    code = "cancel_request_not_found"
    default_detail = "Cancel request not found."


class CancelRequestAlreadyDecided(ExportOrderError):
    code = "cancel_request_already_decided"
    default_detail = "The cancel request has already been decided."
