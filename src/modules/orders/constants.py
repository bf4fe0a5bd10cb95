"""Export-order attribute choices.

The trade term decides which anchor date drives the schedule:
``FOB`` uses the ship date (ETD), ``DDP`` the warehouse due date.
"""

from django.db import models


class TradeTerm(models.TextChoices):
    FOB = "FOB", "Free on board"
    DDP = "DDP", "Delivered duty paid"


class OrderType(models.TextChoices):
    SAMPLE = "sample", "Sample"
    BULK = "bulk", "Bulk"


class PackagingType(models.TextChoices):
    STANDARD = "standard", "Standard"
    CUSTOM = "custom", "Custom"


class OrderOutcome(models.TextChoices):
    """How a closed order ended; blank while the order is open."""

    COMPLETED = "completed", "Completed"
    CANCELLED = "cancelled", "Cancelled"


class CancelStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    APPROVED = "approved", "Approved"
    REJECTED = "rejected", "Rejected"


class CancelReason(models.TextChoices):
    CUSTOMER_CANCEL = "customer_cancel", "Customer cancelled"
    PRICING_ISSUE = "pricing_issue", "Pricing issue"
    CAPACITY_ISSUE = "capacity_issue", "Capacity issue"
    RISK_CONTROL = "risk_control", "Risk control"
    OTHER = "other", "Other"


ANCHOR_FIELD_BY_TRADE_TERM: dict[str, str] = {
    TradeTerm.FOB: "etd",
    TradeTerm.DDP: "warehouse_due_date",
}

ORDER_NUMBER_PREFIX = "EO"
