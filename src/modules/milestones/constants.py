"""Milestone domain constants.

Defines step keys, the status state machine, audit actions, delay
request choices and the scheduling policy constants.
"""

from django.db import models


class StepKey(models.TextChoices):
    PO_CONFIRMED = "po_confirmed", "PO confirmed"
    FINANCE_APPROVAL = "finance_approval", "Finance approval"
    ORDER_DOCS_COMPLETE = "order_docs_complete", "Order documents complete"
    RM_PURCHASE_SHEET_SUBMIT = "rm_purchase_sheet_submit", "Raw material purchase sheet submitted"
    FINANCE_PURCHASE_APPROVAL = "finance_purchase_approval", "Finance purchase approval"
    PROCUREMENT_ORDER_PLACED = "procurement_order_placed", "Procurement order placed"
    MATERIALS_RECEIVED_INSPECTED = "materials_received_inspected", "Materials received and inspected"
    PPS_READY = "pps_ready", "Pre-production sample ready"
    PPS_SENT = "pps_sent", "Pre-production sample sent"
    PPS_CUSTOMER_APPROVED = "pps_customer_approved", "Pre-production sample approved"
    PRODUCTION_START = "production_start", "Production start"
    MID_QC_CHECK = "mid_qc_check", "Mid-production QC"
    FINAL_QC_CHECK = "final_qc_check", "Final QC"
    PACKAGING_MATERIALS_READY = "packaging_materials_ready", "Packaging materials ready"
    PACKING_LABELING_DONE = "packing_labeling_done", "Packing and labeling done"
    THIRD_PARTY_INSPECTION = "third_party_inspection", "Third-party inspection"
    BOOKING_DONE = "booking_done", "Booking done"
    SHIPMENT_DONE = "shipment_done", "Shipment done"
    PAYMENT_RECEIVED = "payment_received", "Payment received"


class MilestoneStatus(models.TextChoices):
    NOT_STARTED = "not_started", "Not started"
    IN_PROGRESS = "in_progress", "In progress"
    BLOCKED = "blocked", "Blocked"
    DONE = "done", "Done"


VALID_TRANSITIONS: dict[str, set[str]] = {
    MilestoneStatus.NOT_STARTED: {MilestoneStatus.IN_PROGRESS, MilestoneStatus.BLOCKED},
    MilestoneStatus.IN_PROGRESS: {MilestoneStatus.BLOCKED, MilestoneStatus.DONE},
    MilestoneStatus.BLOCKED: {MilestoneStatus.IN_PROGRESS},
    MilestoneStatus.DONE: set(),
}

TERMINAL_STATES: set[str] = {MilestoneStatus.DONE}


class LogAction(models.TextChoices):
    CREATE = "create", "Create"
    UPDATE = "update", "Update"
    MARK_IN_PROGRESS = "mark_in_progress", "Mark in progress"
    MARK_BLOCKED = "mark_blocked", "Mark blocked"
    UNBLOCK = "unblock", "Unblock"
    MARK_DONE = "mark_done", "Mark done"
    AUTO_ADVANCE = "auto_advance", "Auto advance"
    REQUEST_DELAY = "request_delay", "Request delay"
    APPROVE_DELAY = "approve_delay", "Approve delay"
    REJECT_DELAY = "reject_delay", "Reject delay"
    RECALC_SCHEDULE = "recalc_schedule", "Recalculate schedule"
    UPLOAD_EVIDENCE = "upload_evidence", "Upload evidence"


class DelayStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    APPROVED = "approved", "Approved"
    REJECTED = "rejected", "Rejected"


class DelayReason(models.TextChoices):
    CUSTOMER_CONFIRMATION = "customer_confirmation", "Waiting for customer confirmation"
    SUPPLIER_DELAY = "supplier_delay", "Supplier delay"
    INTERNAL_DELAY = "internal_delay", "Internal delay"
    LOGISTICS = "logistics", "Logistics"
    FORCE_MAJEURE = "force_majeure", "Force majeure"
    OTHER = "other", "Other"


class ReminderKind(models.TextChoices):
    DUE_SOON = "due_soon", "Due soon"
    OVERDUE = "overdue", "Overdue"


class HealthColor(models.TextChoices):
    GREEN = "GREEN", "On track"
    YELLOW = "YELLOW", "At risk"
    RED = "RED", "Off track"


BLOCKED_REASON_PREFIX = "Blocked reason: "

# Scheduling policy
CUSTOM_PACKAGING_EXTENSION_DAYS = 5
SAMPLE_COMPRESSION_RATIO = 0.5
BOOKING_LEAD_DAYS: dict[str, int] = {"FOB": 5, "DDP": 15}
