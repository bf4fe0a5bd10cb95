import django.db.models.deletion
import uuid6
from django.db import migrations, models

STEP_KEY_CHOICES = [
    ("po_confirmed", "PO confirmed"),
    ("finance_approval", "Finance approval"),
    ("order_docs_complete", "Order documents complete"),
    ("rm_purchase_sheet_submit", "Raw material purchase sheet submitted"),
    ("finance_purchase_approval", "Finance purchase approval"),
    ("procurement_order_placed", "Procurement order placed"),
    ("materials_received_inspected", "Materials received and inspected"),
    ("pps_ready", "Pre-production sample ready"),
    ("pps_sent", "Pre-production sample sent"),
    ("pps_customer_approved", "Pre-production sample approved"),
    ("production_start", "Production start"),
    ("mid_qc_check", "Mid-production QC"),
    ("final_qc_check", "Final QC"),
    ("packaging_materials_ready", "Packaging materials ready"),
    ("packing_labeling_done", "Packing and labeling done"),
    ("third_party_inspection", "Third-party inspection"),
    ("booking_done", "Booking done"),
    ("shipment_done", "Shipment done"),
    ("payment_received", "Payment received"),
]

STATUS_CHOICES = [
    ("not_started", "Not started"),
    ("in_progress", "In progress"),
    ("blocked", "Blocked"),
    ("done", "Done"),
]

LOG_ACTION_CHOICES = [
    ("create", "Create"),
    ("update", "Update"),
    ("mark_in_progress", "Mark in progress"),
    ("mark_blocked", "Mark blocked"),
    ("unblock", "Unblock"),
    ("mark_done", "Mark done"),
    ("auto_advance", "Auto advance"),
    ("request_delay", "Request delay"),
    ("approve_delay", "Approve delay"),
    ("reject_delay", "Reject delay"),
    ("recalc_schedule", "Recalculate schedule"),
    ("upload_evidence", "Upload evidence"),
]

DOCUMENT_TYPE_CHOICES = [
    ("PO", "Customer purchase order"),
    ("PO_CONFIRM_EMAIL", "PO confirmation e-mail"),
    ("PRODUCTION_SHEET", "Production sheet"),
    ("PACKING_SPEC", "Packing specification"),
    ("PROCUREMENT_SHEET", "Procurement sheet"),
    ("SUPPLIER_PO", "Supplier purchase order"),
    ("IQC_REPORT", "Incoming QC report"),
    ("TEST_REPORT", "Test report"),
    ("SAMPLE_PHOTO", "Sample photo"),
    ("COURIER_RECEIPT", "Courier receipt"),
    ("CUSTOMER_APPROVAL", "Customer approval"),
    ("QA_REPORT", "QA report"),
    ("PACKING_MATERIAL_RECEIPT", "Packing material receipt"),
    ("LABEL_PHOTO", "Label photo"),
    ("BOOKING_CONFIRMATION", "Booking confirmation"),
    ("CI", "Commercial invoice"),
    ("PL", "Packing list"),
    ("BL_DRAFT", "Bill of lading draft"),
    ("PAYMENT_RECEIPT", "Payment receipt"),
    ("OTHER", "Other"),
]

DELAY_REASON_CHOICES = [
    ("customer_confirmation", "Waiting for customer confirmation"),
    ("supplier_delay", "Supplier delay"),
    ("internal_delay", "Internal delay"),
    ("logistics", "Logistics"),
    ("force_majeure", "Force majeure"),
    ("other", "Other"),
]


def _base_fields():
    return [
        (
            "id",
            models.UUIDField(
                default=uuid6.uuid7,
                editable=False,
                primary_key=True,
                serialize=False,
            ),
        ),
        ("created_at", models.DateTimeField(auto_now_add=True)),
        ("updated_at", models.DateTimeField(auto_now=True)),
    ]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("orders", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Milestone",
            fields=_base_fields()
            + [
                ("step_key", models.CharField(choices=STEP_KEY_CHOICES, max_length=40)),
                ("name", models.CharField(max_length=120)),
                ("sequence", models.PositiveSmallIntegerField(default=0)),
                ("owner_role", models.CharField(max_length=32)),
                ("owner_user_id", models.CharField(blank=True, default="", max_length=255)),
                ("planned_at", models.DateField()),
                ("due_at", models.DateField()),
                (
                    "status",
                    models.CharField(
                        choices=STATUS_CHOICES, default="not_started", max_length=20
                    ),
                ),
                ("notes", models.TextField(blank=True, default="")),
                ("is_required", models.BooleanField(default=True)),
                ("is_critical", models.BooleanField(default=False)),
                ("evidence_required", models.BooleanField(default=False)),
                ("predecessor_keys", models.JSONField(blank=True, default=list)),
                (
                    "order",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="milestones",
                        to="orders.exportorder",
                    ),
                ),
            ],
            options={
                "db_table": "milestones",
                "ordering": ["due_at", "sequence"],
                "indexes": [
                    models.Index(
                        fields=["status", "due_at"], name="milestones_status_due_idx"
                    ),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("order", "step_key"), name="milestones_order_step_uniq"
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="MilestoneLog",
            fields=_base_fields()
            + [
                ("actor_id", models.CharField(max_length=255)),
                ("actor_role", models.CharField(blank=True, default="", max_length=32)),
                ("action", models.CharField(choices=LOG_ACTION_CHOICES, max_length=32)),
                (
                    "from_status",
                    models.CharField(
                        blank=True, choices=STATUS_CHOICES, max_length=20, null=True
                    ),
                ),
                (
                    "to_status",
                    models.CharField(
                        blank=True, choices=STATUS_CHOICES, max_length=20, null=True
                    ),
                ),
                ("note", models.TextField(blank=True, default="")),
                ("payload", models.JSONField(blank=True, null=True)),
                (
                    "milestone",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="logs",
                        to="milestones.milestone",
                    ),
                ),
                (
                    "order",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="milestone_logs",
                        to="orders.exportorder",
                    ),
                ),
            ],
            options={
                "db_table": "milestone_logs",
                "ordering": ["-created_at", "-id"],
                "indexes": [
                    models.Index(
                        fields=["milestone", "-created_at"],
                        name="mlog_milestone_created_idx",
                    ),
                    models.Index(
                        fields=["order", "-created_at"], name="mlog_order_created_idx"
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="EvidenceAttachment",
            fields=_base_fields()
            + [
                (
                    "document_type",
                    models.CharField(
                        choices=DOCUMENT_TYPE_CHOICES, default="OTHER", max_length=32
                    ),
                ),
                ("file_name", models.CharField(max_length=255)),
                ("file_url", models.URLField(max_length=500)),
                ("uploaded_by", models.CharField(max_length=255)),
                (
                    "milestone",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="attachments",
                        to="milestones.milestone",
                    ),
                ),
                (
                    "order",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="attachments",
                        to="orders.exportorder",
                    ),
                ),
            ],
            options={
                "db_table": "evidence_attachments",
                "ordering": ["created_at"],
            },
        ),
        migrations.CreateModel(
            name="DelayRequest",
            fields=_base_fields()
            + [
                ("requested_by", models.CharField(max_length=255)),
                (
                    "reason_type",
                    models.CharField(choices=DELAY_REASON_CHOICES, max_length=32),
                ),
                ("reason_detail", models.TextField(blank=True, default="")),
                ("proposed_new_anchor_date", models.DateField(blank=True, null=True)),
                ("proposed_new_due_date", models.DateField(blank=True, null=True)),
                ("requires_customer_approval", models.BooleanField(default=False)),
                (
                    "customer_approval_evidence_url",
                    models.URLField(blank=True, default="", max_length=500),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("pending", "Pending"),
                            ("approved", "Approved"),
                            ("rejected", "Rejected"),
                        ],
                        default="pending",
                        max_length=10,
                    ),
                ),
                ("decided_by", models.CharField(blank=True, default="", max_length=255)),
                ("decided_at", models.DateTimeField(blank=True, null=True)),
                ("decision_note", models.TextField(blank=True, default="")),
                (
                    "milestone",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="delay_requests",
                        to="milestones.milestone",
                    ),
                ),
                (
                    "order",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="delay_requests",
                        to="orders.exportorder",
                    ),
                ),
            ],
            options={
                "db_table": "delay_requests",
                "ordering": ["-created_at"],
                "constraints": [
                    models.CheckConstraint(
                        condition=(
                            models.Q(
                                proposed_new_anchor_date__isnull=False,
                                proposed_new_due_date__isnull=True,
                            )
                            | models.Q(
                                proposed_new_anchor_date__isnull=True,
                                proposed_new_due_date__isnull=False,
                            )
                        ),
                        name="delay_requests_exactly_one_proposal",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="MilestoneReminder",
            fields=_base_fields()
            + [
                (
                    "kind",
                    models.CharField(
                        choices=[("due_soon", "Due soon"), ("overdue", "Overdue")],
                        max_length=10,
                    ),
                ),
                ("due_at", models.DateField()),
                (
                    "milestone",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="reminders",
                        to="milestones.milestone",
                    ),
                ),
            ],
            options={
                "db_table": "milestone_reminders",
                "ordering": ["-created_at"],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("milestone", "kind", "due_at"),
                        name="milestone_reminders_uniq",
                    ),
                ],
            },
        ),
    ]
