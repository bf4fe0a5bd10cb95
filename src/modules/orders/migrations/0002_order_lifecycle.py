import django.db.models.deletion
import uuid6
from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ("orders", "0001_initial"),
    ]

    operations = [
        migrations.AddField(
            model_name="exportorder",
            name="outcome",
            field=models.CharField(
                blank=True,
                choices=[("completed", "Completed"), ("cancelled", "Cancelled")],
                default="",
                max_length=10,
            ),
        ),
        migrations.AddField(
            model_name="exportorder",
            name="closed_at",
            field=models.DateTimeField(blank=True, null=True),
        ),
        migrations.AddField(
            model_name="exportorder",
            name="termination_reason",
            field=models.TextField(blank=True, default=""),
        ),
        migrations.AddField(
            model_name="exportorder",
            name="termination_approved_by",
            field=models.CharField(blank=True, default="", max_length=255),
        ),
        migrations.CreateModel(
            name="CancelRequest",
            fields=[
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
                ("requested_by", models.CharField(max_length=255)),
                (
                    "reason_type",
                    models.CharField(
                        choices=[
                            ("customer_cancel", "Customer cancelled"),
                            ("pricing_issue", "Pricing issue"),
                            ("capacity_issue", "Capacity issue"),
                            ("risk_control", "Risk control"),
                            ("other", "Other"),
                        ],
                        max_length=32,
                    ),
                ),
                ("reason_detail", models.TextField()),
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
                    "order",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="cancel_requests",
                        to="orders.exportorder",
                    ),
                ),
            ],
            options={
                "db_table": "export_order_cancel_requests",
                "ordering": ["-created_at"],
            },
        ),
    ]
