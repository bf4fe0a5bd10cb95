import uuid6
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="ExportOrder",
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
                (
                    "order_number",
                    models.CharField(editable=False, max_length=20, unique=True),
                ),
                ("customer_name", models.CharField(max_length=200)),
                (
                    "trade_term",
                    models.CharField(
                        choices=[
                            ("FOB", "Free on board"),
                            ("DDP", "Delivered duty paid"),
                        ],
                        max_length=3,
                    ),
                ),
                ("etd", models.DateField(blank=True, null=True)),
                ("warehouse_due_date", models.DateField(blank=True, null=True)),
                (
                    "order_type",
                    models.CharField(
                        choices=[("sample", "Sample"), ("bulk", "Bulk")],
                        default="bulk",
                        max_length=10,
                    ),
                ),
                (
                    "packaging_type",
                    models.CharField(
                        choices=[("standard", "Standard"), ("custom", "Custom")],
                        default="standard",
                        max_length=10,
                    ),
                ),
                ("needs_pp_sample", models.BooleanField(default=True)),
                ("needs_third_party_qc", models.BooleanField(default=False)),
                ("created_by", models.CharField(max_length=255)),
                ("activated_at", models.DateTimeField(blank=True, null=True)),
                ("notes", models.TextField(blank=True, default="")),
            ],
            options={
                "db_table": "export_orders",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["trade_term"], name="export_orders_term_idx"),
                    models.Index(
                        fields=["-created_at"], name="export_orders_created_idx"
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="OrderNumberSequence",
            fields=[
                ("day", models.DateField(primary_key=True, serialize=False)),
                ("last_value", models.PositiveIntegerField(default=0)),
            ],
            options={
                "db_table": "export_order_number_sequences",
            },
        ),
    ]
