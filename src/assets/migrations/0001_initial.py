import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Asset",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                (
                    "asset_id",
                    models.CharField(
                        help_text="Business identifier printed on the asset label",
                        max_length=100,
                        unique=True,
                    ),
                ),
                (
                    "hostname",
                    models.CharField(blank=True, max_length=255, null=True),
                ),
                ("product_name", models.CharField(max_length=255)),
                ("serial_number", models.CharField(max_length=255)),
                ("brand_name", models.CharField(max_length=255)),
                (
                    "model",
                    models.CharField(blank=True, max_length=255, null=True),
                ),
                (
                    "category",
                    models.CharField(
                        choices=[
                            ("laptop", "Laptop"),
                            ("network_device", "Network Device"),
                            ("printer", "Printer"),
                            ("license", "License"),
                            ("scanner", "Scanner"),
                            ("consumable", "Consumable"),
                        ],
                        max_length=20,
                    ),
                ),
                (
                    "location",
                    models.CharField(blank=True, max_length=255, null=True),
                ),
                (
                    "assigned_user",
                    models.CharField(blank=True, max_length=255, null=True),
                ),
                (
                    "assigned_user_email",
                    models.EmailField(blank=True, max_length=254, null=True),
                ),
                ("date_acquired", models.DateField(blank=True, null=True)),
                (
                    "warranty_expiry_date",
                    models.DateField(blank=True, null=True),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("in_use", "In Use"),
                            ("available", "Available"),
                            ("out_of_order", "Out of Order"),
                            ("maintenance", "Maintenance"),
                            ("retired", "Retired"),
                        ],
                        default="available",
                        max_length=20,
                    ),
                ),
                ("comments", models.TextField(blank=True, null=True)),
                (
                    "qr_code_data",
                    models.TextField(
                        blank=True,
                        help_text="JSON payload encoded in the asset's QR label",
                        null=True,
                    ),
                ),
                ("is_consumable", models.BooleanField(default=False)),
                (
                    "quantity",
                    models.PositiveIntegerField(
                        default=0,
                        help_text="Cached from the latest stock transaction",
                    ),
                ),
                ("min_stock_level", models.PositiveIntegerField(default=0)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "db_table": "assets",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(
                        fields=["category"], name="idx_assets_category"
                    ),
                    models.Index(
                        fields=["status"], name="idx_assets_status"
                    ),
                    models.Index(
                        fields=["assigned_user"],
                        name="idx_assets_assigned_user",
                    ),
                    models.Index(
                        fields=["warranty_expiry_date"],
                        name="idx_assets_warranty_expiry",
                    ),
                    models.Index(
                        fields=["serial_number"],
                        name="idx_assets_serial_number",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="StockTransaction",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                (
                    "transaction_type",
                    models.CharField(
                        choices=[
                            ("add", "Add"),
                            ("remove", "Remove"),
                            ("adjustment", "Adjustment"),
                            ("initial", "Initial"),
                        ],
                        max_length=20,
                    ),
                ),
                ("quantity_change", models.IntegerField()),
                ("quantity_before", models.PositiveIntegerField()),
                ("quantity_after", models.PositiveIntegerField()),
                ("performed_by", models.CharField(max_length=255)),
                ("reason", models.TextField(blank=True, null=True)),
                (
                    "reference_number",
                    models.CharField(blank=True, max_length=100, null=True),
                ),
                (
                    "created_at",
                    models.DateTimeField(default=django.utils.timezone.now),
                ),
                (
                    "asset",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="stock_transactions",
                        to="assets.asset",
                    ),
                ),
            ],
            options={
                "db_table": "stock_transactions",
                "ordering": ["-created_at", "-pk"],
                "indexes": [
                    models.Index(
                        fields=["created_at"],
                        name="idx_stock_tx_created_at",
                    ),
                    models.Index(
                        fields=["transaction_type"], name="idx_stock_tx_type"
                    ),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(
                            quantity_after=models.F("quantity_before")
                            + models.F("quantity_change")
                        ),
                        name="stock_tx_balanced",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="AssetAudit",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                ("audited_by", models.CharField(max_length=255)),
                (
                    "audit_date",
                    models.DateTimeField(default=django.utils.timezone.now),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("valid", "Valid"),
                            ("invalid", "Invalid"),
                            ("not_found", "Not Found"),
                        ],
                        max_length=20,
                    ),
                ),
                ("scanned_data", models.TextField(blank=True, null=True)),
                ("notes", models.TextField(blank=True, null=True)),
                (
                    "asset",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="audits",
                        to="assets.asset",
                    ),
                ),
            ],
            options={
                "db_table": "asset_audits",
                "ordering": ["-audit_date", "-pk"],
                "indexes": [
                    models.Index(
                        fields=["audit_date"],
                        name="idx_asset_audits_audit_date",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="AssetTransfer",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                (
                    "from_user",
                    models.CharField(blank=True, max_length=255, null=True),
                ),
                (
                    "from_user_email",
                    models.EmailField(blank=True, max_length=254, null=True),
                ),
                (
                    "to_user",
                    models.CharField(blank=True, max_length=255, null=True),
                ),
                (
                    "to_user_email",
                    models.EmailField(blank=True, max_length=254, null=True),
                ),
                (
                    "from_location",
                    models.CharField(blank=True, max_length=255, null=True),
                ),
                (
                    "to_location",
                    models.CharField(blank=True, max_length=255, null=True),
                ),
                (
                    "transfer_date",
                    models.DateTimeField(default=django.utils.timezone.now),
                ),
                ("transferred_by", models.CharField(max_length=255)),
                ("reason", models.TextField(blank=True, null=True)),
                ("notes", models.TextField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "asset",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="transfers",
                        to="assets.asset",
                    ),
                ),
            ],
            options={
                "db_table": "asset_transfer_history",
                "ordering": ["-transfer_date", "-pk"],
                "indexes": [
                    models.Index(
                        fields=["transfer_date"],
                        name="idx_asset_transfer_date",
                    ),
                ],
            },
        ),
    ]
