"""Models for the ITDesk asset registry, stock ledger and audit trail."""

import logging

from django.core.exceptions import ValidationError
from django.db import models
from django.dispatch import receiver
from django.utils import timezone

from .signals import stock_changed

logger = logging.getLogger(__name__)


class Asset(models.Model):
    """A tracked IT item: hardware, licence or consumable stock."""

    CATEGORY_CHOICES = [
        ("laptop", "Laptop"),
        ("network_device", "Network Device"),
        ("printer", "Printer"),
        ("license", "License"),
        ("scanner", "Scanner"),
        ("consumable", "Consumable"),
    ]

    STATUS_CHOICES = [
        ("in_use", "In Use"),
        ("available", "Available"),
        ("out_of_order", "Out of Order"),
        ("maintenance", "Maintenance"),
        ("retired", "Retired"),
    ]

    asset_id = models.CharField(
        max_length=100,
        unique=True,
        help_text="Business identifier printed on the asset label",
    )
    hostname = models.CharField(max_length=255, null=True, blank=True)
    product_name = models.CharField(max_length=255)
    serial_number = models.CharField(max_length=255)
    brand_name = models.CharField(max_length=255)
    model = models.CharField(max_length=255, null=True, blank=True)
    category = models.CharField(max_length=20, choices=CATEGORY_CHOICES)
    location = models.CharField(max_length=255, null=True, blank=True)
    assigned_user = models.CharField(max_length=255, null=True, blank=True)
    assigned_user_email = models.EmailField(null=True, blank=True)
    date_acquired = models.DateField(null=True, blank=True)
    warranty_expiry_date = models.DateField(null=True, blank=True)
    status = models.CharField(
        max_length=20, choices=STATUS_CHOICES, default="available"
    )
    comments = models.TextField(null=True, blank=True)
    qr_code_data = models.TextField(
        null=True,
        blank=True,
        help_text="JSON payload encoded in the asset's QR label",
    )
    is_consumable = models.BooleanField(default=False)
    quantity = models.PositiveIntegerField(
        default=0,
        help_text="Cached from the latest stock transaction",
    )
    min_stock_level = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "assets"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["category"], name="idx_assets_category"),
            models.Index(fields=["status"], name="idx_assets_status"),
            models.Index(
                fields=["assigned_user"], name="idx_assets_assigned_user"
            ),
            models.Index(
                fields=["warranty_expiry_date"],
                name="idx_assets_warranty_expiry",
            ),
            models.Index(
                fields=["serial_number"], name="idx_assets_serial_number"
            ),
        ]

    def __str__(self):
        return f"{self.asset_id} ({self.product_name})"

    @property
    def is_low_stock(self):
        return (
            self.is_consumable
            and self.status != "retired"
            and self.quantity <= self.min_stock_level
        )

    @property
    def stock_deficit(self):
        return self.quantity - self.min_stock_level


class StockTransaction(models.Model):
    """Immutable ledger entry recording one change to an asset's stock."""

    TYPE_CHOICES = [
        ("add", "Add"),
        ("remove", "Remove"),
        ("adjustment", "Adjustment"),
        ("initial", "Initial"),
    ]

    asset = models.ForeignKey(
        Asset, on_delete=models.CASCADE, related_name="stock_transactions"
    )
    transaction_type = models.CharField(max_length=20, choices=TYPE_CHOICES)
    quantity_change = models.IntegerField()
    quantity_before = models.PositiveIntegerField()
    quantity_after = models.PositiveIntegerField()
    performed_by = models.CharField(max_length=255)
    reason = models.TextField(null=True, blank=True)
    reference_number = models.CharField(max_length=100, null=True, blank=True)
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = "stock_transactions"
        ordering = ["-created_at", "-pk"]
        indexes = [
            models.Index(
                fields=["created_at"], name="idx_stock_tx_created_at"
            ),
            models.Index(
                fields=["transaction_type"], name="idx_stock_tx_type"
            ),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(
                    quantity_after=models.F("quantity_before")
                    + models.F("quantity_change")
                ),
                name="stock_tx_balanced",
            ),
        ]

    def __str__(self):
        return (
            f"{self.asset.asset_id} {self.get_transaction_type_display()} "
            f"{self.quantity_change:+d} -> {self.quantity_after}"
        )

    def save(self, *args, **kwargs):
        if self.pk is not None:
            raise ValidationError(
                "Stock transactions are immutable and cannot be modified."
            )
        if self.quantity_after != self.quantity_before + self.quantity_change:
            raise ValidationError(
                "quantity_after must equal quantity_before + quantity_change."
            )
        if self.quantity_after < 0:
            raise ValidationError("Stock cannot go below zero.")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError("Stock transactions cannot be deleted.")


class AssetAudit(models.Model):
    """Immutable outcome of validating one scanned code.

    Unmatched scans have no asset; they are reported with asset id 0.
    """

    STATUS_VALID = "valid"
    STATUS_INVALID = "invalid"
    STATUS_NOT_FOUND = "not_found"

    STATUS_CHOICES = [
        (STATUS_VALID, "Valid"),
        (STATUS_INVALID, "Invalid"),
        (STATUS_NOT_FOUND, "Not Found"),
    ]

    asset = models.ForeignKey(
        Asset,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="audits",
    )
    audited_by = models.CharField(max_length=255)
    audit_date = models.DateTimeField(default=timezone.now)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES)
    scanned_data = models.TextField(null=True, blank=True)
    notes = models.TextField(null=True, blank=True)

    class Meta:
        db_table = "asset_audits"
        ordering = ["-audit_date", "-pk"]
        indexes = [
            models.Index(
                fields=["audit_date"], name="idx_asset_audits_audit_date"
            ),
        ]

    def __str__(self):
        return f"Audit #{self.pk}: {self.get_status_display()}"

    @property
    def audited_asset_id(self):
        return self.asset_id or 0

    def save(self, *args, **kwargs):
        if self.pk is not None:
            raise ValidationError(
                "Audit records are immutable and cannot be modified."
            )
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError("Audit records cannot be deleted.")


class AssetTransfer(models.Model):
    """Immutable record of an asset changing hands or location."""

    asset = models.ForeignKey(
        Asset, on_delete=models.CASCADE, related_name="transfers"
    )
    from_user = models.CharField(max_length=255, null=True, blank=True)
    from_user_email = models.EmailField(null=True, blank=True)
    to_user = models.CharField(max_length=255, null=True, blank=True)
    to_user_email = models.EmailField(null=True, blank=True)
    from_location = models.CharField(max_length=255, null=True, blank=True)
    to_location = models.CharField(max_length=255, null=True, blank=True)
    transfer_date = models.DateTimeField(default=timezone.now)
    transferred_by = models.CharField(max_length=255)
    reason = models.TextField(null=True, blank=True)
    notes = models.TextField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "asset_transfer_history"
        ordering = ["-transfer_date", "-pk"]
        indexes = [
            models.Index(
                fields=["transfer_date"],
                name="idx_asset_transfer_date",
            ),
        ]

    def __str__(self):
        return (
            f"{self.asset.asset_id}: {self.from_user or '-'} -> "
            f"{self.to_user or '-'}"
        )

    def save(self, *args, **kwargs):
        if self.pk is not None:
            raise ValidationError(
                "Transfer records are immutable and cannot be modified."
            )
        super().save(*args, **kwargs)


@receiver(stock_changed)
def warn_on_low_stock(sender, asset, transaction, **kwargs):
    """Log when an adjustment leaves a consumable at or below its
    minimum level."""
    if asset.is_low_stock:
        logger.warning(
            "Low stock: %s has %d left (minimum %d)",
            asset.asset_id,
            transaction.quantity_after,
            asset.min_stock_level,
        )
