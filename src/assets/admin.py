"""Admin configuration for assets app using django-unfold."""

from unfold.admin import ModelAdmin, TabularInline
from unfold.contrib.filters.admin import ChoicesDropdownFilter
from unfold.decorators import display

from django.contrib import admin

from accounts.identity import get_actor

from .models import Asset, AssetAudit, AssetTransfer, StockTransaction
from .services.registry import (
    UPDATABLE_FIELDS,
    create_asset,
    delete_asset,
    update_asset,
)


class ReadOnlyAdminMixin:
    """Append-only records are browsed, never edited, in the admin."""

    def has_add_permission(self, request, obj=None):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


# Rows removed together with their asset, never on their own
HISTORY_NAMES = frozenset(
    model._meta.verbose_name
    for model in (StockTransaction, AssetAudit, AssetTransfer)
)


class StockTransactionInline(ReadOnlyAdminMixin, TabularInline):
    model = StockTransaction
    extra = 0
    can_delete = False
    fields = [
        "transaction_type",
        "quantity_before",
        "quantity_change",
        "quantity_after",
        "performed_by",
        "reason",
        "created_at",
    ]
    readonly_fields = fields


@admin.register(Asset)
class AssetAdmin(ModelAdmin):
    list_display = [
        "display_header",
        "display_status",
        "category",
        "location",
        "assigned_user",
        "display_stock",
        "updated_at",
    ]
    list_filter = [
        ("status", ChoicesDropdownFilter),
        ("category", ChoicesDropdownFilter),
        "is_consumable",
    ]
    list_filter_submit = True
    search_fields = [
        "asset_id",
        "hostname",
        "product_name",
        "serial_number",
        "brand_name",
    ]
    readonly_fields = ["quantity", "qr_code_data", "created_at", "updated_at"]
    inlines = [StockTransactionInline]

    fieldsets = (
        (
            None,
            {
                "fields": (
                    "asset_id",
                    "hostname",
                    "product_name",
                    "serial_number",
                    "brand_name",
                    "model",
                    "category",
                    "status",
                )
            },
        ),
        (
            "Assignment",
            {
                "fields": (
                    "location",
                    "assigned_user",
                    "assigned_user_email",
                    "date_acquired",
                    "warranty_expiry_date",
                    "comments",
                ),
                "classes": ["tab"],
            },
        ),
        (
            "Stock",
            {
                "fields": (
                    "is_consumable",
                    "quantity",
                    "min_stock_level",
                ),
                "classes": ["tab"],
            },
        ),
        (
            "Label",
            {
                "fields": ("qr_code_data", "created_at", "updated_at"),
                "classes": ["tab"],
            },
        ),
    )

    @display(description="Asset", header=True, ordering="asset_id")
    def display_header(self, obj):
        return obj.asset_id, obj.product_name

    @display(
        description="Status",
        label={
            "in_use": "info",
            "available": "success",
            "out_of_order": "danger",
            "maintenance": "warning",
            "retired": "default",
        },
    )
    def display_status(self, obj):
        return obj.status

    @display(description="Stock", empty_value="-")
    def display_stock(self, obj):
        if not obj.is_consumable:
            return None
        return f"{obj.quantity} / min {obj.min_stock_level}"

    def get_readonly_fields(self, request, obj=None):
        readonly = list(super().get_readonly_fields(request, obj))
        if obj is not None:
            readonly.append("is_consumable")
        return readonly

    def save_model(self, request, obj, form, change):
        actor = get_actor(request.user)
        if change:
            changes = {
                name: form.cleaned_data[name]
                for name in form.changed_data
                if name in UPDATABLE_FIELDS
            }
            if changes:
                update_asset(actor, obj.pk, **changes)
        else:
            obj.pk = create_asset(actor, **form.cleaned_data).pk
        obj.refresh_from_db()

    def get_deleted_objects(self, objs, request):
        deleted, counts, perms_needed, protected = super().get_deleted_objects(
            objs, request
        )
        return deleted, counts, perms_needed - HISTORY_NAMES, protected

    def delete_model(self, request, obj):
        delete_asset(get_actor(request.user), obj.pk)

    def delete_queryset(self, request, queryset):
        actor = get_actor(request.user)
        for pk in queryset.values_list("pk", flat=True):
            delete_asset(actor, pk)


@admin.register(StockTransaction)
class StockTransactionAdmin(ReadOnlyAdminMixin, ModelAdmin):
    list_display = [
        "asset",
        "display_type",
        "quantity_before",
        "quantity_change",
        "quantity_after",
        "performed_by",
        "created_at",
    ]
    list_filter = [("transaction_type", ChoicesDropdownFilter)]
    search_fields = ["asset__asset_id", "reason", "reference_number"]
    date_hierarchy = "created_at"

    @display(
        description="Type",
        label={
            "add": "success",
            "remove": "warning",
            "adjustment": "info",
            "initial": "default",
        },
    )
    def display_type(self, obj):
        return obj.transaction_type


@admin.register(AssetAudit)
class AssetAuditAdmin(ReadOnlyAdminMixin, ModelAdmin):
    list_display = [
        "audit_date",
        "display_status",
        "asset",
        "audited_by",
        "scanned_data",
    ]
    list_filter = [("status", ChoicesDropdownFilter)]
    search_fields = ["asset__asset_id", "audited_by", "scanned_data"]
    date_hierarchy = "audit_date"

    @display(
        description="Result",
        label={
            "valid": "success",
            "invalid": "warning",
            "not_found": "danger",
        },
    )
    def display_status(self, obj):
        return obj.status


@admin.register(AssetTransfer)
class AssetTransferAdmin(ReadOnlyAdminMixin, ModelAdmin):
    list_display = [
        "asset",
        "from_user",
        "to_user",
        "from_location",
        "to_location",
        "transferred_by",
        "transfer_date",
    ]
    search_fields = ["asset__asset_id", "from_user", "to_user"]
    date_hierarchy = "transfer_date"
