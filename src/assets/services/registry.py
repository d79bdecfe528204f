"""Asset registry: create, import, read, list and delete assets."""

import json
import logging
from datetime import date

from django.conf import settings
from django.db import DatabaseError, IntegrityError, transaction
from django.db.models import Q
from django.utils import timezone
from django.utils.dateparse import parse_date

from accounts.permissions import authorize, require, require_role
from itdesk.db import lock_row
from itdesk.exceptions import (
    Conflict,
    InvalidState,
    NotFound,
    PermissionDenied,
    ServiceError,
)

from ..models import Asset
from .stock import initialise_stock

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("asset_id", "product_name", "serial_number", "brand_name")

OPTIONAL_FIELDS = (
    "hostname",
    "model",
    "location",
    "assigned_user",
    "assigned_user_email",
    "comments",
)

# Explicit whitelist of sortable fields
SORT_FIELDS = {"id", "asset_id", "product_name", "date_acquired", "created_at"}

# Fields update_asset accepts; engineers are limited to STATUS_FIELDS
UPDATABLE_FIELDS = (
    REQUIRED_FIELDS
    + OPTIONAL_FIELDS
    + (
        "category",
        "status",
        "date_acquired",
        "warranty_expiry_date",
        "min_stock_level",
    )
)
STATUS_FIELDS = frozenset(("status", "comments"))

# Changing any of these rebuilds the QR payload
QR_FIELDS = frozenset(
    ("asset_id", "hostname", "serial_number", "date_acquired")
)

DEFAULT_IMPORT_CATEGORY = "laptop"
DEFAULT_STATUS = "available"


def build_qr_payload(
    asset_id, serial_number, hostname=None, date_acquired=None
):
    """JSON payload encoded in the asset's QR label."""
    year = date_acquired.year if date_acquired else timezone.now().year
    return json.dumps(
        {
            "company": settings.QR_COMPANY_NAME,
            "hostname": hostname or asset_id,
            "serialNumber": serial_number,
            "year": year,
        }
    )


def _as_date(value, label):
    if value in (None, ""):
        return None
    if isinstance(value, date):
        return value
    parsed = parse_date(str(value))
    if parsed is None:
        raise InvalidState(f"{label} '{value}' is not a valid date.")
    return parsed


def _as_count(value, label):
    if value in (None, ""):
        return 0
    try:
        count = int(value)
    except (TypeError, ValueError):
        raise InvalidState(f"{label} must be a whole number.")
    if count < 0:
        raise InvalidState(f"{label} cannot be negative.")
    return count


def _create(actor, data: dict) -> Asset:
    missing = [name for name in REQUIRED_FIELDS if not data.get(name)]
    if missing:
        raise InvalidState(
            f"Missing required fields: {', '.join(missing)}."
        )
    category = data.get("category")
    if category not in dict(Asset.CATEGORY_CHOICES):
        raise InvalidState(f"'{category}' is not a valid category.")
    status = data.get("status") or DEFAULT_STATUS
    if status not in dict(Asset.STATUS_CHOICES):
        raise InvalidState(f"'{status}' is not a valid status.")

    is_consumable = data.get("is_consumable")
    if is_consumable is None:
        is_consumable = category == "consumable"
    quantity = _as_count(data.get("quantity"), "Quantity")
    min_stock_level = _as_count(
        data.get("min_stock_level"), "Minimum stock level"
    )
    date_acquired = _as_date(data.get("date_acquired"), "Date acquired")
    warranty_expiry_date = _as_date(
        data.get("warranty_expiry_date"), "Warranty expiry date"
    )

    asset_id = data["asset_id"]
    if Asset.objects.filter(asset_id=asset_id).exists():
        raise Conflict(f"Asset ID {asset_id} already exists.")

    optional = {name: data.get(name) or None for name in OPTIONAL_FIELDS}
    try:
        with transaction.atomic():
            asset = Asset.objects.create(
                asset_id=asset_id,
                product_name=data["product_name"],
                serial_number=data["serial_number"],
                brand_name=data["brand_name"],
                category=category,
                status=status,
                date_acquired=date_acquired,
                warranty_expiry_date=warranty_expiry_date,
                qr_code_data=build_qr_payload(
                    asset_id,
                    data["serial_number"],
                    optional["hostname"],
                    date_acquired,
                ),
                is_consumable=is_consumable,
                min_stock_level=min_stock_level if is_consumable else 0,
                **optional,
            )
            if is_consumable and quantity:
                initialise_stock(
                    asset, quantity, performed_by=actor.full_name
                )
    except IntegrityError as exc:
        raise Conflict(f"Asset ID {asset_id} already exists.") from exc
    return asset


def create_asset(actor, **data) -> Asset:
    """Register a new asset and generate its QR payload.

    A consumable's opening quantity is written through the ledger as an
    ``initial`` transaction.
    """
    require(actor, "asset.create")
    asset = _create(actor, data)
    logger.info("Asset %s created by actor #%s", asset.asset_id, actor.id)
    return asset


def _clean_changes(changes: dict) -> dict:
    data = {}
    for name, value in changes.items():
        if name in REQUIRED_FIELDS:
            if not value:
                raise InvalidState(f"{name} is required.")
            data[name] = value
        elif name == "category":
            if value not in dict(Asset.CATEGORY_CHOICES):
                raise InvalidState(f"'{value}' is not a valid category.")
            data[name] = value
        elif name == "status":
            if value not in dict(Asset.STATUS_CHOICES):
                raise InvalidState(f"'{value}' is not a valid status.")
            data[name] = value
        elif name == "date_acquired":
            data[name] = _as_date(value, "Date acquired")
        elif name == "warranty_expiry_date":
            data[name] = _as_date(value, "Warranty expiry date")
        elif name == "min_stock_level":
            data[name] = _as_count(value, "Minimum stock level")
        else:
            data[name] = value or None
    return data


def update_asset(actor, asset_pk, **changes) -> Asset:
    """Apply a partial update.

    Engineers may change ``status`` and ``comments`` only; any other
    field needs an admin. The QR payload is rebuilt whenever a field it
    encodes changes. Stock levels move through the ledger, never here.
    """
    unknown = set(changes) - set(UPDATABLE_FIELDS)
    if unknown:
        raise InvalidState(
            f"Cannot update field(s): {', '.join(sorted(unknown))}."
        )
    if not changes:
        raise InvalidState("No fields to update.")

    require(actor, "asset.update_status")
    if set(changes) - STATUS_FIELDS:
        require(actor, "asset.update_fields")
    data = _clean_changes(changes)

    with transaction.atomic():
        try:
            asset = lock_row(Asset.objects.all(), pk=asset_pk)
        except Asset.DoesNotExist:
            raise NotFound("Asset not found.")

        new_id = data.get("asset_id")
        if (
            new_id
            and new_id != asset.asset_id
            and Asset.objects.filter(asset_id=new_id).exists()
        ):
            raise Conflict(f"Asset ID {new_id} already exists.")

        for name, value in data.items():
            setattr(asset, name, value)
        changed = list(data)
        if QR_FIELDS.intersection(data):
            asset.qr_code_data = build_qr_payload(
                asset.asset_id,
                asset.serial_number,
                asset.hostname,
                asset.date_acquired,
            )
            changed.append("qr_code_data")
        try:
            asset.save(update_fields=changed + ["updated_at"])
        except IntegrityError as exc:
            raise Conflict(f"Asset ID {new_id} already exists.") from exc

    logger.info(
        "Asset %s updated by actor #%s: %s",
        asset.asset_id,
        actor.id,
        ", ".join(changed),
    )
    return asset


def _normalise_import_row(row: dict) -> dict:
    data = dict(row)
    category = str(data.get("category") or "").strip().lower()
    if category not in dict(Asset.CATEGORY_CHOICES):
        category = DEFAULT_IMPORT_CATEGORY
    data["category"] = category

    status = str(data.get("status") or "").strip().lower()
    status = "_".join(status.split())
    if status not in dict(Asset.STATUS_CHOICES):
        status = DEFAULT_STATUS
    data["status"] = status

    if not data.get("assigned_user_email") and data.get("pic"):
        data["assigned_user_email"] = data["pic"]
    data.pop("pic", None)
    data["is_consumable"] = category == "consumable"
    return data


def bulk_import_assets(actor, rows) -> dict:
    """Create assets from parsed spreadsheet rows.

    Each row runs in its own savepoint, so a bad row never undoes the
    rows before it. Row numbers in the report count the header row.
    """
    require(actor, "asset.bulk_import")
    rows = list(rows)
    report = {
        "total_rows": len(rows),
        "success_count": 0,
        "error_count": 0,
        "errors": [],
        "created_assets": [],
    }

    for index, row in enumerate(rows):
        row_number = index + 2
        try:
            with transaction.atomic():
                asset = _create(actor, _normalise_import_row(row))
        except (ServiceError, DatabaseError) as exc:
            report["error_count"] += 1
            report["errors"].append(
                {"row": row_number, "error": str(exc), "data": row}
            )
            continue
        report["success_count"] += 1
        report["created_assets"].append(asset)

    logger.info(
        "Bulk import by actor #%s: %d created, %d failed",
        actor.id,
        report["success_count"],
        report["error_count"],
    )
    return report


def is_assigned_user(actor, asset: Asset) -> bool:
    by_email = bool(asset.assigned_user_email) and (
        asset.assigned_user_email == actor.email
    )
    by_name = bool(asset.assigned_user) and (
        asset.assigned_user == actor.full_name
    )
    return by_email or by_name


def check_asset_access(actor, asset: Asset) -> None:
    """Raise unless the actor may see the asset; reporters get NotFound."""
    decision = authorize(
        actor.role,
        "asset.read",
        is_assigned_user=is_assigned_user(actor, asset),
    )
    if decision:
        return
    if actor.is_reporter:
        raise NotFound("Asset not found.")
    raise PermissionDenied(decision.reason)


def get_asset(actor, asset_pk) -> Asset:
    require_role(actor, "asset.read")
    try:
        asset = Asset.objects.get(pk=asset_pk)
    except Asset.DoesNotExist:
        raise NotFound("Asset not found.")
    check_asset_access(actor, asset)
    return asset


def visible_assets(actor):
    """Assets the actor may see; reporters only see their own."""
    queryset = Asset.objects.all()
    if actor.is_reporter:
        owned = Q(pk__in=[])
        if actor.email:
            owned |= Q(assigned_user_email=actor.email)
        if actor.full_name:
            owned |= Q(assigned_user=actor.full_name)
        queryset = queryset.filter(owned)
    return queryset


def list_assets(
    actor,
    *,
    category=None,
    status=None,
    assigned_user=None,
    search=None,
    limit=None,
    offset=0,
    sort_field="created_at",
    sort_order="desc",
):
    """Return ``(assets, total)``; reporters only see their own."""
    require_role(actor, "asset.read")
    queryset = visible_assets(actor)

    if category:
        queryset = queryset.filter(category=category)
    if status:
        queryset = queryset.filter(status=status)
    if assigned_user == "unassigned":
        queryset = queryset.filter(assigned_user__isnull=True)
    elif assigned_user:
        queryset = queryset.filter(
            Q(assigned_user__icontains=assigned_user)
            | Q(assigned_user_email__icontains=assigned_user)
        )
    if search:
        queryset = queryset.filter(
            Q(asset_id__icontains=search)
            | Q(hostname__icontains=search)
            | Q(product_name__icontains=search)
            | Q(serial_number__icontains=search)
            | Q(brand_name__icontains=search)
        )

    if sort_field not in SORT_FIELDS:
        raise InvalidState(f"Cannot sort by '{sort_field}'.")
    prefix = "" if sort_order == "asc" else "-"
    queryset = queryset.order_by(f"{prefix}{sort_field}", f"{prefix}pk")

    if limit is None:
        limit = settings.DEFAULT_PAGE_SIZE
    if limit < 0 or offset < 0:
        raise InvalidState("limit and offset must not be negative.")

    total = queryset.count()
    return list(queryset[offset : offset + limit]), total


def delete_asset(actor, asset_pk) -> None:
    """Delete an asset along with its ledger, audits and transfers."""
    require(actor, "asset.delete")
    with transaction.atomic():
        try:
            asset = lock_row(Asset.objects.all(), pk=asset_pk)
        except Asset.DoesNotExist:
            raise NotFound("Asset not found.")
        asset_id = asset.asset_id
        asset.delete()
    logger.info("Asset %s deleted by actor #%s", asset_id, actor.id)
