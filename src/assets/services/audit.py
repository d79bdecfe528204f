"""Asset audit validator: reconcile a scanned code with the registry.

A scan either carries the structured QR payload written at asset
creation (``{"company", "hostname", "serialNumber", "year"}``) or a raw
token such as a barcode. Every scan appends exactly one ``AssetAudit``
row, including scans that match nothing.
"""

import json
import logging
from dataclasses import dataclass

from django.conf import settings
from django.db import DatabaseError, transaction
from django.db.models import Q

from accounts.permissions import require
from itdesk.exceptions import Internal, InvalidState

from ..models import Asset, AssetAudit
from ..signals import audit_recorded

logger = logging.getLogger(__name__)

DEFAULT_FORMAT_LABEL = "QR Code"

MESSAGES = {
    "valid_structured": "Asset validated successfully (scanned via {via})",
    "valid_raw": "Asset found and validated (scanned via {via})",
    "invalid": "Asset data mismatch (scanned via {via})",
    "not_found": "Asset not found in database (scanned via {via})",
}


@dataclass(frozen=True)
class ScanResult:
    status: str
    message: str
    audit_id: int
    asset: Asset | None = None


def decode_payload(code_data: str) -> dict | None:
    """Return the structured payload, or None for a raw token."""
    try:
        payload = json.loads(code_data)
    except (TypeError, ValueError):
        return None
    if not isinstance(payload, dict):
        return None
    return payload


def _match_structured(payload: dict):
    serial = payload.get("serialNumber")
    hostname = payload.get("hostname")
    if not serial or not hostname:
        return AssetAudit.STATUS_NOT_FOUND, None
    serial, hostname = str(serial), str(hostname)

    asset = (
        Asset.objects.filter(serial_number=serial)
        .filter(Q(hostname=hostname) | Q(asset_id=hostname))
        .order_by("pk")
        .first()
    )
    if asset is None:
        return AssetAudit.STATUS_NOT_FOUND, None

    is_valid = asset.serial_number == serial and (
        asset.hostname == hostname or asset.asset_id == hostname
    )
    if is_valid:
        return AssetAudit.STATUS_VALID, asset
    return AssetAudit.STATUS_INVALID, asset


def _match_raw(code_data: str):
    lookup = Q()
    for field_name in settings.ASSET_SCAN_RAW_FIELDS:
        lookup |= Q(**{field_name: code_data})
    if not lookup:
        return AssetAudit.STATUS_NOT_FOUND, None

    asset = Asset.objects.filter(lookup).order_by("pk").first()
    if asset is None:
        return AssetAudit.STATUS_NOT_FOUND, None
    return AssetAudit.STATUS_VALID, asset


def classify_scan(code_data: str):
    """Return ``(status, asset, message_key)`` for a scanned code.

    Reads the registry only; writes nothing.
    """
    payload = decode_payload(code_data)
    if payload is not None:
        status, asset = _match_structured(payload)
    else:
        status, asset = _match_raw(code_data)

    key = status
    if status == AssetAudit.STATUS_VALID:
        key = "valid_raw" if payload is None else "valid_structured"
    return status, asset, key


def scan_asset(actor, code_data, code_format=None, notes=None) -> ScanResult:
    """Validate a scanned code and record the outcome.

    ``not_found`` and ``invalid`` are results, not errors. Raises only
    for a denied actor, an empty scan, or a storage failure.
    """
    require(actor, "asset.scan")
    if not code_data:
        raise InvalidState("Scanned code data is required.")

    status, asset, key = classify_scan(code_data)
    scanned = f"{code_format}: {code_data}" if code_format else code_data

    try:
        with transaction.atomic():
            audit = AssetAudit.objects.create(
                asset=asset,
                audited_by=actor.full_name,
                status=status,
                scanned_data=scanned,
                notes=notes or None,
            )
            transaction.on_commit(
                lambda: audit_recorded.send(
                    sender=AssetAudit, audit=audit, asset=asset, actor=actor
                )
            )
    except DatabaseError as exc:
        logger.exception("Failed to record audit for scan %r", scanned)
        raise Internal("Failed to record audit.") from exc

    logger.info(
        "Audit #%s by %s: %s (%s)",
        audit.pk,
        actor.full_name,
        status,
        asset.asset_id if asset else "no match",
    )
    message = MESSAGES[key].format(via=code_format or DEFAULT_FORMAT_LABEL)
    return ScanResult(
        status=status, message=message, audit_id=audit.pk, asset=asset
    )


def list_audits(actor, asset_pk=None, limit=None, offset=0):
    """Return ``(audits, total)``, newest first.

    ``asset_pk=0`` selects scans that matched no asset.
    """
    require(actor, "asset.audit_read")
    queryset = AssetAudit.objects.select_related("asset")
    if asset_pk == 0:
        queryset = queryset.filter(asset__isnull=True)
    elif asset_pk is not None:
        queryset = queryset.filter(asset_id=asset_pk)

    if limit is None:
        limit = settings.DEFAULT_PAGE_SIZE
    if limit < 0 or offset < 0:
        raise InvalidState("limit and offset must not be negative.")

    queryset = queryset.order_by("-audit_date", "-pk")
    total = queryset.count()
    return list(queryset[offset : offset + limit]), total
