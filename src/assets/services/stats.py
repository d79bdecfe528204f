"""Dashboard figures for the asset registry."""

from datetime import timedelta

from django.db.models import Count, Q
from django.utils import timezone

from accounts.permissions import require_role

from ..models import AssetAudit
from .registry import visible_assets

TOP_USERS = 10
WARRANTY_WINDOW_DAYS = 30
UNASSIGNED_LABEL = "Unassigned"


def _breakdown(queryset, field):
    return [
        {field: row[field], "count": row["count"]}
        for row in queryset.values(field)
        .annotate(count=Count("pk"))
        .order_by("-count", field)
    ]


def asset_stats(actor) -> dict:
    """Counts by category, status and user, warranties running out and
    audit coverage. Reporters only count assets assigned to them."""
    require_role(actor, "asset.read")
    assets = visible_assets(actor)
    today = timezone.localdate()

    by_user = [
        {
            "user": row["assigned_user"] or UNASSIGNED_LABEL,
            "count": row["count"],
        }
        for row in assets.values("assigned_user")
        .annotate(count=Count("pk"))
        .order_by("-count", "assigned_user")[:TOP_USERS]
    ]

    warranty_expiring_soon = assets.filter(
        warranty_expiry_date__gte=today,
        warranty_expiry_date__lte=today + timedelta(days=WARRANTY_WINDOW_DAYS),
    ).count()

    audits = AssetAudit.objects.filter(asset__in=assets)
    coverage = audits.aggregate(
        audited=Count("asset", distinct=True),
        valid=Count(
            "asset",
            distinct=True,
            filter=Q(status=AssetAudit.STATUS_VALID),
        ),
        invalid=Count(
            "asset",
            distinct=True,
            filter=Q(status=AssetAudit.STATUS_INVALID),
        ),
    )

    total = assets.count()
    return {
        "total_assets": total,
        "by_category": _breakdown(assets, "category"),
        "by_status": _breakdown(assets, "status"),
        "by_user": by_user,
        "warranty_expiring_soon": warranty_expiring_soon,
        "audit_progress": {
            "total_assets": total,
            "audited_assets": coverage["audited"],
            "valid_assets": coverage["valid"],
            "invalid_assets": coverage["invalid"],
        },
    }
