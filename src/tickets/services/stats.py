"""Dashboard figures for tickets, scoped to what the actor can see."""

from datetime import datetime, time, timedelta

from django.db.models import Count, Q
from django.db.models.functions import Coalesce, TruncDate
from django.utils import timezone

from ..models import Ticket
from .workflow import visible_tickets

TREND_DAYS = 7
TOP_ENGINEERS = 10
UNASSIGNED_LABEL = "Unassigned"


def ticket_stats(actor) -> dict:
    """Status counts, tickets opened this month, daily trend and load
    per engineer.

    Engineers only count tickets assigned to them and reporters their
    own, so every role gets a dashboard without a separate policy check.
    """
    queryset = visible_tickets(actor)
    today = timezone.localdate()
    month_start = timezone.make_aware(datetime(today.year, today.month, 1))

    counts = queryset.aggregate(
        total=Coalesce(Count("pk"), 0),
        open=Coalesce(Count("pk", filter=Q(status=Ticket.STATUS_OPEN)), 0),
        in_progress=Coalesce(
            Count("pk", filter=Q(status=Ticket.STATUS_IN_PROGRESS)), 0
        ),
        resolved=Coalesce(
            Count("pk", filter=Q(status=Ticket.STATUS_RESOLVED)), 0
        ),
        closed=Coalesce(Count("pk", filter=Q(status=Ticket.STATUS_CLOSED)), 0),
        monthly=Coalesce(
            Count("pk", filter=Q(created_at__gte=month_start)), 0
        ),
    )

    trend_start = timezone.make_aware(
        datetime.combine(today - timedelta(days=TREND_DAYS), time.min)
    )
    trends = [
        {"date": row["day"].isoformat(), "count": row["count"]}
        for row in queryset.filter(created_at__gte=trend_start)
        .annotate(day=TruncDate("created_at"))
        .values("day")
        .annotate(count=Count("pk"))
        .order_by("-day")[:TREND_DAYS]
    ]

    engineer_stats = [
        {
            "engineer": row["assigned_engineer"] or UNASSIGNED_LABEL,
            "count": row["count"],
        }
        for row in queryset.values("assigned_engineer")
        .annotate(count=Count("pk"))
        .order_by("-count", "assigned_engineer")[:TOP_ENGINEERS]
    ]

    return {**counts, "trends": trends, "engineer_stats": engineer_stats}
