"""Reporter notifications: queueing and the delivery log."""

import logging

from django.conf import settings
from django.db.models import Count, Q

from accounts.permissions import require
from itdesk.exceptions import InvalidState

from .models import NotificationLog

logger = logging.getLogger(__name__)


def should_notify(ticket, action: str, status_changed: bool) -> bool:
    """Reporters hear about new tickets and status moves only."""
    if not ticket.reporter_email:
        return False
    return action == "created" or status_changed


def queue_ticket_notification(ticket_id: int, action: str) -> bool:
    """Hand the email to Celery.

    A broker failure is logged and swallowed: the ticket change has
    already committed and must not be reported as failed.
    """
    from .tasks import send_ticket_notification

    try:
        send_ticket_notification.delay(ticket_id, action)
    except Exception:
        logger.exception(
            "Could not queue %s notification for ticket #%s",
            action,
            ticket_id,
        )
        return False
    return True


def list_notification_logs(
    actor, *, ticket_pk=None, status=None, limit=None, offset=0
):
    """Return ``(logs, total)``, newest first. Admins only."""
    require(actor, "notification_log.read")
    queryset = NotificationLog.objects.select_related("ticket")
    if ticket_pk is not None:
        queryset = queryset.filter(ticket_id=ticket_pk)
    if status:
        if status not in dict(NotificationLog.STATUS_CHOICES):
            raise InvalidState(f"'{status}' is not a valid log status.")
        queryset = queryset.filter(status=status)

    if limit is None:
        limit = settings.DEFAULT_PAGE_SIZE
    if limit < 0 or offset < 0:
        raise InvalidState("limit and offset must not be negative.")

    total = queryset.count()
    return list(queryset[offset : offset + limit]), total


def notification_stats(actor, *, recent=10) -> dict:
    """Delivery totals, success rate as a percentage and the latest logs.

    ``total_sent`` counts every delivery attempt, failed ones included.
    Admins only.
    """
    require(actor, "notification_log.read")
    counts = NotificationLog.objects.aggregate(
        sent=Count("pk"),
        failed=Count("pk", filter=Q(status=NotificationLog.STATUS_FAILED)),
    )
    total_sent, total_failed = counts["sent"], counts["failed"]
    success_rate = (
        round((total_sent - total_failed) * 100 / total_sent, 2)
        if total_sent
        else 0
    )
    return {
        "total_sent": total_sent,
        "total_failed": total_failed,
        "success_rate": success_rate,
        "recent_logs": list(NotificationLog.objects.all()[:recent]),
    }
