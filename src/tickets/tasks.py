"""Celery tasks for the tickets app."""

import logging
import time

from celery import shared_task

from django.conf import settings
from django.core.mail import EmailMultiAlternatives

logger = logging.getLogger(__name__)


@shared_task(
    bind=True,
    max_retries=settings.NOTIFICATION_MAX_RETRIES,
    default_retry_delay=60,
    autoretry_for=(Exception,),
    retry_backoff=True,
)
def send_ticket_notification(self, ticket_id: int, action: str) -> dict:
    """Email the reporter about a ticket event and log the delivery.

    Every attempt is recorded in the notification log; a failed send is
    re-raised so Celery retries with backoff.
    """
    from .email import build_ticket_email
    from .models import NotificationLog, Ticket

    try:
        ticket = Ticket.objects.get(pk=ticket_id)
    except Ticket.DoesNotExist:
        logger.info(
            "Ticket #%s no longer exists, skipping %s notification",
            ticket_id,
            action,
        )
        return {"success": False, "reason": "Ticket not found"}

    if not ticket.reporter_email:
        logger.info(
            "Ticket #%s has no reporter email, skipping notification",
            ticket_id,
        )
        return {"success": False, "reason": "No reporter email provided"}

    subject, text_body, html_body = build_ticket_email(ticket, action)
    started = time.monotonic()
    try:
        msg = EmailMultiAlternatives(
            subject=subject,
            body=text_body,
            from_email=settings.DEFAULT_FROM_EMAIL,
            to=[ticket.reporter_email],
        )
        msg.attach_alternative(html_body, "text/html")
        msg.send()
    except Exception as exc:
        NotificationLog.objects.create(
            ticket=ticket,
            recipient_email=ticket.reporter_email,
            action=action,
            status=NotificationLog.STATUS_FAILED,
            details={
                "subject": subject,
                "error": str(exc),
                "attempt": self.request.retries + 1,
            },
        )
        logger.warning(
            "Email '%s' to %s failed (attempt %d): %s",
            subject,
            ticket.reporter_email,
            self.request.retries + 1,
            exc,
        )
        raise

    duration_ms = int((time.monotonic() - started) * 1000)
    NotificationLog.objects.create(
        ticket=ticket,
        recipient_email=ticket.reporter_email,
        action=action,
        status=NotificationLog.STATUS_SUCCESS,
        details={
            "subject": subject,
            "duration_ms": duration_ms,
            "attempt": self.request.retries + 1,
        },
    )
    logger.info(
        "Email sent: '%s' to %s in %dms",
        subject,
        ticket.reporter_email,
        duration_ms,
    )
    return {"success": True, "duration_ms": duration_ms}
