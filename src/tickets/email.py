"""Rendering of reporter notification emails."""

from django.conf import settings
from django.template.loader import render_to_string

SUBJECTS = {
    "created": "New Ticket Created: {subject} (#{pk})",
    "updated": "Ticket Updated: {subject} (#{pk})",
}


def build_ticket_email(ticket, action: str) -> tuple[str, str, str]:
    """Return ``(subject, text_body, html_body)`` for a ticket event.

    Loads ``emails/ticket_notification.txt`` and
    ``emails/ticket_notification.html``.
    """
    if action not in SUBJECTS:
        raise ValueError(f"Unknown notification action '{action}'")

    subject = SUBJECTS[action].format(subject=ticket.subject, pk=ticket.pk)
    context = {
        "site_name": settings.SITE_NAME,
        "site_url": settings.SITE_URL,
        "ticket": ticket,
        "action": action,
        "is_new": action == "created",
    }
    text_body = render_to_string("emails/ticket_notification.txt", context)
    html_body = render_to_string("emails/ticket_notification.html", context)
    return subject, text_body, html_body
