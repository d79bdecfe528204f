"""Models for the ITDesk helpdesk."""

from django.core.exceptions import ValidationError
from django.db import models
from django.dispatch import receiver
from django.utils import timezone

from .signals import ticket_changed


class Ticket(models.Model):
    """A support request raised by a reporter and worked by an engineer."""

    STATUS_OPEN = "Open"
    STATUS_IN_PROGRESS = "In Progress"
    STATUS_RESOLVED = "Resolved"
    STATUS_CLOSED = "Closed"

    STATUS_CHOICES = [
        (STATUS_OPEN, "Open"),
        (STATUS_IN_PROGRESS, "In Progress"),
        (STATUS_RESOLVED, "Resolved"),
        (STATUS_CLOSED, "Closed"),
    ]

    # Statuses that carry a resolution timestamp
    RESOLVED_STATUSES = (STATUS_RESOLVED, STATUS_CLOSED)

    # Any status may move to any other: forward progress, closing as an
    # operational override, and reopening are all legal.
    VALID_TRANSITIONS = {
        STATUS_OPEN: [STATUS_IN_PROGRESS, STATUS_RESOLVED, STATUS_CLOSED],
        STATUS_IN_PROGRESS: [STATUS_OPEN, STATUS_RESOLVED, STATUS_CLOSED],
        STATUS_RESOLVED: [STATUS_OPEN, STATUS_IN_PROGRESS, STATUS_CLOSED],
        STATUS_CLOSED: [STATUS_OPEN, STATUS_IN_PROGRESS, STATUS_RESOLVED],
    }

    PRIORITY_LOW = "Low"
    PRIORITY_MEDIUM = "Medium"
    PRIORITY_HIGH = "High"
    PRIORITY_URGENT = "Urgent"

    PRIORITY_CHOICES = [
        (PRIORITY_LOW, "Low"),
        (PRIORITY_MEDIUM, "Medium"),
        (PRIORITY_HIGH, "High"),
        (PRIORITY_URGENT, "Urgent"),
    ]

    subject = models.CharField(max_length=255)
    description = models.TextField()
    status = models.CharField(
        max_length=20, choices=STATUS_CHOICES, default=STATUS_OPEN
    )
    priority = models.CharField(
        max_length=20, choices=PRIORITY_CHOICES, default=PRIORITY_MEDIUM
    )
    assigned_engineer = models.CharField(
        max_length=255,
        null=True,
        blank=True,
        help_text="Full name of the engineer working the ticket",
    )
    reporter_name = models.CharField(max_length=255)
    reporter_email = models.EmailField(
        null=True,
        blank=True,
        help_text="Receives status notifications and owns the ticket",
    )
    company_name = models.CharField(max_length=255, null=True, blank=True)
    resolution = models.TextField(
        null=True,
        blank=True,
        help_text="Resolution description when resolved or closed",
    )
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)
    resolved_at = models.DateTimeField(null=True, blank=True)
    custom_date = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = "tickets"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status"], name="idx_tickets_status"),
            models.Index(
                fields=["assigned_engineer"],
                name="idx_tickets_assigned_engineer",
            ),
            models.Index(
                fields=["reporter_email"], name="idx_tickets_reporter_email"
            ),
            models.Index(
                fields=["created_at"], name="idx_tickets_created_at"
            ),
        ]

    def __str__(self):
        return f"#{self.pk} {self.subject}"

    @property
    def is_resolved(self):
        return self.status in self.RESOLVED_STATUSES

    def can_transition_to(self, new_status):
        """Check if the status transition is valid."""
        return new_status in self.VALID_TRANSITIONS.get(self.status, [])


class TicketComment(models.Model):
    """Discussion entry on a ticket; internal notes are staff-only."""

    ticket = models.ForeignKey(
        Ticket, on_delete=models.CASCADE, related_name="comments"
    )
    author_name = models.CharField(max_length=255)
    author_email = models.EmailField(null=True, blank=True)
    content = models.TextField()
    is_internal = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "ticket_comments"
        ordering = ["created_at", "pk"]
        indexes = [
            models.Index(
                fields=["created_at"], name="idx_ticket_comments_created"
            ),
        ]

    def __str__(self):
        return f"Comment by {self.author_name} on #{self.ticket_id}"


class NotificationLog(models.Model):
    """Immutable delivery record of a reporter notification email."""

    STATUS_SUCCESS = "success"
    STATUS_FAILED = "failed"

    STATUS_CHOICES = [
        (STATUS_SUCCESS, "Success"),
        (STATUS_FAILED, "Failed"),
    ]

    ticket = models.ForeignKey(
        Ticket, on_delete=models.CASCADE, related_name="notification_logs"
    )
    recipient_email = models.EmailField()
    action = models.CharField(max_length=20)
    status = models.CharField(max_length=10, choices=STATUS_CHOICES)
    details = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "email_logs"
        ordering = ["-created_at", "-pk"]
        indexes = [
            models.Index(fields=["status"], name="idx_email_logs_status"),
            models.Index(
                fields=["created_at"], name="idx_email_logs_created_at"
            ),
            models.Index(
                fields=["recipient_email"],
                name="idx_email_logs_recipient",
            ),
        ]

    def __str__(self):
        return f"{self.action} email to {self.recipient_email}: {self.status}"

    def save(self, *args, **kwargs):
        if self.pk is not None:
            raise ValidationError(
                "Notification logs are immutable and cannot be modified."
            )
        super().save(*args, **kwargs)


@receiver(ticket_changed)
def queue_reporter_notification(sender, ticket, action, **kwargs):
    """Queue an email to the reporter when a ticket is opened or its
    status moves."""
    from .notifications import queue_ticket_notification, should_notify

    if should_notify(ticket, action, kwargs.get("status_changed", False)):
        queue_ticket_notification(ticket.pk, action)
