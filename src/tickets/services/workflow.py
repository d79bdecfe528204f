"""Ticket lifecycle: create, read, list, update, close and delete.

Every operation checks the access policy first; reporters asking for a
ticket that is not theirs get NotFound so existence is never leaked.
Mutations run in one transaction with the ticket row locked and publish
``ticket_changed`` once the transaction commits.
"""

import logging
from dataclasses import dataclass, field

from django.conf import settings
from django.db import DatabaseError, transaction
from django.db.models import Q
from django.utils import timezone

from accounts.permissions import authorize, require, require_role
from itdesk.db import lock_row
from itdesk.exceptions import InvalidState, NotFound, PermissionDenied

from ..models import Ticket, TicketComment
from ..signals import ticket_changed
from .state import apply_status, ticket_facts, validate_transition

logger = logging.getLogger(__name__)

UNASSIGNED = "unassigned"

# Fields only an admin may edit; engineers are limited to ``status``
DETAIL_FIELDS = (
    "subject",
    "description",
    "priority",
    "assigned_engineer",
    "reporter_name",
    "reporter_email",
    "company_name",
    "custom_date",
    "resolution",
)

# Blank values for these are stored as NULL
NULLABLE_FIELDS = frozenset(
    ("assigned_engineer", "reporter_email", "company_name", "resolution")
)


@dataclass
class BulkDeleteResult:
    deleted_count: int = 0
    failed_ids: list = field(default_factory=list)
    errors: dict = field(default_factory=dict)

    @property
    def failed_count(self) -> int:
        return len(self.failed_ids)


def _publish(ticket, action, actor, previous_status=None):
    status_changed = previous_status is not None and (
        previous_status != ticket.status
    )
    transaction.on_commit(
        lambda: ticket_changed.send(
            sender=Ticket,
            ticket=ticket,
            action=action,
            actor=actor,
            previous_status=previous_status,
            status_changed=status_changed,
        )
    )


def _normalise_engineer(value):
    if not value or value == UNASSIGNED:
        return None
    return value


def _check(actor, action, ticket, **extra):
    """Apply the policy to a loaded ticket, hiding it from reporters."""
    facts = ticket_facts(actor, ticket)
    facts.update(extra)
    decision = authorize(actor.role, action, **facts)
    if decision:
        return
    if actor.is_reporter and not facts["is_reporter"]:
        raise NotFound("Ticket not found.")
    logger.warning(
        "Denied %s on ticket #%s to actor #%s (%s): %s",
        action,
        ticket.pk,
        actor.id,
        actor.role,
        decision.reason,
    )
    raise PermissionDenied(decision.reason)


def load_ticket(actor, ticket_pk, action="ticket.read", *, lock=False):
    """Fetch a ticket the actor may act on, optionally locked."""
    queryset = Ticket.objects.all()
    try:
        if lock:
            ticket = lock_row(queryset, pk=ticket_pk)
        else:
            ticket = queryset.get(pk=ticket_pk)
    except Ticket.DoesNotExist:
        raise NotFound("Ticket not found.")
    _check(actor, action, ticket)
    return ticket


def _validate_choice(value, choices, label):
    if value not in dict(choices):
        raise InvalidState(f"'{value}' is not a valid {label}.")


def create_ticket(
    actor,
    *,
    subject,
    description,
    reporter_name=None,
    reporter_email=None,
    status=None,
    priority=None,
    assigned_engineer=None,
    company_name=None,
    custom_date=None,
):
    """Open a new ticket.

    Reporters may only open tickets as themselves; the reporter fields
    default to the actor. ``custom_date`` back-dates the ticket and
    becomes its ``created_at``.
    """
    require_role(actor, "ticket.create")
    if reporter_email is None:
        reporter_email = actor.email
    if reporter_name is None:
        reporter_name = actor.full_name
    require(
        actor,
        "ticket.create",
        is_self=bool(actor.email) and reporter_email == actor.email,
    )

    if not subject or not description:
        raise InvalidState("Subject and description are required.")
    status = status or Ticket.STATUS_OPEN
    priority = priority or Ticket.PRIORITY_MEDIUM
    _validate_choice(status, Ticket.STATUS_CHOICES, "status")
    _validate_choice(priority, Ticket.PRIORITY_CHOICES, "priority")

    now = timezone.now()
    custom_date = custom_date or now
    with transaction.atomic():
        ticket = Ticket.objects.create(
            subject=subject,
            description=description,
            status=status,
            priority=priority,
            assigned_engineer=_normalise_engineer(assigned_engineer),
            reporter_name=reporter_name,
            reporter_email=reporter_email or None,
            company_name=company_name or None,
            custom_date=custom_date,
            created_at=custom_date,
            resolved_at=now if status in Ticket.RESOLVED_STATUSES else None,
        )
        _publish(ticket, "created", actor)

    logger.info(
        "Ticket #%s created by actor #%s (%s)", ticket.pk, actor.id, actor.role
    )
    return ticket


def get_ticket(actor, ticket_pk):
    return load_ticket(actor, ticket_pk)


def visible_tickets(actor):
    """Tickets the actor may see at all."""
    queryset = Ticket.objects.all()
    if actor.is_admin:
        return queryset
    if actor.is_engineer:
        if not actor.full_name:
            return queryset.none()
        return queryset.filter(assigned_engineer=actor.full_name)
    if actor.is_reporter and actor.email:
        return queryset.filter(reporter_email=actor.email)
    return queryset.none()


def list_tickets(
    actor,
    *,
    status=None,
    priority=None,
    assigned_engineer=None,
    search=None,
    start_date=None,
    end_date=None,
    limit=None,
    offset=0,
):
    """Return ``(tickets, total)`` for the actor, newest first.

    ``assigned_engineer`` is honoured for admins only; other roles are
    already scoped to their own tickets.
    """
    queryset = visible_tickets(actor)
    if status:
        queryset = queryset.filter(status=status)
    if priority:
        queryset = queryset.filter(priority=priority)
    if assigned_engineer and actor.is_admin:
        queryset = queryset.filter(assigned_engineer=assigned_engineer)
    if search:
        queryset = queryset.filter(
            Q(subject__icontains=search)
            | Q(description__icontains=search)
            | Q(reporter_name__icontains=search)
        )
    if start_date:
        queryset = queryset.filter(created_at__gte=start_date)
    if end_date:
        queryset = queryset.filter(created_at__lte=end_date)

    if limit is None:
        limit = settings.DEFAULT_PAGE_SIZE
    if limit < 0 or offset < 0:
        raise InvalidState("limit and offset must not be negative.")

    queryset = queryset.order_by("-created_at", "-pk")
    total = queryset.count()
    return list(queryset[offset : offset + limit]), total


def update_ticket(actor, ticket_pk, **changes):
    """Apply a partial update.

    Engineers may change ``status`` only, on tickets assigned to them.
    Any other field requires an admin.
    """
    unknown = set(changes) - set(DETAIL_FIELDS) - {"status"}
    if unknown:
        raise InvalidState(
            f"Cannot update field(s): {', '.join(sorted(unknown))}."
        )
    if not changes:
        raise InvalidState("No fields to update.")

    detail_changes = {k: v for k, v in changes.items() if k != "status"}
    if detail_changes:
        require_role(actor, "ticket.update_fields")
    if "status" in changes:
        require_role(actor, "ticket.update_status")

    if "priority" in detail_changes:
        _validate_choice(
            detail_changes["priority"], Ticket.PRIORITY_CHOICES, "priority"
        )
    if "assigned_engineer" in detail_changes:
        detail_changes["assigned_engineer"] = _normalise_engineer(
            detail_changes["assigned_engineer"]
        )
    for name in NULLABLE_FIELDS.intersection(detail_changes):
        detail_changes[name] = detail_changes[name] or None

    with transaction.atomic():
        ticket = load_ticket(actor, ticket_pk, lock=True)
        if detail_changes:
            _check(actor, "ticket.update_fields", ticket)

        previous_status = ticket.status
        changed = []
        if "status" in changes:
            _check(actor, "ticket.update_status", ticket)
            validate_transition(actor, ticket, changes["status"])
            changed += apply_status(ticket, changes["status"], timezone.now())

        for name, value in detail_changes.items():
            setattr(ticket, name, value)
            changed.append(name)

        ticket.save(update_fields=changed + ["updated_at"])
        _publish(ticket, "updated", actor, previous_status)

    logger.info(
        "Ticket #%s updated by actor #%s: %s",
        ticket.pk,
        actor.id,
        ", ".join(changed) or "no changes",
    )
    return ticket


def close_ticket(actor, ticket_pk, resolution=None):
    """Close a ticket, recording the resolution as a system comment."""
    require_role(actor, "ticket.close")

    with transaction.atomic():
        ticket = load_ticket(actor, ticket_pk, "ticket.close", lock=True)
        previous_status = ticket.status
        changed = apply_status(ticket, Ticket.STATUS_CLOSED, timezone.now())
        ticket.save(update_fields=changed + ["updated_at"])

        if resolution:
            TicketComment.objects.create(
                ticket=ticket,
                author_name="System",
                content=f"Ticket closed. Reason: {resolution}",
                is_internal=False,
            )
        _publish(ticket, "updated", actor, previous_status)

    logger.info(
        "Ticket #%s closed by actor #%s (was %s)",
        ticket.pk,
        actor.id,
        previous_status,
    )
    return ticket


def delete_ticket(actor, ticket_pk) -> None:
    """Delete a ticket and its comments and notification logs."""
    require_role(actor, "ticket.delete")
    with transaction.atomic():
        ticket = load_ticket(actor, ticket_pk, "ticket.delete", lock=True)
        ticket.delete()
    logger.info("Ticket #%s deleted by actor #%s", ticket_pk, actor.id)


def bulk_delete_tickets(actor, ticket_ids) -> BulkDeleteResult:
    """Delete many tickets, each in its own savepoint.

    One failing id never rolls back the others. Ids that do not exist
    are reported as failed.
    """
    require(actor, "ticket.delete")
    ticket_ids = list(ticket_ids or [])
    limit = settings.TICKET_BULK_DELETE_LIMIT
    if not ticket_ids:
        raise InvalidState("No tickets selected for deletion.")
    if len(ticket_ids) > limit:
        raise InvalidState(
            f"Cannot delete more than {limit} tickets at once."
        )

    result = BulkDeleteResult()
    for ticket_pk in ticket_ids:
        try:
            with transaction.atomic():
                deleted, _ = Ticket.objects.filter(pk=ticket_pk).delete()
        except DatabaseError as exc:
            logger.exception("Failed to delete ticket #%s", ticket_pk)
            result.failed_ids.append(ticket_pk)
            result.errors[ticket_pk] = str(exc)
            continue
        if deleted:
            result.deleted_count += 1
        else:
            result.failed_ids.append(ticket_pk)
            result.errors[ticket_pk] = "Ticket not found."

    logger.info(
        "Bulk delete by actor #%s: %d deleted, %d failed",
        actor.id,
        result.deleted_count,
        result.failed_count,
    )
    return result
