"""Ticket state machine and role-gated transition validation."""

from accounts.permissions import authorize
from itdesk.exceptions import InvalidState, PermissionDenied

from ..models import Ticket


def can_transition(
    role: str, from_status: str, to_status: str, *, is_assigned: bool = False
) -> bool:
    """Return True if ``role`` may move a ticket between the statuses.

    Admins may perform any transition, engineers only on tickets assigned
    to them, reporters never.
    """
    if to_status not in Ticket.VALID_TRANSITIONS.get(from_status, []):
        return False
    return bool(
        authorize(role, "ticket.update_status", is_assigned=is_assigned)
    )


def validate_transition(actor, ticket: Ticket, new_status: str) -> None:
    """Validate and raise if ``actor`` cannot move ``ticket`` to the status.

    Raises InvalidState for an unknown or disallowed status and
    PermissionDenied when the role is not eligible.
    """
    if new_status not in dict(Ticket.STATUS_CHOICES):
        raise InvalidState(f"'{new_status}' is not a valid status.")

    if new_status == ticket.status:
        return  # No-op transition is always fine

    if not ticket.can_transition_to(new_status):
        allowed = Ticket.VALID_TRANSITIONS.get(ticket.status, [])
        raise InvalidState(
            f"Cannot transition from '{ticket.status}' to "
            f"'{new_status}'. Allowed transitions: "
            f"{', '.join(allowed) or 'none'}."
        )

    is_assigned = is_assigned_engineer(actor, ticket)
    if not can_transition(
        actor.role, ticket.status, new_status, is_assigned=is_assigned
    ):
        decision = authorize(
            actor.role, "ticket.update_status", is_assigned=is_assigned
        )
        raise PermissionDenied(decision.reason)


def apply_status(ticket: Ticket, new_status: str, now) -> list[str]:
    """Set the status and stamp ``resolved_at`` on first resolution.

    Returns the names of the fields that changed. Reopening keeps the
    earlier ``resolved_at``.
    """
    if new_status == ticket.status:
        return []
    ticket.status = new_status
    changed = ["status"]
    if new_status in Ticket.RESOLVED_STATUSES and ticket.resolved_at is None:
        ticket.resolved_at = now
        changed.append("resolved_at")
    return changed


def is_assigned_engineer(actor, ticket: Ticket) -> bool:
    return bool(ticket.assigned_engineer) and (
        ticket.assigned_engineer == actor.full_name
    )


def is_ticket_reporter(actor, ticket: Ticket) -> bool:
    return bool(ticket.reporter_email) and (
        ticket.reporter_email == actor.email
    )


def ticket_facts(actor, ticket: Ticket) -> dict:
    """Ownership facts about ``ticket`` for the access policy."""
    return {
        "is_assigned": is_assigned_engineer(actor, ticket),
        "is_reporter": is_ticket_reporter(actor, ticket),
    }
