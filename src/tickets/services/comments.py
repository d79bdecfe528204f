"""Ticket comments and internal notes."""

import logging

from django.db import transaction
from django.utils import timezone

from accounts.permissions import authorize, require, require_role
from itdesk.db import lock_row
from itdesk.exceptions import InvalidState, NotFound

from ..models import Ticket, TicketComment
from .state import ticket_facts
from .workflow import load_ticket

logger = logging.getLogger(__name__)


def _can_read_internal(actor, ticket) -> bool:
    facts = ticket_facts(actor, ticket)
    return bool(authorize(actor.role, "comment.read_internal", **facts))


def add_comment(actor, ticket_pk, content, *, is_internal=False):
    """Add a comment as the actor and touch the ticket's ``updated_at``."""
    require_role(actor, "comment.create")
    if not content or not content.strip():
        raise InvalidState("Comment content is required.")

    with transaction.atomic():
        ticket = load_ticket(actor, ticket_pk)
        facts = ticket_facts(actor, ticket)
        require(actor, "comment.create", is_internal=is_internal, **facts)
        comment = TicketComment.objects.create(
            ticket=ticket,
            author_name=actor.full_name,
            author_email=actor.email or None,
            content=content,
            is_internal=is_internal,
        )
        Ticket.objects.filter(pk=ticket.pk).update(updated_at=timezone.now())

    logger.info(
        "%s comment #%s added to ticket #%s by actor #%s",
        "Internal" if is_internal else "Public",
        comment.pk,
        ticket.pk,
        actor.id,
    )
    return comment


def list_comments(actor, ticket_pk):
    """Comments on a ticket, oldest first, without notes the actor may
    not see."""
    ticket = load_ticket(actor, ticket_pk)
    queryset = ticket.comments.all()
    if not _can_read_internal(actor, ticket):
        queryset = queryset.filter(is_internal=False)
    return list(queryset)


def _load_comment(actor, comment_pk, *, lock=False):
    queryset = TicketComment.objects.select_related("ticket")
    try:
        if lock:
            comment = lock_row(queryset, pk=comment_pk)
        else:
            comment = queryset.get(pk=comment_pk)
    except TicketComment.DoesNotExist:
        raise NotFound("Comment not found.")

    # Comments the actor cannot see do not exist as far as they know
    load_ticket(actor, comment.ticket_id)
    if comment.is_internal and not _can_read_internal(actor, comment.ticket):
        raise NotFound("Comment not found.")

    is_author = bool(comment.author_email) and (
        comment.author_email == actor.email
    )
    require(actor, "comment.modify", is_author=is_author)
    return comment


def update_comment(actor, comment_pk, content):
    if not content or not content.strip():
        raise InvalidState("Comment content is required.")
    with transaction.atomic():
        comment = _load_comment(actor, comment_pk, lock=True)
        comment.content = content
        comment.save(update_fields=["content", "updated_at"])
    logger.info("Comment #%s edited by actor #%s", comment.pk, actor.id)
    return comment


def delete_comment(actor, comment_pk) -> None:
    with transaction.atomic():
        comment = _load_comment(actor, comment_pk, lock=True)
        comment.delete()
    logger.info("Comment #%s deleted by actor #%s", comment_pk, actor.id)
