"""Tests for ticket comments and internal notes."""

from datetime import timedelta

import pytest

from django.utils import timezone

from itdesk.exceptions import InvalidState, NotFound, PermissionDenied
from tickets.factories import TicketCommentFactory
from tickets.models import Ticket, TicketComment


@pytest.mark.django_db
class TestAddComment:
    def test_reporter_adds_public_comment(self, reporter, ticket):
        from tickets.services.comments import add_comment

        comment = add_comment(reporter, ticket.pk, "Still happening today")
        assert comment.author_name == reporter.full_name
        assert comment.author_email == reporter.email
        assert comment.is_internal is False

    def test_reporter_cannot_add_internal_note(self, reporter, ticket):
        from tickets.services.comments import add_comment

        with pytest.raises(PermissionDenied, match="public comments"):
            add_comment(reporter, ticket.pk, "psst", is_internal=True)
        assert not TicketComment.objects.exists()

    def test_assigned_engineer_adds_internal_note(self, engineer, ticket):
        from tickets.services.comments import add_comment

        comment = add_comment(
            engineer, ticket.pk, "Router firmware is old", is_internal=True
        )
        assert comment.is_internal is True

    def test_unassigned_engineer_denied(self, other_engineer, ticket):
        from tickets.services.comments import add_comment

        with pytest.raises(PermissionDenied):
            add_comment(other_engineer, ticket.pk, "Hello")

    def test_other_reporter_gets_not_found(self, other_reporter, ticket):
        from tickets.services.comments import add_comment

        with pytest.raises(NotFound):
            add_comment(other_reporter, ticket.pk, "Hello")

    def test_blank_content_rejected(self, admin, ticket):
        from tickets.services.comments import add_comment

        with pytest.raises(InvalidState):
            add_comment(admin, ticket.pk, "   ")

    def test_touches_ticket_updated_at(self, admin, ticket):
        from tickets.services.comments import add_comment

        stale = timezone.now() - timedelta(days=3)
        Ticket.objects.filter(pk=ticket.pk).update(updated_at=stale)

        add_comment(admin, ticket.pk, "Looking into it")
        ticket.refresh_from_db()
        assert ticket.updated_at > stale


@pytest.mark.django_db
class TestListComments:
    def test_internal_notes_hidden_from_reporter(
        self, reporter, engineer, ticket
    ):
        from tickets.services.comments import list_comments

        public = TicketCommentFactory(ticket=ticket, is_internal=False)
        internal = TicketCommentFactory(ticket=ticket, is_internal=True)

        assert list_comments(reporter, ticket.pk) == [public]
        assert list_comments(engineer, ticket.pk) == [public, internal]

    def test_oldest_first(self, admin, ticket):
        from tickets.services.comments import list_comments

        first = TicketCommentFactory(ticket=ticket)
        second = TicketCommentFactory(ticket=ticket)
        assert list_comments(admin, ticket.pk) == [first, second]


@pytest.mark.django_db
class TestModifyComment:
    def test_author_edits_own_comment(self, reporter, ticket):
        from tickets.services.comments import add_comment, update_comment

        comment = add_comment(reporter, ticket.pk, "Typo hre")
        updated = update_comment(reporter, comment.pk, "Typo here")
        assert updated.content == "Typo here"

    def test_non_author_cannot_edit(self, reporter, engineer, ticket):
        from tickets.services.comments import add_comment, update_comment

        comment = add_comment(engineer, ticket.pk, "Rebooted the router")
        with pytest.raises(PermissionDenied, match="author"):
            update_comment(reporter, comment.pk, "Did nothing")
        comment.refresh_from_db()
        assert comment.content == "Rebooted the router"

    def test_admin_edits_any_comment(self, admin, reporter, ticket):
        from tickets.services.comments import add_comment, update_comment

        comment = add_comment(reporter, ticket.pk, "rude words")
        updated = update_comment(admin, comment.pk, "[removed]")
        assert updated.content == "[removed]"

    def test_internal_note_invisible_to_reporter(self, reporter, ticket):
        from tickets.services.comments import delete_comment

        note = TicketCommentFactory(
            ticket=ticket, is_internal=True, author_email=reporter.email
        )
        with pytest.raises(NotFound):
            delete_comment(reporter, note.pk)
        assert TicketComment.objects.filter(pk=note.pk).exists()

    def test_author_deletes_own_comment(self, engineer, ticket):
        from tickets.services.comments import add_comment, delete_comment

        comment = add_comment(engineer, ticket.pk, "Wrong ticket")
        delete_comment(engineer, comment.pk)
        assert not TicketComment.objects.filter(pk=comment.pk).exists()

    def test_missing_comment(self, admin):
        from tickets.services.comments import delete_comment

        with pytest.raises(NotFound, match="Comment not found"):
            delete_comment(admin, 98765)
