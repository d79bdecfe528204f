"""Factory Boy factories for tickets test data."""

import factory
from factory.django import DjangoModelFactory


class TicketFactory(DjangoModelFactory):
    """Factory for Ticket model."""

    class Meta:
        model = "tickets.Ticket"

    subject = factory.Sequence(lambda n: f"Printer on floor {n} offline")
    description = factory.Faker("paragraph")
    status = "Open"
    priority = "Medium"
    reporter_name = factory.Faker("name")
    reporter_email = factory.Sequence(lambda n: f"reporter{n}@example.com")


class TicketCommentFactory(DjangoModelFactory):
    """Factory for TicketComment model."""

    class Meta:
        model = "tickets.TicketComment"

    ticket = factory.SubFactory(TicketFactory)
    author_name = factory.Faker("name")
    author_email = factory.Sequence(lambda n: f"author{n}@example.com")
    content = factory.Faker("sentence")
    is_internal = False


class NotificationLogFactory(DjangoModelFactory):
    """Factory for NotificationLog model."""

    class Meta:
        model = "tickets.NotificationLog"

    ticket = factory.SubFactory(TicketFactory)
    recipient_email = factory.LazyAttribute(lambda o: o.ticket.reporter_email)
    action = "created"
    status = "success"
    details = factory.LazyFunction(dict)
