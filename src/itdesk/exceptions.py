"""Typed service-layer errors shared by the ticket and asset apps.

Each error subclasses the Django exception a caller would already
handle for the same condition, so views and admin actions keep working
with the stock ``PermissionDenied``/``ObjectDoesNotExist``/
``ValidationError`` handling.
"""

from django.core import exceptions as django_exceptions


class ServiceError(Exception):
    """Base class for errors raised by the service layer."""

    default_message = "Operation failed."

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def __str__(self):
        return self.message


class PermissionDenied(ServiceError, django_exceptions.PermissionDenied):
    """The actor's role or ownership does not allow the operation."""

    default_message = "You do not have permission to perform this action."

    @property
    def reason(self) -> str:
        return self.message


class NotFound(ServiceError, django_exceptions.ObjectDoesNotExist):
    """The target resource does not exist (or may not be disclosed)."""

    default_message = "Not found."


class InvalidState(ServiceError, django_exceptions.ValidationError):
    """The resource is not in a state that allows the operation."""

    default_message = "Invalid state for this operation."


class NotConsumable(InvalidState):
    default_message = "This asset is not a consumable item."


class InsufficientStock(InvalidState):
    default_message = "Insufficient stock."


class Conflict(ServiceError):
    """A concurrent write held the row, or a unique key already exists."""

    default_message = "The resource was modified concurrently."


class Internal(ServiceError):
    """Storage or transport failure."""

    default_message = "Internal error."
