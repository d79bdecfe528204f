"""Row locking helpers shared by the ticket and asset services."""

import logging

from django.db import DatabaseError, OperationalError

from .exceptions import Conflict, Internal

logger = logging.getLogger(__name__)


def lock_row(queryset, **lookup):
    """Fetch one row with ``SELECT ... FOR UPDATE``.

    Must be called inside ``transaction.atomic()``. ``DoesNotExist``
    propagates unchanged so callers decide how to report a missing row.
    """
    try:
        return queryset.select_for_update().get(**lookup)
    except OperationalError as exc:
        logger.warning(
            "Lock on %s %s failed: %s",
            queryset.model._meta.label,
            lookup,
            exc,
        )
        raise Conflict() from exc
    except DatabaseError as exc:
        logger.exception(
            "Storage error locking %s %s",
            queryset.model._meta.label,
            lookup,
        )
        raise Internal() from exc
