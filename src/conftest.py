"""Shared pytest fixtures for ITDesk tests."""

import pytest

from django.conf import settings

from accounts.factories import UserFactory
from assets.factories import AssetFactory, ConsumableFactory
from tickets.factories import TicketFactory

settings.STORAGES["staticfiles"] = {
    "BACKEND": "django.contrib.staticfiles.storage.StaticFilesStorage",
}

# Run Celery tasks synchronously in tests
settings.CELERY_TASK_ALWAYS_EAGER = True
settings.CELERY_TASK_EAGER_PROPAGATES = True

# Use in-memory cache for tests (avoids Redis connection errors)
settings.CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
    }
}


@pytest.fixture(autouse=True)
def _clear_cache():
    """Clear the in-memory cache before each test."""
    from django.core.cache import cache

    cache.clear()


@pytest.fixture
def password():
    return "testpass123!"


@pytest.fixture
def admin_user(db, password):
    return UserFactory(
        username="admin",
        email="admin@example.com",
        full_name="Ada Admin",
        role="admin",
        password=password,
        is_staff=True,
        is_superuser=True,
    )


@pytest.fixture
def engineer_user(db, password):
    return UserFactory(
        username="engineer",
        email="engineer@example.com",
        full_name="Eve Engineer",
        role="engineer",
        password=password,
    )


@pytest.fixture
def other_engineer_user(db, password):
    return UserFactory(
        username="engineer2",
        email="engineer2@example.com",
        full_name="Oscar Engineer",
        role="engineer",
        password=password,
    )


@pytest.fixture
def reporter_user(db, password):
    return UserFactory(
        username="reporter",
        email="reporter@example.com",
        full_name="Rita Reporter",
        role="reporter",
        password=password,
    )


@pytest.fixture
def other_reporter_user(db, password):
    return UserFactory(
        username="reporter2",
        email="reporter2@example.com",
        full_name="Ray Reporter",
        role="reporter",
        password=password,
    )


@pytest.fixture
def admin(admin_user):
    from accounts.identity import get_actor

    return get_actor(admin_user)


@pytest.fixture
def engineer(engineer_user):
    from accounts.identity import get_actor

    return get_actor(engineer_user)


@pytest.fixture
def other_engineer(other_engineer_user):
    from accounts.identity import get_actor

    return get_actor(other_engineer_user)


@pytest.fixture
def reporter(reporter_user):
    from accounts.identity import get_actor

    return get_actor(reporter_user)


@pytest.fixture
def other_reporter(other_reporter_user):
    from accounts.identity import get_actor

    return get_actor(other_reporter_user)


@pytest.fixture
def ticket(db, engineer, reporter):
    """Open ticket raised by ``reporter`` and assigned to ``engineer``."""
    return TicketFactory(
        subject="VPN drops every hour",
        description="Connection resets at the top of every hour.",
        reporter_name=reporter.full_name,
        reporter_email=reporter.email,
        assigned_engineer=engineer.full_name,
    )


@pytest.fixture
def asset(db, reporter):
    """Laptop assigned to ``reporter``."""
    return AssetFactory(
        asset_id="LAPTOP001",
        hostname="LAPTOP-JOHN01",
        serial_number="DL123456789",
        assigned_user=reporter.full_name,
        assigned_user_email=reporter.email,
    )


@pytest.fixture
def consumable(db):
    """Consumable with 10 in stock (minimum 3) and its opening ledger row."""
    from assets.services.stock import initialise_stock

    item = ConsumableFactory(asset_id="CONSUMABLE001", min_stock_level=3)
    initialise_stock(item, 10)
    item.refresh_from_db()
    return item
