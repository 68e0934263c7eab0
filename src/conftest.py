"""Shared pytest fixtures and factories for depot tests."""

import pytest

from django.conf import settings
from django.contrib.auth.models import Permission

# Run Celery tasks synchronously in tests
settings.CELERY_TASK_ALWAYS_EAGER = True
settings.CELERY_TASK_EAGER_PROPAGATES = True

# Use in-memory cache for tests (avoids Redis connection errors)
settings.CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
    }
}

# Use in-memory channel layer for tests (avoids Redis for WS tests)
settings.CHANNEL_LAYERS = {
    "default": {
        "BACKEND": "channels.layers.InMemoryChannelLayer",
    }
}

settings.STORAGES["staticfiles"] = {
    "BACKEND": "django.contrib.staticfiles.storage.StaticFilesStorage",
}


@pytest.fixture(autouse=True)
def _clear_cache():
    """Clear the in-memory cache before each test.

    Prevents rate-limit counters (django_ratelimit) from bleeding
    across tests.
    """
    from django.core.cache import cache

    cache.clear()


from accounts.factories import UserFactory  # noqa: E402
from registry.factories import AssetFactory, ZoneFactory  # noqa: E402
from smartpackage.factories import BookingFactory  # noqa: E402

# --- User fixtures ---


@pytest.fixture
def password():
    return "testpass123!"


@pytest.fixture
def user(db, password):
    return UserFactory(
        username="testuser",
        email="test@example.com",
        password=password,
        display_name="Test User",
    )


@pytest.fixture
def second_user(db, password):
    return UserFactory(
        username="operator2",
        email="operator2@example.com",
        password=password,
        display_name="Second Operator",
    )


@pytest.fixture
def supervisor(db, password):
    u = UserFactory(
        username="supervisor",
        email="supervisor@example.com",
        password=password,
        display_name="Shift Supervisor",
    )
    u.user_permissions.add(
        Permission.objects.get(
            codename="unlock_booking", content_type__app_label="smartpackage"
        )
    )
    return u


@pytest.fixture
def admin_user(db, password):
    return UserFactory(
        username="admin",
        email="admin@example.com",
        password=password,
        is_staff=True,
        is_superuser=True,
    )


@pytest.fixture
def client_logged_in(client, user, password):
    client.login(username=user.username, password=password)
    return client


@pytest.fixture
def supervisor_client(client, supervisor, password):
    client.login(username=supervisor.username, password=password)
    return client


@pytest.fixture
def admin_client(client, admin_user, password):
    client.login(username=admin_user.username, password=password)
    return client


# --- Registry fixtures ---


@pytest.fixture
def asset_statuses(db):
    """Seed the standard asset statuses."""
    from io import StringIO

    from django.core.management import call_command

    from registry.models import AssetStatus

    call_command("seed_smartpackage", "--no-zones", stdout=StringIO())

    return {s.code: s for s in AssetStatus.objects.all()}


@pytest.fixture
def zones(db):
    return [ZoneFactory(code="WH-1"), ZoneFactory(code="WH-2")]


@pytest.fixture
def issued_asset(asset_statuses):
    """An asset out on issue, last sent to WH-1."""
    return AssetFactory(
        asset_code="BX000101",
        status=asset_statuses["101"],
        origin="WH-0",
        destination="WH-1",
    )


@pytest.fixture
def stock_asset(asset_statuses):
    return AssetFactory(
        asset_code="BX000100",
        status=asset_statuses["100"],
        origin="",
        destination="WH-3",
    )


@pytest.fixture
def defective_asset(asset_statuses):
    return AssetFactory(
        asset_code="BX000103",
        status=asset_statuses["103"],
        origin="WH-1",
        destination="WH-2",
    )


# --- Booking fixtures ---


@pytest.fixture
def new_booking(user, asset_statuses):
    return BookingFactory(
        module="systemin", draft_id="D-ABC123", created_by=user
    )


@pytest.fixture
def saved_booking(user, asset_statuses):
    """System-In booking with a reference and header WH-1 -> WH-2."""
    from smartpackage.workflows import get_workflow

    return BookingFactory(
        module="systemin",
        draft_id="D-SAVED1",
        ref_id="RC0101260001",
        is_status=get_workflow("systemin").status.SAVED,
        origin="WH-1",
        destination="WH-2",
        created_by=user,
    )
