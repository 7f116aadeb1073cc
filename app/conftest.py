"""
Project-wide pytest configuration.

Applies test settings (in-memory channel layer, local-memory cache,
fast password hashing, throttling off, throwaway MEDIA_ROOT) and
provides fixtures shared by every app:
- api_client / authenticated API clients
- object_storage: an in-memory ObjectStorage patched into the services

App-specific fixtures are defined in each app's tests/conftest.py.
"""

import tempfile

import pytest
from django.core.files.uploadedfile import SimpleUploadedFile
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken


def pytest_configure():
    """Configure Django settings before tests run."""
    from django.conf import settings

    # Disable throttling during tests to prevent rate limit failures
    settings.REST_FRAMEWORK["DEFAULT_THROTTLE_CLASSES"] = []
    settings.REST_FRAMEWORK["DEFAULT_THROTTLE_RATES"] = {}

    # Use fast password hasher for tests (PBKDF2 is too slow with 870K iterations)
    settings.PASSWORD_HASHERS = [
        "django.contrib.auth.hashers.MD5PasswordHasher",
    ]

    # No Redis in tests
    settings.CHANNEL_LAYERS = {
        "default": {"BACKEND": "channels.layers.InMemoryChannelLayer"},
    }
    settings.CACHES = {
        "default": {"BACKEND": "django.core.cache.backends.locmem.LocMemCache"},
    }
    settings.SESSION_ENGINE = "django.contrib.sessions.backends.db"

    settings.OBJECT_STORAGE_BACKEND = "media.storage.FileSystemObjectStorage"
    settings.MEDIA_ROOT = tempfile.mkdtemp(prefix="chat-test-media-")
    settings.STORAGES = {
        **settings.STORAGES,
        "staticfiles": {
            "BACKEND": "django.contrib.staticfiles.storage.StaticFilesStorage",
        },
    }


def pytest_collection_modifyitems(items):
    """
    Auto-mark tests based on filename patterns.

    Mapping:
    - test_integration.py → e2e (full user journey workflows)
    - test_views.py, test_services.py, test_consumers.py, etc. → integration
    - test_models.py, test_serializers.py, test_fanout.py, etc. → unit
    - Unmatched files → integration (safe default for Django)

    Explicit markers on test functions/classes take precedence.
    """
    e2e_patterns = ["test_integration.py"]

    integration_patterns = [
        "test_views.py",
        "test_services.py",
        "test_consumers.py",
        "test_events.py",
        "test_storage.py",
    ]

    unit_patterns = [
        "test_models.py",
        "test_serializers.py",
        "test_managers.py",
        "test_fanout.py",
        "test_presence.py",
        "test_exceptions.py",
    ]

    for item in items:
        # Skip if test already has unit/integration/e2e marker
        existing_markers = {m.name for m in item.iter_markers()}
        if existing_markers & {"unit", "integration", "e2e"}:
            continue

        filename = str(item.fspath).split("/")[-1]

        if any(pattern in filename for pattern in e2e_patterns):
            item.add_marker(pytest.mark.e2e)
        elif any(pattern in filename for pattern in integration_patterns):
            item.add_marker(pytest.mark.integration)
        elif any(pattern in filename for pattern in unit_patterns):
            item.add_marker(pytest.mark.unit)
        else:
            # Default: integration (safe for Django where most tests hit DB)
            item.add_marker(pytest.mark.integration)


# =============================================================================
# API Client Fixtures
# =============================================================================


@pytest.fixture
def api_client():
    """Unauthenticated DRF test client."""
    return APIClient()


@pytest.fixture
def client_for():
    """
    Build an API client authenticated as the given user with a real JWT.

    Usage:
        def test_example(client_for, user):
            response = client_for(user).get("/api/v1/chats/")
    """

    def _client_for(user):
        client = APIClient()
        token = RefreshToken.for_user(user).access_token
        client.credentials(HTTP_AUTHORIZATION=f"Bearer {token}")
        return client

    return _client_for


# =============================================================================
# Object Storage Fixtures
# =============================================================================


@pytest.fixture
def object_storage(monkeypatch):
    """
    In-memory object storage patched into every service that uploads.

    Attributes of the returned storage:
        objects: public_id -> file name of live objects
        uploads / deletes: public_ids in call order
        fail_upload / fail_delete: make the next calls raise
            ExternalServiceError
    """
    from media.tests.fakes import InMemoryObjectStorage

    storage = InMemoryObjectStorage()
    for module in ("chat.services", "authentication.services"):
        monkeypatch.setattr(f"{module}.get_object_storage", lambda: storage)
    return storage


@pytest.fixture
def image_file():
    """Small PNG upload."""
    return SimpleUploadedFile("photo.png", b"\x89PNG\r\n" + b"0" * 64, "image/png")


@pytest.fixture
def large_image_file(settings):
    """PNG upload one byte over the image limit."""
    size = settings.CHAT_MAX_IMAGE_BYTES + 1
    return SimpleUploadedFile("huge.png", b"0" * size, "image/png")
