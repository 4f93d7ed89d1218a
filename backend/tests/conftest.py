"""
conftest.py - Shared pytest fixtures for the site API test suite.

Stores run against an in-memory MongoDB (mongomock-motor); no server, SMTP
relay or network access is needed.

Import-path bootstrapping:
    The ``backend/`` directory is inserted into sys.path so that the flat
    modules (``stores``, ``quote`` ...) resolve regardless of where pytest is
    invoked.
"""

import sys
import os
import pytest

_BACKEND_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if _BACKEND_DIR not in sys.path:
    sys.path.insert(0, _BACKEND_DIR)


# ---------------------------------------------------------------------------
# Database fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def mongo_db():
    """Fresh in-memory database per test."""
    from mongomock_motor import AsyncMongoMockClient
    return AsyncMongoMockClient()["okna_test"]


class _UnreachableDatabase:
    """Every collection access fails the way motor does with no server."""

    def __getitem__(self, name):
        from pymongo.errors import ServerSelectionTimeoutError
        raise ServerSelectionTimeoutError("localhost:27017: connection refused")


@pytest.fixture
def down_db():
    return _UnreachableDatabase()


# ---------------------------------------------------------------------------
# Sample payloads
# ---------------------------------------------------------------------------

@pytest.fixture
def product_payload():
    return {
        "name": "Premium Vinyl Window",
        "description": "Double-glazed window with excellent thermal insulation.",
        "rating": 4.8,
        "image": "https://example.com/vinyl.jpg",
        "category": "vinyl",
        "features": ["Energy efficient double glazing", "Soundproof design"],
        "specifications": {"Material": "Vinyl/PVC", "U-Value": "0.30 W/m²K"},
        "images": ["https://example.com/vinyl-1.jpg", "https://example.com/vinyl-2.jpg"],
    }


@pytest.fixture
def request_payload():
    """The calculator submission used across the end-to-end checks."""
    return {
        "name": "Иван",
        "email": "ivan@x.com",
        "phone": "+7 999 123 45 67",
        "message": "Хочу окна",
        "calculatorData": {
            "width": 150,
            "height": 180,
            "windowType": "standard",
            "material": "vinyl",
            "glazingType": "double",
            "additionalFeatures": ["uv-protection"],
            "quantity": 2,
        },
    }


# ---------------------------------------------------------------------------
# Mail
# ---------------------------------------------------------------------------

@pytest.fixture
def mail_settings():
    from config import Settings
    return Settings(EMAIL_USER="robot@example.com", EMAIL_PASS="secret", NOTIFY_TO="office@example.com")


@pytest.fixture
def recording_mailer(mail_settings):
    """Mailer that records (subject, html) instead of talking to SMTP."""
    from notifications import Mailer

    class RecordingMailer(Mailer):
        def __init__(self, config):
            super().__init__(config)
            self.sent = []

        def send(self, subject, html):
            self.sent.append((subject, html))

    return RecordingMailer(mail_settings)
