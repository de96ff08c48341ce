import pytest
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

from bson import ObjectId

from campusconnect.auth_service.models import Identity, Role
from campusconnect.auth_service.utils import TOKENS_EXTENSION_KEY
from campusconnect.gateway.config import Config
from campusconnect.gateway.server import create_app


class UnitTestConfig(Config):
    JWT_SECRET = "test_secret"
    TOKEN_EXPIRATION_MINUTES = 60
    TESTING = True


@pytest.fixture
def mock_db():
    """
    Stand-in for the pymongo Database. Collections are auto-created
    attributes, e.g. mock_db.users.find_one.return_value = {...}
    """
    return MagicMock()


@pytest.fixture
def app(mock_db):
    return create_app(UnitTestConfig, db=mock_db)


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_user():
    def _make(role="student", **fields):
        user = {
            "_id": ObjectId(),
            "name": "Test User",
            "email": "test@example.com",
            "college": "State University",
            "role": role,
            "organizerStatus": "approved" if role == "organizer" else "none",
            "savedEvents": [],
            "createdAt": datetime(2026, 1, 1, tzinfo=timezone.utc),
            "updatedAt": datetime(2026, 1, 1, tzinfo=timezone.utc),
        }
        user.update(fields)
        return user
    return _make


@pytest.fixture
def make_event():
    def _make(organizer=None, days_from_now=30, **fields):
        event = {
            "_id": ObjectId(),
            "title": "Robotics Meetup",
            "description": "Build and race robots",
            "date": datetime.now(timezone.utc) + timedelta(days=days_from_now),
            "venue": "Hall A",
            "college": "State University",
            "category": "Tech",
            "organizer": organizer or ObjectId(),
            "registrationLink": None,
        }
        event.update(fields)
        return event
    return _make


@pytest.fixture
def login_as(app, mocker, make_user):
    """
    Returns a function that creates a user with the given role, makes the
    auth gate resolve to it, and returns (user, headers).
    """
    def _login(role="student", **fields):
        user = make_user(role=role, **fields)
        mocker.patch("campusconnect.auth_service.utils.load_user", return_value=user)
        token = app.extensions[TOKENS_EXTENSION_KEY].issue(Identity(id=str(user["_id"]), role=Role(role)))
        return user, {"Authorization": f"Bearer {token}"}
    return _login
