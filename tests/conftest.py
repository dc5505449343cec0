"""Shared fixtures for lifecycle tests."""

from datetime import datetime, timedelta

import pytest

from data_governance.config import GovernanceConfig
from data_governance.lifecycle import (
    UserPostService,
    UserPreferencesService,
    UserProfileService,
)
from data_governance.store import init_database


class FixedClock:
    """Controllable naive-UTC clock."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


def make_user_request(username="alice", email=None, roles=("USER",), **overrides):
    """Build a valid create-user payload."""
    request = {
        "username": username,
        "email": email or f"{username}@example.com",
        "first_name": username.capitalize(),
        "last_name": "Tester",
        "roles": list(roles),
    }
    request.update(overrides)
    return request


@pytest.fixture
def db_session():
    """Create an in-memory SQLite entity store session for testing."""
    Session = init_database("sqlite:///:memory:")
    session = Session()

    yield session

    session.close()


@pytest.fixture
def clock():
    return FixedClock(datetime(2024, 3, 1, 12, 0, 0))


@pytest.fixture
def config():
    return GovernanceConfig(
        environment="test",
        database_url="sqlite:///:memory:",
        hard_delete_grace_period_hours=24,
    )


@pytest.fixture
def profile_service(db_session, config, clock):
    return UserProfileService(db_session, config=config, clock=clock)


@pytest.fixture
def post_service(db_session, profile_service):
    return UserPostService(db_session, profile_service=profile_service)


@pytest.fixture
def preferences_service(db_session, profile_service):
    return UserPreferencesService(db_session, profile_service=profile_service)


@pytest.fixture
def alice(profile_service):
    """An active user."""
    return profile_service.create_user(make_user_request("alice"))


@pytest.fixture
def bob(profile_service):
    """A second active user."""
    return profile_service.create_user(make_user_request("bob"))


@pytest.fixture
def user_request():
    """Factory for create-user payloads."""
    return make_user_request
