"""
Tests for the user profile lifecycle: creation, updates, soft deletion with
cascade to posts, and grace-period-gated hard deletion.
"""

import logging

import pytest

from data_governance.config import GovernanceConfig
from data_governance.lifecycle import (
    BusinessRuleViolationException,
    ResourceConflictException,
    ResourceNotFoundException,
    UserPostService,
    UserPreferencesService,
    UserProfileService,
    ValidationFailure,
)
from data_governance.policy import ReadScope
from data_governance.store import (
    UserPostRepository,
    UserPreferencesRepository,
    UserRole,
)

pytestmark = pytest.mark.lifecycle


class TestCreateUser:
    """Test profile creation and uniqueness."""

    def test_create_user(self, profile_service, user_request, clock):
        user = profile_service.create_user(
            user_request("alice", roles=["USER", "MODERATOR"], bio="Hello")
        )

        assert user.id
        assert user.username == "alice"
        assert user.full_name == "Alice Tester"
        assert set(user.roles) == {UserRole.USER, UserRole.MODERATOR}
        assert user.bio == "Hello"
        assert user.deleted is False
        assert user.deleted_at is None

        assert len(user.audit_trail) == 1
        entry = user.audit_trail[0]
        assert entry.action == "CREATE"
        assert entry.details == "User profile created"
        assert entry.performed_by == "SYSTEM"
        assert entry.timestamp == clock.now

    def test_duplicate_username(self, profile_service, alice, user_request):
        with pytest.raises(ResourceConflictException) as exc_info:
            profile_service.create_user(
                user_request("alice", email="other@example.com")
            )

        assert exc_info.value.message == "User with username 'alice' already exists"

    def test_duplicate_email(self, profile_service, alice, user_request):
        with pytest.raises(ResourceConflictException) as exc_info:
            profile_service.create_user(
                user_request("alice2", email="alice@example.com")
            )

        assert exc_info.value.field == "email"

    def test_username_of_soft_deleted_user_stays_taken(
        self, profile_service, alice, user_request
    ):
        profile_service.soft_delete_user(alice.id)

        with pytest.raises(ResourceConflictException):
            profile_service.create_user(user_request("alice", email="new@example.com"))

        with pytest.raises(ResourceConflictException):
            profile_service.create_user(user_request("alicia", email="alice@example.com"))

    def test_invalid_request(self, profile_service, user_request):
        with pytest.raises(ValidationFailure):
            profile_service.create_user(user_request("alice", email="nope"))

        assert profile_service.list_all_users() == []


class TestReadUser:
    """Test profile reads under the read-filter policy."""

    def test_get_user(self, profile_service, alice):
        assert profile_service.get_user(alice.id).username == "alice"

    def test_get_unknown_user(self, profile_service):
        with pytest.raises(ResourceNotFoundException) as exc_info:
            profile_service.get_user("missing")

        assert exc_info.value.message == "User not found with id: missing"

    def test_soft_deleted_user_hidden(self, profile_service, alice):
        profile_service.soft_delete_user(alice.id)

        with pytest.raises(ResourceNotFoundException):
            profile_service.get_user(alice.id)

        assert profile_service.is_user_active(alice.id) is False
        assert profile_service.get_user_including_deleted(alice.id).deleted is True

    def test_list_all_users_includes_deleted(self, profile_service, alice, bob):
        profile_service.soft_delete_user(bob.id)

        users = {u.username: u for u in profile_service.list_all_users()}

        assert set(users) == {"alice", "bob"}
        assert users["alice"].deleted is False
        assert users["bob"].deleted is True


class TestUpdateUser:
    """Test partial updates."""

    def test_partial_update(self, profile_service, alice):
        updated = profile_service.update_user(alice.id, {"bio": "New bio"})

        assert updated.bio == "New bio"
        assert updated.first_name == alice.first_name
        assert updated.email == alice.email
        assert updated.roles == alice.roles
        assert [e.action for e in updated.audit_trail] == ["CREATE", "UPDATE"]

    def test_empty_string_is_applied(self, profile_service, alice):
        profile_service.update_user(alice.id, {"bio": "Hello"})

        updated = profile_service.update_user(alice.id, {"bio": ""})

        assert updated.bio == ""

    def test_update_roles(self, profile_service, alice):
        updated = profile_service.update_user(alice.id, {"roles": ["ADMIN"]})
        assert updated.roles == [UserRole.ADMIN]

    def test_update_to_taken_email(self, profile_service, alice, bob):
        with pytest.raises(ResourceConflictException):
            profile_service.update_user(alice.id, {"email": "bob@example.com"})

    def test_update_with_same_email(self, profile_service, alice):
        updated = profile_service.update_user(
            alice.id, {"email": "alice@example.com", "last_name": "Jones"}
        )
        assert updated.last_name == "Jones"

    def test_update_soft_deleted_user(self, profile_service, alice):
        profile_service.soft_delete_user(alice.id)

        with pytest.raises(ResourceNotFoundException):
            profile_service.update_user(alice.id, {"bio": "too late"})


class TestSoftDeleteUser:
    """Test soft deletion and its cascade to posts."""

    def test_soft_delete_cascades_to_posts(
        self, profile_service, post_service, alice, bob, clock
    ):
        for title in ("One", "Two", "Three"):
            post_service.create_post(alice.id, {"title": title, "content": "body"})
        bobs_post = post_service.create_post(bob.id, {"title": "Bob", "content": "body"})

        ack = profile_service.soft_delete_user(alice.id)

        assert ack.success is True
        assert ack.operation_type == "SOFT_DELETE"
        assert ack.resource_id == alice.id

        profile = profile_service.get_user_including_deleted(alice.id)
        assert profile.deleted is True
        assert profile.deleted_at == clock.now

        alice_posts = [p for p in post_service.get_all_posts() if p.user_id == alice.id]
        assert len(alice_posts) == 3
        assert all(p.deleted for p in alice_posts)
        assert {p.deleted_at for p in alice_posts} == {profile.deleted_at}

        assert post_service.get_post(bobs_post.id).deleted is False

    def test_previously_deleted_post_keeps_timestamp(
        self, profile_service, post_service, alice, clock
    ):
        post = post_service.create_post(alice.id, {"title": "Old", "content": "body"})
        post_service.soft_delete_post(post.id)
        first_deletion = clock.now

        clock.advance(hours=2)
        profile_service.soft_delete_user(alice.id)

        stored = UserPostRepository(profile_service.session).find_by_id(
            post.id, ReadScope.ALL
        )
        assert stored.deleted_at == first_deletion

    def test_soft_delete_audit_entry(self, profile_service, alice, clock):
        clock.advance(minutes=5)
        profile_service.soft_delete_user(alice.id)

        trail = profile_service.get_user_including_deleted(alice.id).audit_trail
        assert [e.action for e in trail] == ["CREATE", "SOFT_DELETE"]
        assert trail[-1].timestamp == clock.now

    def test_preferences_untouched(self, profile_service, preferences_service, alice):
        preferences_service.update_preferences(alice.id, {"theme": "dark"})

        profile_service.soft_delete_user(alice.id)

        stored = UserPreferencesRepository(profile_service.session).find_by_user_id(alice.id)
        assert stored is not None
        assert stored.deleted is False
        assert stored.theme == "dark"

    def test_soft_delete_twice(self, profile_service, alice):
        profile_service.soft_delete_user(alice.id)

        with pytest.raises(ResourceNotFoundException):
            profile_service.soft_delete_user(alice.id)

    def test_soft_delete_unknown_user(self, profile_service):
        with pytest.raises(ResourceNotFoundException):
            profile_service.soft_delete_user("missing")


class TestHardDeleteUser:
    """Test permanent deletion after the grace period."""

    @pytest.fixture
    def populated_alice(self, post_service, preferences_service, alice):
        post_service.create_post(alice.id, {"title": "One", "content": "body"})
        post_service.create_post(alice.id, {"title": "Two", "content": "body"})
        preferences_service.update_preferences(alice.id, {"theme": "dark"})
        return alice

    def test_requires_soft_delete(self, profile_service, alice):
        with pytest.raises(BusinessRuleViolationException) as exc_info:
            profile_service.hard_delete_user(alice.id)

        assert exc_info.value.message == "User must be soft-deleted before hard deletion"
        assert profile_service.get_user(alice.id).deleted is False

    def test_unknown_user(self, profile_service):
        with pytest.raises(ResourceNotFoundException):
            profile_service.hard_delete_user("missing")

    def test_within_grace_period(self, profile_service, populated_alice, clock):
        profile_service.soft_delete_user(populated_alice.id)
        clock.advance(hours=23, minutes=59)

        with pytest.raises(BusinessRuleViolationException) as exc_info:
            profile_service.hard_delete_user(populated_alice.id)

        assert "Grace period of 24 hours has not elapsed" in exc_info.value.message
        assert profile_service.get_user_including_deleted(populated_alice.id).deleted

        session = profile_service.session
        posts = UserPostRepository(session).find_by_user_id(
            populated_alice.id, ReadScope.ALL
        )
        assert sorted(p.title for p in posts) == ["One", "Two"]
        preferences = UserPreferencesRepository(session).find_by_user_id(
            populated_alice.id, ReadScope.ALL
        )
        assert preferences.theme == "dark"

    def test_after_grace_period(
        self, profile_service, post_service, populated_alice, bob, clock
    ):
        bobs_post = post_service.create_post(bob.id, {"title": "Bob", "content": "body"})
        profile_service.soft_delete_user(populated_alice.id)
        clock.advance(hours=24)

        ack = profile_service.hard_delete_user(populated_alice.id)

        assert ack.operation_type == "HARD_DELETE"
        assert ack.message == "User profile permanently deleted"

        session = profile_service.session
        with pytest.raises(ResourceNotFoundException):
            profile_service.get_user_including_deleted(populated_alice.id)
        assert UserPostRepository(session).find_by_user_id(
            populated_alice.id, ReadScope.ALL
        ) == []
        assert UserPreferencesRepository(session).find_by_user_id(
            populated_alice.id, ReadScope.ALL
        ) is None

        assert profile_service.get_user(bob.id).username == "bob"
        assert post_service.get_post(bobs_post.id).title == "Bob"

    def test_final_audit_entry_logged(self, profile_service, alice, clock, caplog):
        profile_service.soft_delete_user(alice.id)
        clock.advance(days=2)

        with caplog.at_level(logging.INFO, logger="data_governance.lifecycle.services"):
            profile_service.hard_delete_user(alice.id)

        assert "ACTION=HARD_DELETE" in caplog.text

    def test_zero_grace_period(self, db_session, clock, user_request):
        config = GovernanceConfig(environment="test", hard_delete_grace_period_hours=0)
        service = UserProfileService(db_session, config=config, clock=clock)
        user = service.create_user(user_request("zed"))

        service.soft_delete_user(user.id)
        service.hard_delete_user(user.id)

        assert service.list_all_users() == []

    def test_services_share_session_state(self, db_session, config, clock, user_request):
        """Services built without an explicit profile service still see the same store."""
        profiles = UserProfileService(db_session, config=config, clock=clock)
        posts = UserPostService(db_session, clock=clock)
        preferences = UserPreferencesService(db_session)
        user = profiles.create_user(user_request("yara"))

        posts.create_post(user.id, {"title": "Hi", "content": "body"})
        preferences.update_preferences(user.id, {"language": "de"})

        assert len(posts.get_posts_by_user(user.id)) == 1
        assert preferences.get_preferences(user.id).language == "de"
