"""
Service layer for lifecycle operations.

Implements the rule engine that gates every mutation on user profiles, posts
and preferences: uniqueness checks, active/inactive gating, soft deletion
with cascade to posts, and grace-period-gated hard deletion with cascade to
preferences and posts.
"""

import logging
from datetime import datetime
from typing import Any, Callable, List, Mapping, Optional, Union

from sqlalchemy.orm import Session

from ..audit_trail import AuditAction, AuditRecorder
from ..config import GovernanceConfig, get_config
from ..policy import scope_for
from ..store.documents import (
    PostStatus,
    UserPostDocument,
    UserPreferencesDocument,
    UserProfileDocument,
)
from ..store.repositories import (
    UserPostRepository,
    UserPreferencesRepository,
    UserProfileRepository,
)
from ..utils import utcnow
from .exceptions import (
    BusinessRuleViolationException,
    ResourceConflictException,
    ResourceNotFoundException,
    ValidationFailure,
)
from .models import (
    CreatePostRequest,
    CreateUserRequest,
    EngagementAction,
    OperationAcknowledgmentResponse,
    UpdatePreferencesRequest,
    UpdateUserRequest,
    UserPostResponse,
    UserPreferencesResponse,
    UserProfileResponse,
    parse_request,
)

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]

_ENGAGEMENT_HANDLERS = {
    EngagementAction.VIEW: "increment_view_count",
    EngagementAction.LIKE: "increment_like_count",
    EngagementAction.UNLIKE: "decrement_like_count",
    EngagementAction.COMMENT: "increment_comment_count",
    EngagementAction.UNCOMMENT: "decrement_comment_count",
}


class UserProfileService:
    """
    Lifecycle rules for user profiles.

    Owns the deletion state machine. A profile is active until soft deleted;
    soft deletion cascades to the user's posts with a shared timestamp; once
    the configured grace period has elapsed the profile can be hard deleted,
    which physically removes the profile, its preferences and all its posts.

    Example:
        >>> service = UserProfileService(session, config=GovernanceConfig())
        >>> user = service.create_user(
        ...     {"username": "alice", "email": "a@x.com", "first_name": "Alice",
        ...      "last_name": "Smith", "roles": ["USER"]}
        ... )
        >>> service.soft_delete_user(user.id)
    """

    def __init__(
        self,
        session: Session,
        config: Optional[GovernanceConfig] = None,
        audit_recorder: Optional[AuditRecorder] = None,
        clock: Optional[Clock] = None,
    ):
        """
        Initialize the profile service.

        Args:
            session: SQLAlchemy session bound to the entity store
            config: Governance configuration; the global one is used when omitted
            audit_recorder: Recorder used to append profile audit entries
            clock: Callable returning the current naive-UTC time
        """
        self.session = session
        self.config = config or get_config()
        self.clock = clock or utcnow
        self.audit_recorder = audit_recorder or AuditRecorder(
            default_actor=self.config.default_actor, clock=self.clock
        )

        self.profiles = UserProfileRepository(session)
        self.preferences = UserPreferencesRepository(session)
        self.posts = UserPostRepository(session)

    def create_user(
        self, request: Union[CreateUserRequest, Mapping[str, Any]]
    ) -> UserProfileResponse:
        """
        Create a new user profile.

        Args:
            request: Profile fields

        Returns:
            The created profile

        Raises:
            ValidationFailure: Request fields are malformed
            ResourceConflictException: Username or email already taken,
                including by a soft-deleted profile
        """
        request = parse_request(CreateUserRequest, request)
        logger.info(f"Creating new user with username: {request.username}")

        if self.profiles.exists_by_username(request.username):
            raise ResourceConflictException("User", "username", request.username)

        if self.profiles.exists_by_email(request.email):
            raise ResourceConflictException("User", "email", request.email)

        profile = UserProfileDocument(
            username=request.username,
            email=request.email,
            first_name=request.first_name,
            last_name=request.last_name,
            bio=request.bio,
            profile_image_url=request.profile_image_url,
            deleted=False,
            audit_trail=[],
        )
        profile.set_roles(request.roles)

        self.audit_recorder.record(profile, AuditAction.CREATE, "User profile created")

        self.profiles.save(profile)
        self.session.commit()
        logger.info(f"User created successfully with ID: {profile.id}")

        return UserProfileResponse.model_validate(profile)

    def get_user(self, user_id: str) -> UserProfileResponse:
        """Retrieve an active (not soft-deleted) profile."""
        logger.info(f"Retrieving user with ID: {user_id}")
        return UserProfileResponse.model_validate(
            self._require_profile(user_id, "get_user")
        )

    def get_user_including_deleted(self, user_id: str) -> UserProfileResponse:
        """Retrieve a profile regardless of soft-delete state (admin path)."""
        return UserProfileResponse.model_validate(
            self._require_profile(user_id, "get_user_including_deleted")
        )

    def list_all_users(self) -> List[UserProfileResponse]:
        """Retrieve every profile, including soft-deleted ones (admin path)."""
        logger.info("Retrieving all users")
        profiles = self.profiles.find_all(scope_for("list_all_users"))
        return [UserProfileResponse.model_validate(p) for p in profiles]

    def update_user(
        self, user_id: str, request: Union[UpdateUserRequest, Mapping[str, Any]]
    ) -> UserProfileResponse:
        """
        Apply a partial update to an active profile.

        Only fields supplied with a non-null value are changed.

        Args:
            user_id: Profile to update
            request: Fields to change

        Returns:
            The updated profile

        Raises:
            ResourceNotFoundException: Profile missing or soft-deleted
            ResourceConflictException: New email already taken
        """
        request = parse_request(UpdateUserRequest, request)
        logger.info(f"Updating user with ID: {user_id}")

        profile = self._require_profile(user_id, "update_user")
        changes = request.supplied_fields()

        new_email = changes.pop("email", None)
        if new_email is not None and new_email != profile.email:
            if self.profiles.exists_by_email(new_email):
                raise ResourceConflictException("User", "email", new_email)
            profile.email = new_email

        roles = changes.pop("roles", None)
        if roles is not None:
            profile.set_roles(roles)

        for field_name, value in changes.items():
            setattr(profile, field_name, value)

        self.audit_recorder.record(profile, AuditAction.UPDATE, "User profile updated")

        self.profiles.save(profile)
        self.session.commit()
        logger.info(f"User updated successfully with ID: {profile.id}")

        return UserProfileResponse.model_validate(profile)

    def soft_delete_user(self, user_id: str) -> OperationAcknowledgmentResponse:
        """
        Soft delete an active profile and cascade to its posts.

        The profile and every post that is still active share one deletion
        timestamp. Preferences are left untouched.

        Args:
            user_id: Profile to soft delete

        Returns:
            Operation acknowledgment

        Raises:
            ResourceNotFoundException: Profile missing or already soft-deleted
        """
        logger.info(f"Soft deleting user with ID: {user_id}")

        profile = self._require_profile(user_id, "soft_delete_user")

        deletion_time = self.clock()
        profile.mark_as_deleted(deletion_time)
        self.audit_recorder.record(
            profile,
            AuditAction.SOFT_DELETE,
            "User profile soft deleted",
            timestamp=deletion_time,
        )

        cascaded = self.posts.soft_delete_all_by_user_id(user_id, deletion_time)

        self.profiles.save(profile)
        self.session.commit()
        logger.info(
            f"User and {cascaded} associated posts soft deleted successfully "
            f"for ID: {user_id}"
        )

        return OperationAcknowledgmentResponse.ok(
            "SOFT_DELETE", user_id, "User profile soft deleted"
        )

    def hard_delete_user(self, user_id: str) -> OperationAcknowledgmentResponse:
        """
        Permanently delete a soft-deleted profile after its grace period.

        Removes the user's preferences, every post of the user (soft-deleted
        or not) and finally the profile itself. This cannot be undone.

        Args:
            user_id: Profile to purge

        Returns:
            Operation acknowledgment

        Raises:
            ResourceNotFoundException: No record with this id exists at all
            BusinessRuleViolationException: Profile is not soft-deleted, has no
                deletion timestamp, or its grace period has not elapsed
        """
        logger.info(f"Attempting hard delete for user with ID: {user_id}")

        profile = self._require_profile(user_id, "hard_delete_user")

        if not profile.deleted:
            logger.warning(f"Hard delete rejected for active user {user_id}")
            raise BusinessRuleViolationException(
                "User must be soft-deleted before hard deletion", resource_id=user_id
            )

        if profile.deleted_at is None:
            raise BusinessRuleViolationException(
                "User deletion timestamp is missing", resource_id=user_id
            )

        grace_period_end = profile.deleted_at + self.config.grace_period
        if self.clock() < grace_period_end:
            logger.warning(
                f"Hard delete rejected for user {user_id}: grace period ends at "
                f"{grace_period_end.isoformat()}"
            )
            raise BusinessRuleViolationException(
                f"Grace period of {self.config.hard_delete_grace_period_hours} hours "
                "has not elapsed since soft deletion",
                resource_id=user_id,
            )

        removed_preferences = self.preferences.delete_by_user_id(user_id)
        removed_posts = self.posts.delete_by_user_id(user_id)

        # The record is removed right after, so this entry only reaches the log
        final_entry = self.audit_recorder.record(
            profile, AuditAction.HARD_DELETE, "User profile permanently deleted"
        )
        logger.info(f"Final audit entry for user {user_id}: {final_entry.to_log_format()}")

        self.profiles.delete(profile)
        self.session.commit()
        logger.info(
            f"User and all associated data hard deleted successfully for ID: {user_id} "
            f"({removed_posts} posts, {removed_preferences} preferences)"
        )

        return OperationAcknowledgmentResponse.ok(
            "HARD_DELETE", user_id, "User profile permanently deleted"
        )

    def is_user_active(self, user_id: str) -> bool:
        """Check if a user exists and is not soft-deleted."""
        return (
            self.profiles.find_by_id(user_id, scope_for("is_user_active")) is not None
        )

    def _require_profile(self, user_id: str, operation: str) -> UserProfileDocument:
        profile = self.profiles.find_by_id(user_id, scope_for(operation))
        if profile is None:
            raise ResourceNotFoundException("User", user_id)
        return profile


class UserPostService:
    """
    Lifecycle rules for user posts.

    Posts can only be created for active users and can be soft deleted on
    their own. Hard deletion of posts only happens through the owning
    profile's purge.
    """

    def __init__(
        self,
        session: Session,
        profile_service: Optional[UserProfileService] = None,
        clock: Optional[Clock] = None,
    ):
        self.session = session
        self.profile_service = profile_service or UserProfileService(
            session, clock=clock
        )
        self.clock = clock or self.profile_service.clock
        self.posts = UserPostRepository(session)

    def create_post(
        self, user_id: str, request: Union[CreatePostRequest, Mapping[str, Any]]
    ) -> UserPostResponse:
        """
        Create a post for an active user.

        Args:
            user_id: Author of the post
            request: Post fields

        Returns:
            The created post

        Raises:
            BusinessRuleViolationException: User does not exist or is
                soft-deleted (the two cases are not distinguished)
        """
        request = parse_request(CreatePostRequest, request)
        logger.info(f"Creating new post for user ID: {user_id}")

        if not self.profile_service.is_user_active(user_id):
            logger.warning(f"Post creation rejected for inactive user {user_id}")
            raise BusinessRuleViolationException(
                "Cannot create post for inactive or non-existent user",
                resource_id=user_id,
            )

        post = UserPostDocument(
            user_id=user_id,
            title=request.title,
            content=request.content,
            image_urls=request.image_urls,
            tags=request.tags,
            is_public=True if request.is_public is None else request.is_public,
            status=(request.status or PostStatus.PUBLISHED).value,
            view_count=0,
            like_count=0,
            comment_count=0,
            deleted=False,
        )

        self.posts.save(post)
        self.session.commit()
        logger.info(f"Post created successfully with ID: {post.id} for user ID: {user_id}")

        return UserPostResponse.model_validate(post)

    def get_posts_by_user(self, user_id: str) -> List[UserPostResponse]:
        """
        Retrieve the active posts of an active user.

        Raises:
            ResourceNotFoundException: User missing or soft-deleted
        """
        logger.info(f"Retrieving posts for user ID: {user_id}")

        if not self.profile_service.is_user_active(user_id):
            raise ResourceNotFoundException("User", user_id)

        posts = self.posts.find_by_user_id(user_id, scope_for("get_posts_by_user"))
        return [UserPostResponse.model_validate(p) for p in posts]

    def get_all_posts(self) -> List[UserPostResponse]:
        """Retrieve every post, including soft-deleted ones (admin path)."""
        logger.info("Retrieving all posts")
        posts = self.posts.find_all(scope_for("get_all_posts"))
        return [UserPostResponse.model_validate(p) for p in posts]

    def get_post(self, post_id: str) -> UserPostResponse:
        """Retrieve an active post."""
        logger.info(f"Retrieving post with ID: {post_id}")
        return UserPostResponse.model_validate(self._require_post(post_id, "get_post"))

    def soft_delete_post(self, post_id: str) -> OperationAcknowledgmentResponse:
        """
        Soft delete a single active post. Posts have no children to cascade to.

        Raises:
            ResourceNotFoundException: Post missing or already soft-deleted
        """
        logger.info(f"Soft deleting post with ID: {post_id}")

        post = self._require_post(post_id, "soft_delete_post")
        post.mark_as_deleted(self.clock())

        self.posts.save(post)
        self.session.commit()
        logger.info(f"Post soft deleted successfully with ID: {post_id}")

        return OperationAcknowledgmentResponse.ok(
            "SOFT_DELETE", post_id, "Post soft deleted"
        )

    def record_engagement(
        self, post_id: str, action: Union[str, EngagementAction]
    ) -> UserPostResponse:
        """
        Update the engagement counters of an active post.

        Decrements never take a counter below zero.

        Args:
            post_id: Post to update
            action: Engagement event

        Returns:
            The updated post

        Raises:
            ValidationFailure: Action is not a known engagement event
            ResourceNotFoundException: Post missing or soft-deleted
        """
        try:
            action = EngagementAction(action)
        except ValueError:
            allowed = ", ".join(a.value for a in EngagementAction)
            raise ValidationFailure(
                {"action": f"Unknown action '{action}', expected one of: {allowed}"}
            )

        post = self._require_post(post_id, "record_engagement")

        getattr(post, _ENGAGEMENT_HANDLERS[action])()

        self.posts.save(post)
        self.session.commit()
        logger.debug(f"Recorded {action.value} on post {post_id}")

        return UserPostResponse.model_validate(post)

    def _require_post(self, post_id: str, operation: str) -> UserPostDocument:
        post = self.posts.find_by_id(post_id, scope_for(operation))
        if post is None:
            raise ResourceNotFoundException("Post", post_id)
        return post


class UserPreferencesService:
    """Lifecycle rules for user preferences."""

    def __init__(
        self,
        session: Session,
        profile_service: Optional[UserProfileService] = None,
    ):
        self.session = session
        self.profile_service = profile_service or UserProfileService(session)
        self.preferences = UserPreferencesRepository(session)

    def update_preferences(
        self,
        user_id: str,
        request: Union[UpdatePreferencesRequest, Mapping[str, Any]],
    ) -> UserPreferencesResponse:
        """
        Create or partially update the preferences of an active user.

        Supplied scalar fields overwrite stored values. Supplied custom
        settings are merged key by key into the stored map.

        Args:
            user_id: Owner of the preferences
            request: Fields to change

        Returns:
            The stored preferences

        Raises:
            ResourceNotFoundException: No profile exists for the user
            BusinessRuleViolationException: The profile is soft-deleted
        """
        request = parse_request(UpdatePreferencesRequest, request)
        logger.info(f"Updating preferences for user ID: {user_id}")

        owner = self.profile_service.profiles.find_by_id(
            user_id, scope_for("update_preferences_owner")
        )
        if owner is None:
            raise ResourceNotFoundException("User", user_id)
        if owner.deleted:
            logger.warning(f"Preferences update rejected for inactive user {user_id}")
            raise BusinessRuleViolationException(
                "Cannot update preferences for inactive user", resource_id=user_id
            )

        preferences = self.preferences.find_by_user_id(
            user_id, scope_for("update_preferences")
        )
        if preferences is None:
            preferences = UserPreferencesDocument.with_defaults(user_id)

        for field_name, value in request.supplied_fields().items():
            setattr(preferences, field_name, value)

        if request.custom_settings:
            preferences.merge_settings(request.custom_settings)

        self.preferences.save(preferences)
        self.session.commit()
        logger.info(f"Preferences updated successfully for user ID: {user_id}")

        return UserPreferencesResponse.model_validate(preferences)

    def get_preferences(self, user_id: str) -> UserPreferencesResponse:
        """
        Retrieve the preferences of an active user.

        When the user never stored preferences a default view is returned
        without being persisted.

        Raises:
            ResourceNotFoundException: User missing or soft-deleted
        """
        logger.info(f"Retrieving preferences for user ID: {user_id}")

        if not self.profile_service.is_user_active(user_id):
            raise ResourceNotFoundException("User", user_id)

        preferences = self.preferences.find_by_user_id(
            user_id, scope_for("get_preferences")
        )
        if preferences is None:
            preferences = UserPreferencesDocument.with_defaults(user_id)

        return UserPreferencesResponse.model_validate(preferences)
