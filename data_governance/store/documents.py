"""
Document models for the entity store.

Profiles, preferences and posts are stored as one row per document. List and
map valued fields live in JSON columns, mirroring a document database layout.
Children reference their owner through ``user_id`` only; there are no
database-level foreign keys, so cascades are carried out by the lifecycle
services.
"""

from enum import Enum
from typing import Any, Dict, Set

from sqlalchemy import JSON, Boolean, Column, Integer, String, Text

from ..utils import new_id
from .database import Base
from .mixins import SoftDeleteMixin, TimestampMixin


class UserRole(str, Enum):
    """Roles a profile can hold."""

    ADMIN = "ADMIN"
    USER = "USER"
    MODERATOR = "MODERATOR"
    GUEST = "GUEST"

    @property
    def description(self) -> str:
        return _ROLE_DESCRIPTIONS[self]


_ROLE_DESCRIPTIONS = {
    UserRole.ADMIN: "Administrator",
    UserRole.USER: "Regular User",
    UserRole.MODERATOR: "Content Moderator",
    UserRole.GUEST: "Guest User",
}


class PostStatus(str, Enum):
    """Publication states of a post."""

    DRAFT = "DRAFT"
    PUBLISHED = "PUBLISHED"
    ARCHIVED = "ARCHIVED"


PREFERENCE_DEFAULTS: Dict[str, Any] = {
    "theme": "light",
    "language": "en",
    "email_notifications": True,
    "push_notifications": True,
    "sms_notifications": False,
    "profile_visible": True,
    "show_email": False,
    "show_last_seen": True,
    "content_filter": "moderate",
}


class UserProfileDocument(Base, TimestampMixin, SoftDeleteMixin):  # type: ignore[valid-type,misc]
    """A user in the system, with its embedded audit trail."""

    __tablename__ = "user_profiles"

    id = Column(String(32), primary_key=True, default=new_id)
    username = Column(String(50), nullable=False, unique=True, index=True)
    email = Column(String(254), nullable=False, unique=True, index=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    roles = Column(JSON, nullable=False, default=list)
    bio = Column(Text, nullable=True)
    profile_image_url = Column(String(2048), nullable=True)
    audit_trail = Column(JSON, nullable=False, default=list)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    @property
    def role_set(self) -> Set[UserRole]:
        return {UserRole(role) for role in self.roles or []}

    def set_roles(self, roles: Any) -> None:
        """Store roles as a sorted, de-duplicated list of role names."""
        self.roles = sorted({UserRole(role).value for role in roles})

    def has_role(self, role: Any) -> bool:
        return UserRole(role) in self.role_set


class UserPreferencesDocument(Base, TimestampMixin, SoftDeleteMixin):  # type: ignore[valid-type,misc]
    """Per-user settings. At most one document exists per ``user_id``."""

    __tablename__ = "user_preferences"

    id = Column(String(32), primary_key=True, default=new_id)
    user_id = Column(String(32), nullable=False, unique=True, index=True)

    theme = Column(String(20), nullable=False, default=PREFERENCE_DEFAULTS["theme"])
    language = Column(
        String(20), nullable=False, default=PREFERENCE_DEFAULTS["language"]
    )

    email_notifications = Column(
        Boolean, nullable=False, default=PREFERENCE_DEFAULTS["email_notifications"]
    )
    push_notifications = Column(
        Boolean, nullable=False, default=PREFERENCE_DEFAULTS["push_notifications"]
    )
    sms_notifications = Column(
        Boolean, nullable=False, default=PREFERENCE_DEFAULTS["sms_notifications"]
    )

    profile_visible = Column(
        Boolean, nullable=False, default=PREFERENCE_DEFAULTS["profile_visible"]
    )
    show_email = Column(
        Boolean, nullable=False, default=PREFERENCE_DEFAULTS["show_email"]
    )
    show_last_seen = Column(
        Boolean, nullable=False, default=PREFERENCE_DEFAULTS["show_last_seen"]
    )

    content_filter = Column(
        String(20), nullable=False, default=PREFERENCE_DEFAULTS["content_filter"]
    )
    custom_settings = Column(JSON, nullable=False, default=dict)

    @classmethod
    def with_defaults(cls, user_id: str) -> "UserPreferencesDocument":
        """
        Build an unsaved preferences document populated with default values.

        Column defaults only apply at flush time, so they are set explicitly
        here for documents that may never be persisted.
        """
        return cls(
            user_id=user_id,
            deleted=False,
            custom_settings={},
            **PREFERENCE_DEFAULTS,
        )

    def get_setting(self, key: str, default: Any = None) -> Any:
        value = (self.custom_settings or {}).get(key)
        return value if value is not None else default

    def set_setting(self, key: str, value: Any) -> None:
        self.merge_settings({key: value})

    def merge_settings(self, settings: Dict[str, Any]) -> None:
        """Upsert the given keys, keeping every other existing key."""
        merged = dict(self.custom_settings or {})
        merged.update(settings)
        self.custom_settings = merged


class UserPostDocument(Base, TimestampMixin, SoftDeleteMixin):  # type: ignore[valid-type,misc]
    """A post authored by a user."""

    __tablename__ = "user_posts"

    id = Column(String(32), primary_key=True, default=new_id)
    user_id = Column(String(32), nullable=False, index=True)
    title = Column(String(200), nullable=False)
    content = Column(Text, nullable=False)
    image_urls = Column(JSON, nullable=True)
    tags = Column(JSON, nullable=True)
    is_public = Column(Boolean, nullable=False, default=True)
    status = Column(String(20), nullable=False, default=PostStatus.PUBLISHED.value)

    view_count = Column(Integer, nullable=False, default=0)
    like_count = Column(Integer, nullable=False, default=0)
    comment_count = Column(Integer, nullable=False, default=0)

    def increment_view_count(self) -> None:
        self.view_count = (self.view_count or 0) + 1

    def increment_like_count(self) -> None:
        self.like_count = (self.like_count or 0) + 1

    def decrement_like_count(self) -> None:
        if (self.like_count or 0) > 0:
            self.like_count -= 1

    def increment_comment_count(self) -> None:
        self.comment_count = (self.comment_count or 0) + 1

    def decrement_comment_count(self) -> None:
        if (self.comment_count or 0) > 0:
            self.comment_count -= 1
