"""
Entity Store Module - SQLAlchemy-backed documents and repositories.

Provides the document tables for profiles, preferences and posts together
with repositories offering scoped lookups, uniqueness checks and the bulk
cascade operations used by the lifecycle services.
"""

from .database import Base, create_engine_for, init_database
from .documents import (
    PREFERENCE_DEFAULTS,
    PostStatus,
    UserPostDocument,
    UserPreferencesDocument,
    UserProfileDocument,
    UserRole,
)
from .mixins import SoftDeleteMixin, TimestampMixin
from .repositories import (
    DocumentRepository,
    UserPostRepository,
    UserPreferencesRepository,
    UserProfileRepository,
)

__all__ = [
    # Database
    "Base",
    "create_engine_for",
    "init_database",
    # Mixins
    "SoftDeleteMixin",
    "TimestampMixin",
    # Documents
    "UserProfileDocument",
    "UserPreferencesDocument",
    "UserPostDocument",
    "UserRole",
    "PostStatus",
    "PREFERENCE_DEFAULTS",
    # Repositories
    "DocumentRepository",
    "UserProfileRepository",
    "UserPreferencesRepository",
    "UserPostRepository",
]
