"""
Repositories over the entity store.

Each repository wraps one document class and exposes the lookups the
lifecycle services need. Every finder takes a ``ReadScope`` so the caller
decides whether soft-deleted records are visible.
"""

import logging
from datetime import datetime
from typing import Any, List, Optional, Type

from sqlalchemy import delete, update
from sqlalchemy.orm import Session

from ..policy import ReadScope, apply_read_scope, scope_criteria, scope_for
from .documents import UserPostDocument, UserPreferencesDocument, UserProfileDocument

logger = logging.getLogger(__name__)


class DocumentRepository:
    """Common CRUD operations for a soft-deletable document class."""

    document_class: Type[Any]

    def __init__(self, session: Session):
        self.session = session

    def query(self, scope: ReadScope = ReadScope.ACTIVE) -> Any:
        return apply_read_scope(self.document_class, self.session, scope)

    def find_by_id(
        self, document_id: str, scope: ReadScope = ReadScope.ACTIVE
    ) -> Optional[Any]:
        """
        Find a document by primary key.

        Args:
            document_id: Document identifier
            scope: Visibility of soft-deleted records

        Returns:
            The document, or None if it does not resolve under the scope
        """
        return (
            self.query(scope)
            .filter(self.document_class.id == document_id)
            .one_or_none()
        )

    def find_all(self, scope: ReadScope = ReadScope.ALL) -> List[Any]:
        return self.query(scope).all()

    def save(self, document: Any) -> Any:
        """Add the document to the session and flush so generated ids exist."""
        self.session.add(document)
        self.session.flush()
        return document

    def delete(self, document: Any) -> None:
        """Physically remove a document."""
        self.session.delete(document)
        self.session.flush()


class UserProfileRepository(DocumentRepository):
    """Repository for user profiles."""

    document_class = UserProfileDocument

    def exists_by_username(self, username: str) -> bool:
        """Check if a username is taken, including by soft-deleted profiles."""
        return (
            self.query(scope_for("uniqueness_check"))
            .filter(UserProfileDocument.username == username)
            .first()
            is not None
        )

    def exists_by_email(self, email: str) -> bool:
        """Check if an email is taken, including by soft-deleted profiles."""
        return (
            self.query(scope_for("uniqueness_check"))
            .filter(UserProfileDocument.email == email)
            .first()
            is not None
        )


class UserPreferencesRepository(DocumentRepository):
    """Repository for user preferences."""

    document_class = UserPreferencesDocument

    def find_by_user_id(
        self, user_id: str, scope: ReadScope = ReadScope.ACTIVE
    ) -> Optional[UserPreferencesDocument]:
        return (
            self.query(scope)
            .filter(UserPreferencesDocument.user_id == user_id)
            .one_or_none()
        )

    def delete_by_user_id(self, user_id: str) -> int:
        """
        Delete the preferences of a user (hard deletion cascade).

        Returns:
            Number of documents removed
        """
        result = self.session.execute(
            delete(UserPreferencesDocument).where(
                UserPreferencesDocument.user_id == user_id
            ).execution_options(synchronize_session="fetch")
        )
        logger.debug(f"Deleted {result.rowcount} preferences documents for {user_id}")
        return int(result.rowcount or 0)


class UserPostRepository(DocumentRepository):
    """Repository for user posts."""

    document_class = UserPostDocument

    def find_by_user_id(
        self, user_id: str, scope: ReadScope = ReadScope.ACTIVE
    ) -> List[UserPostDocument]:
        return self.query(scope).filter(UserPostDocument.user_id == user_id).all()

    def soft_delete_all_by_user_id(self, user_id: str, deleted_at: datetime) -> int:
        """
        Mark every active post of a user as deleted with one shared timestamp.

        Posts that were already soft-deleted keep their original timestamp.

        Args:
            user_id: Owner of the posts
            deleted_at: Timestamp applied to every affected post

        Returns:
            Number of posts marked deleted
        """
        result = self.session.execute(
            update(UserPostDocument)
            .where(
                UserPostDocument.user_id == user_id,
                *scope_criteria(
                    UserPostDocument, scope_for("cascade_soft_delete_posts")
                ),
            )
            .values(deleted=True, deleted_at=deleted_at)
            .execution_options(synchronize_session="fetch")
        )
        logger.debug(f"Soft deleted {result.rowcount} posts for {user_id}")
        return int(result.rowcount or 0)

    def delete_by_user_id(self, user_id: str) -> int:
        """
        Delete every post of a user regardless of soft-delete state.

        Returns:
            Number of posts removed
        """
        result = self.session.execute(
            delete(UserPostDocument)
            .where(UserPostDocument.user_id == user_id)
            .execution_options(synchronize_session="fetch")
        )
        logger.debug(f"Deleted {result.rowcount} posts for {user_id}")
        return int(result.rowcount or 0)
