"""
SQLAlchemy mixins for documents in the entity store.

These mixins provide the soft delete marker and the created/updated
timestamps shared by every document type.
"""

from datetime import datetime
from typing import Any, Optional

from sqlalchemy import Boolean, CheckConstraint, DateTime
from sqlalchemy.orm import Mapped, Query, Session, declared_attr, mapped_column

from ..utils import utcnow


class TimestampMixin:
    """Adds ``created_at`` and ``updated_at`` maintained on insert and update."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, onupdate=utcnow, nullable=False
    )


class SoftDeleteMixin:
    """
    Mixin to add soft delete functionality to SQLAlchemy documents.

    Provides:
    - Soft delete fields (deleted, deleted_at)
    - A table constraint keeping ``deleted_at`` set iff ``deleted`` is true
    - Query helpers for active, deleted and all records

    Usage:
        class MyDocument(Base, SoftDeleteMixin):
            __tablename__ = 'my_documents'
            id = Column(String(32), primary_key=True)
    """

    deleted: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False, index=True
    )
    deleted_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    @declared_attr
    def __table_args__(cls: Any) -> Any:
        """Add the deletion consistency check constraint."""
        table_name = getattr(cls, "__tablename__", cls.__name__.lower())

        return (
            CheckConstraint(
                "(deleted = false AND deleted_at IS NULL) OR "
                "(deleted = true AND deleted_at IS NOT NULL)",
                name=f"ck_{table_name}_deletion_consistency",
            ),
        )

    @property
    def is_active(self) -> bool:
        return not self.deleted

    def mark_as_deleted(self, deleted_at: Optional[datetime] = None) -> datetime:
        """
        Soft delete this record.

        Args:
            deleted_at: Deletion time, shared with cascaded records when given

        Returns:
            The deletion timestamp that was applied
        """
        timestamp = deleted_at or utcnow()
        self.deleted = True
        self.deleted_at = timestamp
        return timestamp

    @classmethod
    def query_active(cls, session: Session) -> Query[Any]:
        """
        Return query for active (non-deleted) records only.

        Args:
            session: SQLAlchemy session

        Returns:
            Query filtered to exclude deleted records
        """
        return session.query(cls).filter(cls.deleted.is_(False))

    @classmethod
    def query_deleted(cls, session: Session) -> Query[Any]:
        """Return query for deleted records only."""
        return session.query(cls).filter(cls.deleted.is_(True))

    @classmethod
    def query_all(cls, session: Session) -> Query[Any]:
        """Return query for all records including deleted."""
        return session.query(cls)
