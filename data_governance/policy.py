"""
Read-filter policy.

Decides, per lifecycle operation, whether store lookups exclude soft-deleted
records or see everything. Uniqueness checks and the purge path must see
soft-deleted rows; ordinary reads must not.
"""

from enum import Enum
from typing import Any, Dict, List

from sqlalchemy.orm import Query, Session


class ReadScope(str, Enum):
    """Visibility of soft-deleted records for a query."""

    ACTIVE = "active"  # exclude soft-deleted records
    ALL = "all"  # include soft-deleted records
    DELETED = "deleted"  # soft-deleted records only


READ_POLICY: Dict[str, ReadScope] = {
    # Profiles
    "uniqueness_check": ReadScope.ALL,
    "get_user": ReadScope.ACTIVE,
    "get_user_including_deleted": ReadScope.ALL,
    "update_user": ReadScope.ACTIVE,
    "soft_delete_user": ReadScope.ACTIVE,
    "hard_delete_user": ReadScope.ALL,
    "is_user_active": ReadScope.ACTIVE,
    "list_all_users": ReadScope.ALL,
    # Posts
    "get_posts_by_user": ReadScope.ACTIVE,
    "get_all_posts": ReadScope.ALL,
    "get_post": ReadScope.ACTIVE,
    "soft_delete_post": ReadScope.ACTIVE,
    "record_engagement": ReadScope.ACTIVE,
    "cascade_soft_delete_posts": ReadScope.ACTIVE,
    # Preferences
    "update_preferences_owner": ReadScope.ALL,
    "update_preferences": ReadScope.ACTIVE,
    "get_preferences": ReadScope.ACTIVE,
}


def scope_for(operation: str) -> ReadScope:
    """
    Look up the read scope for a named operation.

    Args:
        operation: Operation name as listed in ``READ_POLICY``

    Returns:
        The scope the operation must query with

    Raises:
        ValueError: If the operation has no registered scope
    """
    try:
        return READ_POLICY[operation]
    except KeyError:
        raise ValueError(f"No read policy registered for operation '{operation}'")


def scope_criteria(document_class: Any, scope: ReadScope) -> List[Any]:
    """
    SQL criteria selecting the rows visible under a scope.

    Used by bulk UPDATE and DELETE statements, which cannot start from a
    scoped ``Query``.

    Args:
        document_class: Class using ``SoftDeleteMixin``
        scope: Visibility of soft-deleted rows

    Returns:
        Criteria to splat into ``where()``; empty for ``ReadScope.ALL``
    """
    scope = ReadScope(scope)
    if scope is ReadScope.ACTIVE:
        return [document_class.deleted.is_(False)]
    if scope is ReadScope.DELETED:
        return [document_class.deleted.is_(True)]
    return []


def apply_read_scope(document_class: Any, session: Session, scope: ReadScope) -> Query[Any]:
    """
    Build a base query for a soft-deletable document class.

    Args:
        document_class: Class using ``SoftDeleteMixin``
        session: SQLAlchemy session
        scope: Visibility of soft-deleted rows

    Returns:
        Query filtered according to the scope
    """
    scope = ReadScope(scope)
    if scope is ReadScope.ACTIVE:
        return document_class.query_active(session)
    if scope is ReadScope.DELETED:
        return document_class.query_deleted(session)
    return document_class.query_all(session)
