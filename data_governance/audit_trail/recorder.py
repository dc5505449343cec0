"""
Audit recorder.

Appends lifecycle events to the audit trail embedded in a profile document.
"""

import logging
from datetime import datetime
from typing import Any, Callable, List, Optional, Union

from ..utils import utcnow
from .models import AuditAction, AuditEntry

logger = logging.getLogger(__name__)


class AuditRecorder:
    """Append-only writer for profile audit trails.

    The recorder never mutates the stored list in place. Every call replaces
    ``profile.audit_trail`` with a new list holding the previous entries
    followed by the new one, which also lets SQLAlchemy detect the change on
    the JSON column.

    Example:
        >>> recorder = AuditRecorder(default_actor="SYSTEM")
        >>> recorder.record(profile, AuditAction.CREATE, "User profile created")
    """

    def __init__(
        self,
        default_actor: str = "SYSTEM",
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Initialize the recorder.

        Args:
            default_actor: Actor stored on entries when none is supplied
            clock: Callable returning the current naive-UTC time
        """
        self.default_actor = default_actor
        self.clock = clock or utcnow

    def record(
        self,
        profile: Any,
        action: Union[str, AuditAction],
        details: Optional[str] = None,
        performed_by: Optional[str] = None,
        timestamp: Optional[datetime] = None,
    ) -> AuditEntry:
        """
        Append an entry to the profile's audit trail.

        Args:
            profile: Document exposing an ``audit_trail`` list attribute
            action: Lifecycle action being recorded
            details: Description of the change
            performed_by: Actor override
            timestamp: Explicit event time, defaults to the recorder clock

        Returns:
            The appended entry
        """
        entry = AuditEntry(
            action=AuditAction(action),
            timestamp=timestamp or self.clock(),
            details=details,
            performed_by=performed_by or self.default_actor,
        )

        existing = list(profile.audit_trail or [])
        profile.audit_trail = existing + [entry.to_document()]

        logger.debug(
            f"Audit entry recorded for profile {getattr(profile, 'id', None)}: "
            f"{entry.to_log_format()}"
        )
        return entry

    @staticmethod
    def entries(profile: Any) -> List[AuditEntry]:
        """Return the profile's audit trail as ``AuditEntry`` models, in order."""
        return [AuditEntry.from_document(item) for item in profile.audit_trail or []]
