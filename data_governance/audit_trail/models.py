"""
Data models for the profile audit trail.

Each profile carries an ordered list of these entries. Entries are frozen:
once appended they are never edited, reordered or removed by normal
operations.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..utils import utcnow


class AuditAction(str, Enum):
    """Lifecycle actions recorded on a profile."""

    CREATE = "CREATE"
    UPDATE = "UPDATE"
    SOFT_DELETE = "SOFT_DELETE"
    HARD_DELETE = "HARD_DELETE"


class AuditEntry(BaseModel):
    """Immutable audit trail entry."""

    model_config = ConfigDict(frozen=True, use_enum_values=True)

    action: AuditAction = Field(..., description="Type of action performed")
    timestamp: datetime = Field(
        default_factory=utcnow, description="UTC timestamp of the action"
    )
    details: Optional[str] = Field(None, description="Human readable description")
    performed_by: str = Field(
        "SYSTEM", description="Actor that performed the action", min_length=1
    )

    def to_document(self) -> Dict[str, Any]:
        """Serialize for storage in the profile's JSON audit column."""
        return self.model_dump(mode="json")

    @classmethod
    def from_document(cls, data: Dict[str, Any]) -> "AuditEntry":
        return cls.model_validate(data)

    def to_log_format(self) -> str:
        """
        Convert to a standardized log format string.

        Returns:
            Formatted log string
        """
        parts = [
            f"[{self.timestamp.isoformat()}]",
            f"ACTOR={self.performed_by}",
            f"ACTION={self.action}",
        ]

        if self.details:
            parts.append(f"DETAILS='{self.details}'")

        return " ".join(parts)
