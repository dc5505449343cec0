"""
Audit Trail Module - ordered lifecycle history for user profiles.

Provides the immutable entry model and the recorder that appends entries to a
profile document.
"""

from .models import AuditAction, AuditEntry
from .recorder import AuditRecorder

__all__ = [
    "AuditAction",
    "AuditEntry",
    "AuditRecorder",
]
