"""
Data Governance Toolkit - lifecycle rules for user data.

Manages user profiles, user preferences and user posts with a soft-delete /
hard-delete lifecycle: soft deletion hides a profile and cascades to its
posts, and after a configurable grace period the profile can be permanently
erased together with its preferences and posts.

Key Features
------------
* **Lifecycle Rules**: Uniqueness checks, active/inactive gating, cascades
* **Grace Period**: Hard deletion only after a configurable waiting time
* **Audit Trail**: Ordered, append-only history embedded in each profile
* **Read-Filter Policy**: Explicit visibility of soft-deleted records per operation

Quick Start
-----------
>>> from data_governance import GovernanceConfig, UserProfileService, init_database
>>>
>>> Session = init_database("sqlite:///:memory:")
>>> session = Session()
>>> users = UserProfileService(session, config=GovernanceConfig())
>>> alice = users.create_user(
...     {"username": "alice", "email": "a@x.com", "first_name": "Alice",
...      "last_name": "Smith", "roles": ["USER"]}
... )
>>> users.soft_delete_user(alice.id)
"""

__version__ = "1.0.0"

from .audit_trail import AuditAction, AuditEntry, AuditRecorder
from .config import GovernanceConfig, configure, get_config, set_config
from .lifecycle import (
    BusinessRuleViolationException,
    GovernanceError,
    ResourceConflictException,
    ResourceNotFoundException,
    UserPostService,
    UserPreferencesService,
    UserProfileService,
    ValidationFailure,
)
from .policy import ReadScope
from .store import init_database

__all__ = [
    # Services
    "UserProfileService",
    "UserPostService",
    "UserPreferencesService",
    # Audit Trail
    "AuditAction",
    "AuditEntry",
    "AuditRecorder",
    # Read policy
    "ReadScope",
    # Store
    "init_database",
    # Exceptions
    "GovernanceError",
    "ResourceNotFoundException",
    "ResourceConflictException",
    "BusinessRuleViolationException",
    "ValidationFailure",
    # Configuration
    "GovernanceConfig",
    "get_config",
    "set_config",
    "configure",
]
