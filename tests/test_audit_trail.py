"""
Tests for the profile audit trail.
"""

from datetime import datetime
from types import SimpleNamespace

import pytest
from pydantic import ValidationError

from data_governance.audit_trail import AuditAction, AuditEntry, AuditRecorder


@pytest.fixture
def profile():
    """A stand-in document with an empty audit trail."""
    return SimpleNamespace(id="profile-1", audit_trail=[])


class TestAuditEntry:
    """Test the audit entry model."""

    def test_entry_is_immutable(self):
        entry = AuditEntry(action=AuditAction.CREATE, details="created")

        with pytest.raises(ValidationError):
            entry.details = "changed"

    def test_to_document(self):
        entry = AuditEntry(
            action=AuditAction.SOFT_DELETE,
            timestamp=datetime(2024, 1, 2, 3, 4, 5),
            details="User profile soft deleted",
        )

        document = entry.to_document()

        assert document == {
            "action": "SOFT_DELETE",
            "timestamp": "2024-01-02T03:04:05",
            "details": "User profile soft deleted",
            "performed_by": "SYSTEM",
        }
        assert AuditEntry.from_document(document) == entry

    def test_to_log_format(self):
        entry = AuditEntry(
            action=AuditAction.HARD_DELETE,
            timestamp=datetime(2024, 1, 2, 3, 4, 5),
            details="gone",
            performed_by="ops",
        )

        log_line = entry.to_log_format()

        assert log_line.startswith("[2024-01-02T03:04:05]")
        assert "ACTOR=ops" in log_line
        assert "ACTION=HARD_DELETE" in log_line
        assert "DETAILS='gone'" in log_line

    def test_invalid_action(self):
        with pytest.raises(ValidationError):
            AuditEntry(action="RESTORE")


class TestAuditRecorder:
    """Test appending entries to a profile."""

    def test_record_appends_in_order(self, profile):
        recorder = AuditRecorder()

        recorder.record(profile, AuditAction.CREATE, "created")
        recorder.record(profile, AuditAction.UPDATE, "updated")

        actions = [entry.action for entry in AuditRecorder.entries(profile)]
        assert actions == ["CREATE", "UPDATE"]

    def test_record_replaces_list(self, profile):
        """Existing lists are never mutated in place."""
        original = profile.audit_trail

        AuditRecorder().record(profile, AuditAction.CREATE)

        assert original == []
        assert len(profile.audit_trail) == 1

    def test_record_uses_clock_and_actor(self, profile):
        moment = datetime(2024, 5, 6, 7, 8, 9)
        recorder = AuditRecorder(default_actor="batch-job", clock=lambda: moment)

        entry = recorder.record(profile, "UPDATE", "updated")

        assert entry.timestamp == moment
        assert entry.performed_by == "batch-job"

    def test_record_overrides(self, profile):
        moment = datetime(2023, 1, 1)
        entry = AuditRecorder().record(
            profile,
            AuditAction.SOFT_DELETE,
            performed_by="admin",
            timestamp=moment,
        )

        assert entry.timestamp == moment
        assert entry.performed_by == "admin"
        assert profile.audit_trail[0]["performed_by"] == "admin"
