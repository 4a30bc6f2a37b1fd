"""Tests for last-write-wins conflict resolution."""

import logging
from datetime import UTC, datetime, timedelta

from tasksync.models import Task
from tasksync.sync.conflict import needs_update, resolve_conflict

T0 = datetime(2025, 1, 1, 12, 0, tzinfo=UTC)
T1 = T0 + timedelta(hours=1)


class TestResolveConflict:
    """Tests for resolve_conflict."""

    def test_central_newer_wins(self):
        central = Task(title="Central", updated_at=T1)
        external = Task(title="External", updated_at=T0)
        assert resolve_conflict(central, external) is central

    def test_external_newer_wins(self):
        central = Task(title="Central", updated_at=T0)
        external = Task(title="External", updated_at=T1)
        assert resolve_conflict(central, external) is external

    def test_tie_goes_to_external(self):
        central = Task(title="Central", updated_at=T0)
        external = Task(title="External", updated_at=T0)
        assert resolve_conflict(central, external) is external

    def test_logs_one_warning(self, caplog):
        """Each conflict logs a single warning naming both versions."""
        central = Task(title="Central", external_id="ext-1", updated_at=T1)
        external = Task(title="External", external_id="ext-1", updated_at=T0)

        with caplog.at_level(logging.WARNING, logger="tasksync.sync.conflict"):
            resolve_conflict(central, external)

        assert len(caplog.records) == 1
        message = caplog.records[0].getMessage()
        assert "using central version" in message
        assert "'Central'" in message
        assert "'External'" in message
        assert T1.isoformat() in message


class TestNeedsUpdate:
    """Tests for needs_update."""

    def test_strictly_newer(self):
        assert needs_update(Task(title="a", updated_at=T1), Task(title="b", updated_at=T0))

    def test_older(self):
        assert not needs_update(Task(title="a", updated_at=T0), Task(title="b", updated_at=T1))

    def test_tie_needs_no_update(self):
        assert not needs_update(Task(title="a", updated_at=T0), Task(title="b", updated_at=T0))
