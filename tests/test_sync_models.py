"""Unit tests for sync models."""

import threading

from tasksync.models import ProjectResult, Strategy, SyncOptions, SyncResult


class TestStrategy:
    """Tests for the Strategy enum."""

    def test_values(self):
        assert Strategy.PULL == "pull"
        assert Strategy.PUSH == "push"
        assert Strategy.BIDIRECTIONAL == "bidirectional"

    def test_is_valid(self):
        assert Strategy.is_valid("pull")
        assert Strategy.is_valid(Strategy.PUSH)
        assert not Strategy.is_valid("sideways")
        assert not Strategy.is_valid("")
        assert not Strategy.is_valid(None)


class TestSyncOptions:
    """Tests for SyncOptions defaults."""

    def test_defaults(self):
        options = SyncOptions()
        assert options.project_ids == []
        assert options.system_id is None
        assert options.strategy_override is None
        assert options.dry_run is False
        assert options.force is False


class TestProjectResult:
    """Tests for ProjectResult."""

    def test_empty(self):
        pr = ProjectResult(project_id=1)
        assert pr.error_count == 0
        assert pr.has_errors is False

    def test_with_errors(self):
        pr = ProjectResult(project_id=1, errors=["one", "two"])
        assert pr.error_count == 2
        assert pr.has_errors is True


class TestSyncResult:
    """Tests for SyncResult aggregation."""

    def test_totals_are_sums(self):
        """Totals always equal the sum over project results."""
        result = SyncResult()
        result.add_project_result(ProjectResult(project_id=1, created=2, skipped=1))
        result.add_project_result(
            ProjectResult(project_id=2, updated=3, errors=["failed to fetch"])
        )

        assert result.total_created == 2
        assert result.total_updated == 3
        assert result.total_skipped == 1
        assert result.total_errors == 1
        assert result.has_errors is True
        assert [pr.project_id for pr in result.project_results] == [1, 2]

    def test_concurrent_adds(self):
        result = SyncResult()

        def add_many():
            for _ in range(100):
                result.add_project_result(ProjectResult(project_id=1, created=1))

        threads = [threading.Thread(target=add_many) for _ in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert result.total_created == 400
        assert len(result.project_results) == 400
