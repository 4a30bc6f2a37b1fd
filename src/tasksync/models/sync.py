"""Sync-related data models: strategy, options and results."""

import threading
from dataclasses import dataclass, field
from enum import Enum


class Strategy(str, Enum):
    """Direction in which a project is synchronized."""

    PULL = "pull"  # External system -> central service only
    PUSH = "push"  # Central service -> external system only
    BIDIRECTIONAL = "bidirectional"  # Both, last write wins

    @classmethod
    def is_valid(cls, value: "Strategy | str | None") -> bool:
        """Whether `value` names one of the known strategies."""
        if isinstance(value, cls):
            return True
        return value in {member.value for member in cls}


@dataclass
class SyncOptions:
    """Options for one sync run."""

    project_ids: list[int] = field(default_factory=list)  # Empty = all projects
    system_id: int | None = None  # Only projects of this system (ignored with project_ids)
    strategy_override: Strategy | str | None = None  # Wins over each project's strategy
    dry_run: bool = False  # Count what would happen, change nothing
    force: bool = False  # Push every linked task, ignoring last_pushed_at


@dataclass
class ProjectResult:
    """Outcome of syncing a single project."""

    project_id: int
    project_name: str = ""
    created: int = 0
    updated: int = 0
    skipped: int = 0
    errors: list[str] = field(default_factory=list)  # Error messages with task context

    @property
    def error_count(self) -> int:
        """Number of errors encountered."""
        return len(self.errors)

    @property
    def has_errors(self) -> bool:
        """Whether any errors occurred."""
        return len(self.errors) > 0


@dataclass
class SyncResult:
    """Outcome of a sync run across all projects."""

    project_results: list[ProjectResult] = field(default_factory=list)
    total_created: int = 0
    total_updated: int = 0
    total_skipped: int = 0
    total_errors: int = 0
    duration: float = 0.0  # Seconds
    dry_run: bool = False
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def add_project_result(self, project_result: ProjectResult) -> None:
        """Append a project result and fold its counters into the totals."""
        with self._lock:
            self.project_results.append(project_result)
            self.total_created += project_result.created
            self.total_updated += project_result.updated
            self.total_skipped += project_result.skipped
            self.total_errors += project_result.error_count

    @property
    def has_errors(self) -> bool:
        """Whether any project recorded an error."""
        return self.total_errors > 0
