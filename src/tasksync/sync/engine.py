"""Sync engine reconciling central tasks with external systems.

This module provides the SyncEngine class which handles:
- Selecting the projects to sync and each project's strategy
- Building and validating the plugin for each project's system
- Pulling external tasks and comments into the central service
- Pushing central tasks and comments to the external system

Failures while syncing a project are recorded in that project's result and
never stop the run. Only failing to resolve the set of projects aborts a
sync. Plugins signal optional operations they do not implement with
NotSupportedError, which counts as a skip rather than an error.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import TYPE_CHECKING

from ..models import (
    CommentCreate,
    CommentUpdate,
    Project,
    ProjectResult,
    ProjectUpdate,
    Strategy,
    SyncOptions,
    SyncResult,
    Task,
    TaskCreate,
    TaskUpdate,
)
from ..plugin.config import load_plugin_config
from ..plugin.errors import is_not_found, is_not_supported
from ..utils.cancel import CancelToken
from ..utils.datetime import now_utc
from .conflict import needs_update

if TYPE_CHECKING:
    from ..api.client import ApiClient
    from ..plugin.protocol import PluginProtocol
    from ..plugin.registry import PluginRegistry

logger = logging.getLogger(__name__)

PluginConfigLoader = Callable[[str], dict[str, str]]


class SyncError(Exception):
    """The set of projects to sync could not be resolved."""

    pass


def resolve_strategy(project: Project, options: SyncOptions) -> Strategy | str:
    """Determine the strategy for a project.

    An explicit override always wins over the project's configured strategy.
    Unknown values are returned unchanged so the caller can report them.
    """
    value = options.strategy_override
    if value is None:
        value = project.sync_strategy
    if Strategy.is_valid(value):
        return Strategy(value)
    return value


class SyncEngine:
    """Engine for synchronizing projects between the central service and plugins.

    Projects are processed one after another. For bidirectional projects the
    whole pull runs before the push, so the push sees the pulled state.
    """

    def __init__(
        self,
        api_client: ApiClient,
        registry: PluginRegistry,
        plugin_config_loader: PluginConfigLoader = load_plugin_config,
    ) -> None:
        """Initialize the sync engine.

        Args:
            api_client: Client for the central task service
            registry: Registry used to build a plugin per system
            plugin_config_loader: Returns the plugin config for a system identifier
        """
        self._api = api_client
        self._registry = registry
        self._load_plugin_config = plugin_config_loader

    # --- Public API ---

    def sync(self, options: SyncOptions, cancel: CancelToken | None = None) -> SyncResult:
        """Run a sync.

        Args:
            options: Which projects to sync and how
            cancel: Token checked before every blocking call

        Returns:
            SyncResult with per-project counters and errors

        Raises:
            SyncError: If the projects to sync could not be fetched
            SyncCancelledError: If the token was cancelled
        """
        if cancel is None:
            cancel = CancelToken()

        start_time = time.monotonic()
        result = SyncResult(dry_run=options.dry_run)

        projects = self._get_projects_to_sync(cancel, options)
        if not projects:
            logger.debug("No projects to sync")
            return result

        logger.debug("Syncing %d project(s)", len(projects))

        for project in projects:
            cancel.raise_if_cancelled()
            result.add_project_result(self._sync_project(cancel, project, options))

        result.duration = time.monotonic() - start_time
        logger.info(
            "Sync finished: created=%d updated=%d skipped=%d errors=%d (%.2fs)",
            result.total_created,
            result.total_updated,
            result.total_skipped,
            result.total_errors,
            result.duration,
        )
        return result

    # --- Internal: Project selection ---

    def _get_projects_to_sync(self, cancel: CancelToken, options: SyncOptions) -> list[Project]:
        """Fetch the explicitly requested projects, or list them by system."""
        if options.project_ids:
            projects: list[Project] = []
            for project_id in options.project_ids:
                try:
                    projects.append(self._api.get_project(cancel, project_id))
                except Exception as e:
                    raise SyncError(f"failed to get project {project_id}: {e}") from e
            return projects

        try:
            return self._api.list_projects(cancel, system_id=options.system_id)
        except Exception as e:
            raise SyncError(f"failed to list projects: {e}") from e

    # --- Internal: Per-project orchestration ---

    def _sync_project(
        self, cancel: CancelToken, project: Project, options: SyncOptions
    ) -> ProjectResult:
        """Sync one project, recording every failure in its result."""
        pr = ProjectResult(project_id=project.id, project_name=project.name)

        logger.debug("Syncing project %s (id=%d)", project.name, project.id)

        strategy = resolve_strategy(project, options)
        logger.debug("Project %s: using strategy %s", project.name, strategy)

        try:
            system = self._api.get_system(cancel, project.system_id)
        except Exception as e:
            self._record_error(pr, f"failed to get system: {e}")
            return pr

        try:
            plugin_config = self._load_plugin_config(system.identifier)
        except Exception as e:
            self._record_error(pr, f"failed to load plugin config: {e}")
            return pr

        try:
            plugin = self._registry.create(system.identifier, plugin_config)
        except Exception as e:
            self._record_error(pr, f"failed to create plugin: {e}")
            return pr

        try:
            self._run_strategy(cancel, project, plugin, strategy, options, pr)
        finally:
            _close_plugin(plugin)

        if pr.has_errors:
            logger.debug(
                "Project %s synced with %d error(s)", project.name, pr.error_count
            )
            return pr

        logger.debug(
            "Project %s synced: created=%d updated=%d skipped=%d",
            project.name,
            pr.created,
            pr.updated,
            pr.skipped,
        )
        if not options.dry_run:
            try:
                self._api.update_project(
                    cancel, project.id, ProjectUpdate(last_synced_at=now_utc())
                )
            except Exception as e:
                logger.warning("Failed to update last_synced_at for %s: %s", project.name, e)
        return pr

    def _run_strategy(
        self,
        cancel: CancelToken,
        project: Project,
        plugin: PluginProtocol,
        strategy: Strategy | str,
        options: SyncOptions,
        pr: ProjectResult,
    ) -> None:
        """Validate the plugin, then pull, push or both."""
        try:
            plugin.validate_config()
        except Exception as e:
            self._record_error(pr, f"plugin not configured: {e}")
            return

        if strategy == Strategy.PULL:
            self._sync_pull(cancel, project, plugin, options.dry_run, pr)
        elif strategy == Strategy.PUSH:
            self._sync_push(cancel, project, plugin, options, pr)
        elif strategy == Strategy.BIDIRECTIONAL:
            self._sync_pull(cancel, project, plugin, options.dry_run, pr)
            self._sync_push(cancel, project, plugin, options, pr)
        else:
            self._record_error(pr, f"unknown strategy: {strategy}")

    # --- Internal: Pull ---

    def _sync_pull(
        self,
        cancel: CancelToken,
        project: Project,
        plugin: PluginProtocol,
        dry_run: bool,
        pr: ProjectResult,
    ) -> None:
        """Pull tasks from the external system into the central service."""
        try:
            external_tasks = plugin.fetch_tasks(cancel, project.external_id or None)
        except Exception as e:
            self._record_error(pr, f"failed to fetch external tasks: {e}")
            return

        try:
            central_tasks = self._api.list_tasks(cancel, project_id=project.id)
        except Exception as e:
            self._record_error(pr, f"failed to fetch central tasks: {e}")
            return

        # Unlinked central tasks can never match
        central_by_external_id = {
            task.external_id: task for task in central_tasks if task.external_id
        }

        for external_task in external_tasks:
            cancel.raise_if_cancelled()

            if not external_task.external_id:
                logger.debug("External task %r has no external_id, skipping", external_task.title)
                pr.skipped += 1
                continue

            central_task = central_by_external_id.get(external_task.external_id)

            if central_task is None:
                if not dry_run:
                    try:
                        created = self._api.create_task(
                            cancel, _task_create_from(external_task, project.id)
                        )
                    except Exception as e:
                        self._record_error(
                            pr, f"failed to create task {external_task.title!r}: {e}"
                        )
                        continue
                    self._sync_pull_comments(cancel, project, plugin, created, pr)
                logger.debug("Created task %r", external_task.title)
                pr.created += 1
            elif needs_update(external_task, central_task):
                if not dry_run:
                    try:
                        self._api.update_task(
                            cancel, central_task.id, _task_update_from(external_task)
                        )
                    except Exception as e:
                        self._record_error(
                            pr, f"failed to update task {external_task.title!r}: {e}"
                        )
                        continue
                logger.debug("Updated task %r", external_task.title)
                pr.updated += 1
            else:
                pr.skipped += 1

            if central_task is not None and not dry_run:
                self._sync_pull_comments(cancel, project, plugin, central_task, pr)

    def _sync_pull_comments(
        self,
        cancel: CancelToken,
        project: Project,
        plugin: PluginProtocol,
        task: Task,
        pr: ProjectResult,
    ) -> None:
        """Create central copies of external comments not seen before."""
        if not task.external_id:
            return

        try:
            external_comments = plugin.fetch_comments(
                cancel, project.external_id or None, task.external_id
            )
        except Exception as e:
            if is_not_supported(e):
                return
            self._record_error(pr, f"failed to fetch comments for task {task.title!r}: {e}")
            return

        try:
            central_comments = self._api.list_comments(cancel, task.id)
        except Exception as e:
            self._record_error(
                pr, f"failed to fetch central comments for task {task.title!r}: {e}"
            )
            return

        central_by_external_id = {
            comment.external_id: comment for comment in central_comments if comment.external_id
        }

        for external_comment in external_comments:
            if not external_comment.external_id:
                logger.debug("External comment has no external_id, skipping")
                continue
            if external_comment.external_id in central_by_external_id:
                # Comments are immutable once created
                continue

            try:
                created = self._api.create_comment(
                    cancel,
                    CommentCreate(
                        task_id=task.id,
                        external_id=external_comment.external_id,
                        content=external_comment.content,
                        author=external_comment.author,
                    ),
                )
            except Exception as e:
                self._record_error(pr, f"failed to create comment on task {task.title!r}: {e}")
                continue

            central_by_external_id[external_comment.external_id] = created
            logger.debug("Synced comment by %s", external_comment.author)

    # --- Internal: Push ---

    def _sync_push(
        self,
        cancel: CancelToken,
        project: Project,
        plugin: PluginProtocol,
        options: SyncOptions,
        pr: ProjectResult,
    ) -> None:
        """Push central tasks to the external system."""
        try:
            central_tasks = self._api.list_tasks(cancel, project_id=project.id)
        except Exception as e:
            self._record_error(pr, f"failed to fetch central tasks: {e}")
            return

        project_external_id = project.external_id or None

        for task in central_tasks:
            cancel.raise_if_cancelled()

            if not task.external_id:
                self._push_new_task(cancel, project_external_id, plugin, task, options, pr)
                continue

            if self._push_existing_task(cancel, project_external_id, plugin, task, options, pr):
                if not options.dry_run:
                    self._sync_push_comments(cancel, project_external_id, plugin, task, pr)

    def _push_new_task(
        self,
        cancel: CancelToken,
        project_external_id: str | None,
        plugin: PluginProtocol,
        task: Task,
        options: SyncOptions,
        pr: ProjectResult,
    ) -> None:
        """Create an unlinked central task externally and link it back."""
        if options.dry_run:
            logger.debug("[DRY RUN] Would create external task %r", task.title)
            pr.created += 1
            return

        # List responses can omit the description
        try:
            full_task = self._api.get_task(cancel, task.id)
        except Exception as e:
            self._record_error(pr, f"failed to fetch full task {task.title!r}: {e}")
            return

        try:
            created = plugin.create_task(
                cancel, project_external_id, _task_create_from(full_task, project_id=0)
            )
        except Exception as e:
            if is_not_supported(e):
                pr.skipped += 1
                return
            self._record_error(pr, f"failed to create external task {task.title!r}: {e}")
            return

        # Most systems cannot create a task in a closed state
        if full_task.is_closed:
            try:
                plugin.update_task(
                    cancel,
                    project_external_id,
                    created.external_id,
                    TaskUpdate(status=full_task.status),
                )
            except Exception as e:
                if not is_not_supported(e):
                    self._record_error(pr, f"failed to close external task {task.title!r}: {e}")

        try:
            self._api.update_task(
                cancel,
                task.id,
                TaskUpdate(
                    external_id=created.external_id,
                    source_url=created.source_url,
                    last_pushed_at=now_utc(),
                ),
            )
        except Exception as e:
            self._record_error(
                pr, f"failed to update task {task.title!r} with external_id: {e}"
            )
            return

        logger.debug("Created external task %r as %s", task.title, created.external_id)
        pr.created += 1

    def _push_existing_task(
        self,
        cancel: CancelToken,
        project_external_id: str | None,
        plugin: PluginProtocol,
        task: Task,
        options: SyncOptions,
        pr: ProjectResult,
    ) -> bool:
        """Push a linked task if it is newer than its external copy.

        Returns:
            True if comment sync should follow for this task
        """
        if (
            not options.force
            and task.last_pushed_at is not None
            and not task.updated_at > task.last_pushed_at
        ):
            # Unchanged since the last successful push
            pr.skipped += 1
            return True

        try:
            external_task = plugin.fetch_task(cancel, project_external_id, task.external_id)
        except Exception as e:
            if is_not_supported(e):
                pr.skipped += 1
                return False
            if is_not_found(e):
                if task.is_closed and not options.dry_run:
                    # It may be closed already and hidden from lookups
                    try:
                        plugin.update_task(
                            cancel,
                            project_external_id,
                            task.external_id,
                            TaskUpdate(status=task.status),
                        )
                    except Exception as close_error:
                        logger.debug(
                            "Closing missing task %s failed: %s", task.external_id, close_error
                        )
                    else:
                        logger.debug("Closed task %r externally", task.title)
                        pr.updated += 1
                        return False
                logger.debug("Task %r no longer exists externally, skipping", task.title)
                pr.skipped += 1
                return False
            self._record_error(pr, f"failed to fetch external task {task.external_id!r}: {e}")
            return False

        if not (options.force or needs_update(task, external_task)):
            pr.skipped += 1
            return True

        if not options.dry_run:
            try:
                full_task = self._api.get_task(cancel, task.id)
            except Exception as e:
                self._record_error(pr, f"failed to fetch full task {task.title!r}: {e}")
                return False

            try:
                plugin.update_task(
                    cancel, project_external_id, task.external_id, _task_update_from(full_task)
                )
            except Exception as e:
                if is_not_supported(e):
                    pr.skipped += 1
                    return False
                self._record_error(pr, f"failed to push task {task.title!r}: {e}")
                return False

            # Forced pushes keep the existing timestamps
            if not options.force:
                try:
                    self._api.update_task(cancel, task.id, TaskUpdate(last_pushed_at=now_utc()))
                except Exception as e:
                    logger.warning("Failed to update last_pushed_at for %r: %s", task.title, e)

        logger.debug("Pushed task %r", task.title)
        pr.updated += 1
        return True

    def _sync_push_comments(
        self,
        cancel: CancelToken,
        project_external_id: str | None,
        plugin: PluginProtocol,
        task: Task,
        pr: ProjectResult,
    ) -> None:
        """Push central comments that were never pushed, recording their external ids."""
        if not task.external_id:
            return

        try:
            central_comments = self._api.list_comments(cancel, task.id)
        except Exception as e:
            self._record_error(
                pr, f"failed to fetch central comments for task {task.title!r}: {e}"
            )
            return

        # Fetched before pushing so a plugin without comments stops here
        try:
            plugin.fetch_comments(cancel, project_external_id, task.external_id)
        except Exception as e:
            if is_not_supported(e):
                return
            self._record_error(
                pr, f"failed to fetch external comments for task {task.title!r}: {e}"
            )
            return

        for comment in central_comments:
            if comment.external_id:
                continue

            try:
                created = plugin.create_comment(
                    cancel,
                    project_external_id,
                    task.external_id,
                    CommentCreate(content=comment.content, author=comment.author),
                )
            except Exception as e:
                if is_not_supported(e):
                    return
                self._record_error(pr, f"failed to push comment to task {task.title!r}: {e}")
                continue

            if created.external_id:
                try:
                    self._api.update_comment(
                        cancel,
                        comment.id,
                        CommentUpdate(content=comment.content, external_id=created.external_id),
                    )
                except Exception as e:
                    self._record_error(
                        pr, f"failed to update comment external_id for task {task.title!r}: {e}"
                    )
            logger.debug("Pushed comment by %s", comment.author)

    # --- Internal: Helpers ---

    def _record_error(self, pr: ProjectResult, message: str) -> None:
        """Record a recoverable failure for a project."""
        pr.errors.append(message)
        logger.error("Project %s: %s", pr.project_name, message)


def _close_plugin(plugin: PluginProtocol) -> None:
    """Release the plugin's resources if it holds any, e.g. an HTTP client."""
    close = getattr(plugin, "close", None)
    if callable(close):
        try:
            close()
        except Exception as e:
            logger.warning("Failed to close plugin %s: %s", plugin.name, e)


def _task_create_from(task: Task, project_id: int) -> TaskCreate:
    """Build a create payload carrying the task's synced fields."""
    return TaskCreate(
        external_id=task.external_id,
        source_url=task.source_url,
        title=task.title,
        description=task.description,
        project_id=project_id,
        status=task.status,
        priority=task.priority,
        due_date=task.due_date,
        labels=task.label_names(),
        assignees=task.assignee_names(),
    )


def _task_update_from(task: Task) -> TaskUpdate:
    """Build an update payload carrying the task's mutable fields."""
    return TaskUpdate(
        title=task.title,
        description=task.description,
        status=task.status,
        priority=task.priority,
        due_date=task.due_date,
        labels=task.label_names(),
        assignees=task.assignee_names(),
    )
