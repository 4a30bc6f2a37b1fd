"""Sync command: reconcile central projects with their external systems."""

import logging

from ..api.client import ApiClient
from ..config import Settings
from ..models import ProjectResult, SyncOptions, SyncResult
from ..plugin.config import load_plugin_config
from ..plugin.registry import PluginRegistry
from ..plugins import register_builtin_plugins
from ..sync.engine import SyncEngine, SyncError
from ..utils.cancel import CancelToken, SyncCancelledError
from .output import error, header, info, success

logger = logging.getLogger(__name__)


def run_sync(
    settings: Settings,
    options: SyncOptions,
    registry: PluginRegistry | None = None,
    cancel: CancelToken | None = None,
) -> int:
    """Run a sync and print a summary.

    Args:
        settings: Application settings (API location and plugin config)
        options: Which projects to sync and how
        registry: Plugin registry (default: built-in plugins)
        cancel: Token that aborts the run when cancelled

    Returns:
        Exit code (0 for success, 1 when the run failed or recorded errors)
    """
    registry = register_builtin_plugins(registry)

    def plugin_config_loader(identifier: str) -> dict[str, str]:
        return load_plugin_config(identifier, defaults=settings.plugins.get(identifier))

    if options.dry_run:
        header("Dry run: no changes will be written")

    with ApiClient(settings.api_url, api_key=settings.api_key) as api:
        engine = SyncEngine(api, registry, plugin_config_loader)
        try:
            result = engine.sync(options, cancel)
        except SyncError as e:
            error(str(e))
            return 1
        except SyncCancelledError:
            error("Sync cancelled")
            return 1

    _display_result(result)
    return 1 if result.has_errors else 0


def _display_result(result: SyncResult) -> None:
    if not result.project_results:
        info("No projects to sync")
        return

    for pr in result.project_results:
        _display_project(pr, result.dry_run)

    print()
    totals = (
        f"created {result.total_created}, updated {result.total_updated}, "
        f"skipped {result.total_skipped}, errors {result.total_errors} "
        f"({result.duration:.2f}s)"
    )
    if result.has_errors:
        error(f"Sync finished with errors: {totals}")
    else:
        success(f"Sync finished: {totals}")


def _display_project(pr: ProjectResult, dry_run: bool) -> None:
    verb = "would create" if dry_run else "created"
    header(f"{pr.project_name or pr.project_id}")
    info(f"{verb} {pr.created}, updated {pr.updated}, skipped {pr.skipped}")
    for message in pr.errors:
        error(message)
