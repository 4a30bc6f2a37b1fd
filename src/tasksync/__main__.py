"""CLI entry point for tasksync."""

import argparse
import signal
from pathlib import Path

from . import __version__
from .config import ConfigError, load_settings
from .logging import setup_logging
from .models import Strategy, SyncOptions
from .utils.cancel import CancelToken


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="tasksync",
        description="Synchronize tasks between a central task service and external systems",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to config.yaml (default: search ./, ~/.config/tasksync/, ~/.tasksync/)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase logging verbosity (-v for INFO, -vv for DEBUG)",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Path to write logs to file",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    sync_parser = subparsers.add_parser("sync", help="Sync projects with their external systems")
    sync_parser.add_argument(
        "--project",
        dest="project_ids",
        type=int,
        action="append",
        default=[],
        metavar="ID",
        help="Sync only this project (repeatable)",
    )
    sync_parser.add_argument(
        "--system",
        dest="system_id",
        type=int,
        default=None,
        metavar="ID",
        help="Sync only projects of this system",
    )
    sync_parser.add_argument(
        "--strategy",
        choices=[strategy.value for strategy in Strategy],
        default=None,
        help="Override every project's configured strategy",
    )
    sync_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show what would sync without changing anything",
    )
    sync_parser.add_argument(
        "--force",
        action="store_true",
        help="Push every linked task, even if unchanged since the last push",
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    overrides: dict = {}
    if args.verbose:
        overrides["verbose"] = args.verbose
    if args.log_file:
        overrides["log_file"] = args.log_file

    try:
        settings = load_settings(args.config, **overrides)
    except ConfigError as e:
        from .cli.output import error

        error(str(e))
        raise SystemExit(1) from e

    setup_logging(settings.verbose, settings.log_file)

    if args.command == "sync":
        from .cli.sync import run_sync

        options = SyncOptions(
            project_ids=args.project_ids,
            system_id=args.system_id,
            strategy_override=Strategy(args.strategy) if args.strategy else None,
            dry_run=args.dry_run,
            force=args.force,
        )
        cancel = CancelToken()
        signal.signal(signal.SIGINT, lambda signum, frame: cancel.cancel())
        signal.signal(signal.SIGTERM, lambda signum, frame: cancel.cancel())
        raise SystemExit(run_sync(settings, options, cancel=cancel))


if __name__ == "__main__":
    main()
