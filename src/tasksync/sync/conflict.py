"""Last-write-wins conflict resolution."""

import logging

from ..models import Task

logger = logging.getLogger(__name__)


def resolve_conflict(central_task: Task, external_task: Task) -> Task:
    """Pick the authoritative version of a task changed on both sides.

    The version with the strictly later `updated_at` wins. On a tie the
    external version wins.
    """
    if central_task.updated_at > external_task.updated_at:
        winner, source = central_task, "central"
    else:
        winner, source = external_task, "external"

    logger.warning(
        "Conflict detected - using %s version: central=%r (%s, updated %s) "
        "external=%r (%s, updated %s)",
        source,
        central_task.title,
        central_task.external_id,
        central_task.updated_at.isoformat(),
        external_task.title,
        external_task.external_id,
        external_task.updated_at.isoformat(),
    )
    return winner


def needs_update(source: Task, dest: Task) -> bool:
    """Whether `source` is strictly newer than `dest`.

    Ties mean no update is needed.
    """
    return source.updated_at > dest.updated_at
