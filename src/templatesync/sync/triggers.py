"""Restoring an implementation's own build triggers after a merge."""

from __future__ import annotations

import logging

from ..models import Project, Trigger

logger = logging.getLogger("templatesync.sync.triggers")


def restore_triggers(project: Project, old_triggers: list[Trigger]) -> None:
    """Replace the contents of the project's live trigger list with ``old_triggers``.

    The list object itself is kept so that anything holding a reference to
    it (schedulers, pollers) sees the change. The write happens under the
    project's trigger lock.
    """
    live = project.triggers
    if not live and not old_triggers:
        return

    with project.trigger_lock:
        live[:] = old_triggers
    logger.debug("Restored %d trigger(s) on %s", len(old_triggers), project.name)
