"""Routes store lifecycle events to the sync engine."""

from __future__ import annotations

import logging

from .models import Project
from .store import StoreListener
from .sync.engine import TemplateSyncEngine

logger = logging.getLogger("templatesync.listener")


class TemplateSyncListener(StoreListener):
    """Triggers synchronization whenever a template or implementation changes.

    A project that is both an implementation and a template first pulls from
    its own template, then pushes the result down to its implementations.
    """

    def __init__(self, engine: TemplateSyncEngine):
        self.engine = engine

    def on_saved(self, project: Project) -> None:
        if project.is_implementation:
            project = self.engine.sync_on_implementation_save(project)
        if project.is_template:
            self.engine.sync_on_template_save(project)

    def on_deleted(self, project: Project) -> None:
        if project.is_template:
            self.engine.sync_on_template_delete(project)

    def on_renamed(self, project: Project, old_name: str, new_name: str) -> None:
        if project.is_template:
            self.engine.sync_on_template_rename(project, old_name, new_name)


def install(engine: TemplateSyncEngine) -> TemplateSyncListener:
    """Register a listener for ``engine`` on the engine's store."""
    listener = TemplateSyncListener(engine)
    engine.store.add_listener(listener)
    logger.debug("Sync listener installed on %s", engine.store.jobs_dir)
    return listener
