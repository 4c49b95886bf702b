"""
Project store -- locates, loads, and persists project documents.

Storage layout:
    <jobs_dir>/
    ├── base/nightly/config.xml     # project "base/nightly"
    └── app-nightly/config.xml      # project "app-nightly"

The store is the host side of synchronization: every visible save fires
``on_saved`` on the registered listeners, and lifecycle operations fire
``on_deleted`` and ``on_renamed``. Inside a ``suppressed()`` scope writes
still reach disk but no listener hears about them.
"""

from __future__ import annotations

import logging
import os
import shutil
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

from .document import project_from_xml, project_to_xml
from .errors import ConfigReadError, PersistenceError
from .models import Project

logger = logging.getLogger("templatesync.store")

CONFIG_FILE_NAME = "config.xml"


def validate_name(name: str) -> None:
    """Reject names that do not map back to themselves under ``jobs_dir``.

    Raises:
        PersistenceError: If ``name`` is empty or has an empty, ``.`` or
            ``..`` segment.
    """
    if not name or any(part in ("", ".", "..") for part in name.split("/")):
        raise PersistenceError(f"Invalid project name [{name}]")


class StoreListener:
    """Receives project lifecycle events from a ``ProjectStore``."""

    def on_saved(self, project: Project) -> None:
        pass

    def on_deleted(self, project: Project) -> None:
        pass

    def on_renamed(self, project: Project, old_name: str, new_name: str) -> None:
        pass


class ProjectStore:
    """Filesystem-backed project locator and persistence layer."""

    def __init__(self, jobs_dir: Path):
        """Initialize the store.

        Args:
            jobs_dir: Root directory holding one ``config.xml`` per project.
        """
        self.jobs_dir = Path(jobs_dir).expanduser()
        self.jobs_dir.mkdir(parents=True, exist_ok=True)
        self._projects: dict[str, Project] = {}
        self._listeners: list[StoreListener] = []
        self._suppress_depth = 0
        self.reload()

    # ------------------------------------------------------------------
    # Loading and lookup
    # ------------------------------------------------------------------

    def config_path(self, name: str) -> Path:
        """Path of the configuration document for a project name."""
        return self.jobs_dir.joinpath(*name.split("/")) / CONFIG_FILE_NAME

    def reload(self) -> None:
        """Re-read every project document under ``jobs_dir``."""
        projects: dict[str, Project] = {}
        for config_file in sorted(self.jobs_dir.rglob(CONFIG_FILE_NAME)):
            name = config_file.parent.relative_to(self.jobs_dir).as_posix()
            try:
                project = project_from_xml(config_file.read_text(encoding="utf-8"), name)
            except (OSError, ConfigReadError) as exc:
                logger.warning("Skipping unreadable project %s: %s", name, exc)
                continue
            project.attach(self)
            projects[name] = project
        self._projects = projects
        logger.debug("Loaded %d project(s) from %s", len(projects), self.jobs_dir)

    def find_by_name(self, name: str) -> Optional[Project]:
        return self._projects.get(name)

    def all_projects(self) -> list[Project]:
        return [self._projects[name] for name in sorted(self._projects)]

    def implementations_of(self, template_name: str) -> list[Project]:
        """Every project whose sync policy references ``template_name``."""
        return [
            project
            for project in self.all_projects()
            if project.implementation is not None
            and project.implementation.template_name == template_name
        ]

    def read_config(self, project: Project) -> str:
        """Return the raw configuration document of a stored project.

        Raises:
            ConfigReadError: If the document cannot be read.
        """
        path = self.config_path(project.name)
        try:
            return path.read_text(encoding="utf-8")
        except OSError as exc:
            raise ConfigReadError(
                f"Cannot read configuration of [{project.name}] at {path}: {exc}"
            ) from exc

    # ------------------------------------------------------------------
    # Notifications
    # ------------------------------------------------------------------

    def add_listener(self, listener: StoreListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: StoreListener) -> None:
        self._listeners.remove(listener)

    @property
    def notifications_suppressed(self) -> bool:
        return self._suppress_depth > 0

    @contextmanager
    def suppressed(self) -> Iterator[None]:
        """Scope in which saves persist without notifying listeners."""
        self._suppress_depth += 1
        try:
            yield
        finally:
            self._suppress_depth -= 1

    def _fire(self, event: str, *args) -> None:
        if self.notifications_suppressed:
            logger.debug("Suppressed %s for %s", event, args[0].name)
            return
        for listener in list(self._listeners):
            getattr(listener, event)(*args)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def _write(self, project: Project) -> None:
        validate_name(project.name)
        document = project_to_xml(project)
        path = self.config_path(project.name)
        tmp = path.with_suffix(".xml.tmp")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(document, encoding="utf-8")
            os.replace(tmp, path)
        except OSError as exc:
            tmp.unlink(missing_ok=True)
            raise PersistenceError(f"Failed to save [{project.name}]: {exc}") from exc

    def save(self, project: Project) -> None:
        """Write a project to disk and notify listeners.

        Raises:
            PersistenceError: If the document cannot be written.
        """
        self._write(project)
        project.attach(self)
        self._projects[project.name] = project
        self._fire("on_saved", project)

    def create(self, project: Project) -> Project:
        """Register and persist a new project.

        Raises:
            PersistenceError: If the name is invalid or already taken.
        """
        validate_name(project.name)
        if project.name in self._projects:
            raise PersistenceError(f"Project [{project.name}] already exists")
        self.save(project)
        logger.info("Created project %s", project.name)
        return project

    def update_from_xml(self, project: Project, text: str) -> Project:
        """Load ``text`` onto an existing project record, keeping its name.

        The parsed document replaces the stored record and is written to
        disk. Callers must continue with the returned object.

        Raises:
            ConfigReadError: If ``text`` is not a valid project document.
            PersistenceError: If the result cannot be written.
        """
        updated = project_from_xml(text, project.name)
        updated.rebuild_derived_state()
        self.save(updated)
        return updated

    def delete(self, name: str) -> Project:
        """Remove a project and its document.

        Raises:
            KeyError: If no project has that name.
            PersistenceError: If the document cannot be removed.
        """
        project = self._projects[name]
        path = self.config_path(name)
        try:
            path.unlink(missing_ok=True)
            if path.parent != self.jobs_dir and not any(path.parent.iterdir()):
                path.parent.rmdir()
        except OSError as exc:
            raise PersistenceError(f"Failed to delete [{name}]: {exc}") from exc
        del self._projects[name]
        project.attach(None)
        logger.info("Deleted project %s", name)
        self._fire("on_deleted", project)
        return project

    def rename(self, old_name: str, new_name: str) -> Project:
        """Move a project to a new full name.

        Raises:
            KeyError: If no project is called ``old_name``.
            PersistenceError: If ``new_name`` is invalid or taken, if other
                projects are stored below ``old_name``, or if the move fails.
        """
        project = self._projects[old_name]
        validate_name(new_name)
        if new_name in self._projects:
            raise PersistenceError(f"Project [{new_name}] already exists")
        if new_name.startswith(old_name + "/"):
            raise PersistenceError(f"Cannot move [{old_name}] inside itself")
        nested = [name for name in self._projects if name.startswith(old_name + "/")]
        if nested:
            raise PersistenceError(
                f"Cannot rename [{old_name}]: it contains {', '.join(sorted(nested))}"
            )

        old_dir = self.config_path(old_name).parent
        new_dir = self.config_path(new_name).parent
        try:
            new_dir.parent.mkdir(parents=True, exist_ok=True)
            shutil.move(str(old_dir), str(new_dir))
        except OSError as exc:
            raise PersistenceError(
                f"Failed to rename [{old_name}] to [{new_name}]: {exc}"
            ) from exc

        renamed = project.model_copy(update={"name": new_name})
        renamed.rebuild_derived_state()
        renamed.attach(self)
        project.attach(None)
        del self._projects[old_name]
        self._projects[new_name] = renamed
        logger.info("Renamed project %s to %s", old_name, new_name)
        self._fire("on_renamed", renamed, old_name, new_name)
        return renamed
