"""
Sync Engine -- propagates template changes to implementations.

This is the command center. It is constructed with the store that locates
and persists projects (and, optionally, an audit log) and is driven by
the host's save, delete, and rename notifications.

    template saved    ->  re-sync every implementation, one at a time
    template deleted  ->  detach every implementation
    template renamed  ->  repoint every implementation still on the old name
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

from ..audit import (
    SYNC_FAILED,
    SYNC_IMPLEMENTATION,
    TEMPLATE_DELETED,
    TEMPLATE_RENAMED,
    AuditLog,
)
from ..errors import SyncBatchError, TemplateNotFoundError, TemplateSyncError
from ..models import MatrixProject, Project, SyncPolicy
from ..store import ProjectStore
from .merger import ConfigDocumentMerger
from .parameters import reconcile_parameters
from .snapshot import FieldSnapshot
from .triggers import restore_triggers

logger = logging.getLogger("templatesync.sync.engine")


@dataclass
class SyncReport:
    """Outcome of fanning a template save out to its implementations."""

    template: str
    synced: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failed


class TemplateSyncEngine:
    """Keeps implementations in step with their templates.

    Every correction the engine makes after overwriting an implementation
    is a plain field write done inside ``store.suppressed()``, so fixing up
    an implementation never fires the save notification that would sync
    it again.
    """

    def __init__(self, store: ProjectStore, audit: Optional[AuditLog] = None):
        """Initialize the engine.

        Args:
            store: Project locator and persistence layer.
            audit: Optional audit log receiving one entry per sync event.
        """
        self.store = store
        self.audit = audit
        self.merger = ConfigDocumentMerger(store)

    # ------------------------------------------------------------------
    # Template events
    # ------------------------------------------------------------------

    def sync_on_template_save(self, template: Project) -> SyncReport:
        """Re-sync every implementation of a template that was just saved.

        Implementations are processed sequentially. One failing does not
        stop the rest; the failures are collected and raised together once
        the batch is done.

        Returns:
            SyncReport listing the synced implementations.

        Raises:
            SyncBatchError: If any implementation failed to sync.
        """
        logger.info("Template [%s] was saved. Syncing implementations.", template.name)
        report = SyncReport(template=template.name)

        for impl in self.store.implementations_of(template.name):
            try:
                self.sync_on_implementation_save(impl)
            except TemplateSyncError as exc:
                logger.error("Failed to sync [%s] with [%s]: %s", impl.name, template.name, exc)
                report.failed[impl.name] = str(exc)
                self._audit(SYNC_FAILED, impl.name, str(exc), {"template": template.name})
            else:
                report.synced.append(impl.name)

        if report.failed:
            raise SyncBatchError(report)
        return report

    def sync_on_template_delete(self, template: Project) -> list[str]:
        """Detach every implementation from a deleted template.

        Only the sync policy marker is removed; no other field changes and
        no merge runs.

        Returns:
            Names of the implementations that were detached.
        """
        logger.info("Template [%s] was deleted.", template.name)
        detached = []

        for impl in self.store.implementations_of(template.name):
            logger.info("Removing template from [%s].", impl.name)
            with self.store.suppressed():
                impl.implementation = None
                self.store.save(impl)
            detached.append(impl.name)
            self._audit(TEMPLATE_DELETED, impl.name, f"Detached from {template.name}")

        return detached

    def sync_on_template_rename(
        self, template: Project, old_name: str, new_name: str
    ) -> list[str]:
        """Point implementations registered under ``old_name`` at ``new_name``.

        Only implementations whose reference still reads ``old_name`` are
        visited, so a repeated rename notification finds nothing to do.

        Returns:
            Names of the implementations that were updated.
        """
        logger.info("Template [%s] was renamed. Updating implementations.", template.name)
        updated = []

        for impl in self.store.implementations_of(old_name):
            policy = impl.implementation
            logger.info("Updating template in [%s].", impl.name)
            with self.store.suppressed():
                policy.template_name = new_name
                self.store.save(impl)
            updated.append(impl.name)
            self._audit(
                TEMPLATE_RENAMED,
                impl.name,
                f"{old_name} -> {new_name}",
                {"old": old_name, "new": new_name},
            )

        return updated

    # ------------------------------------------------------------------
    # Implementation sync
    # ------------------------------------------------------------------

    def sync_on_implementation_save(self, impl: Project) -> Project:
        """Re-apply an implementation's template, keeping its local fields.

        Args:
            impl: The implementation to synchronize.

        Returns:
            The updated implementation. The object passed in is stale
            afterwards.

        Raises:
            TemplateSyncError: If ``impl`` has no sync policy.
            TemplateNotFoundError: If its template does not exist. Nothing
                has been changed at that point.
            ConfigReadError: If the template document cannot be read.
                Nothing has been changed at that point.
            PersistenceError: If a save fails.
        """
        policy = impl.implementation
        if policy is None:
            raise TemplateSyncError(f"[{impl.name}] does not implement a template")

        logger.info(
            "Implementation [%s] was saved. Syncing with [%s].",
            impl.name,
            policy.template_name,
        )
        template = self.store.find_by_name(policy.template_name)
        if template is None:
            raise TemplateNotFoundError(policy.template_name, impl.name)

        snapshot = FieldSnapshot.capture(impl, policy)

        with self.store.suppressed():
            impl = self.merger.merge(impl, template)

            self._fix_properties(impl, policy, snapshot.was_template)
            result = reconcile_parameters(snapshot.parameters, impl.parameter_definitions)
            impl.parameters = result.block

            if not policy.sync_build_triggers:
                restore_triggers(impl, snapshot.triggers)

            if not policy.sync_disabled:
                impl.disabled = snapshot.disabled

            if (
                snapshot.axes is not None
                and isinstance(impl, MatrixProject)
                and not policy.sync_matrix_axis
            ):
                impl.axes = snapshot.axes
                impl.rebuild_configurations()

            if not policy.sync_description and snapshot.description is not None:
                impl.description = snapshot.description

            self.store.save(impl)

        self._audit(
            SYNC_IMPLEMENTATION,
            impl.name,
            f"Synced with {template.name}",
            {
                "template": template.name,
                "parameters_added": result.added,
                "parameters_removed": result.removed,
            },
        )
        return impl

    @staticmethod
    def _fix_properties(impl: Project, policy: SyncPolicy, was_template: bool) -> None:
        """Put the implementation's own policy back and drop a borrowed template marker."""
        impl.implementation = policy
        if not was_template:
            impl.template = None

    def _audit(
        self, event_type: str, project: str, detail: str, metadata: Optional[dict] = None
    ) -> None:
        if self.audit is not None:
            self.audit.record(event_type, project, detail, metadata)
