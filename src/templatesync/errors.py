"""Error types raised by the sync core and its collaborators."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .sync.engine import SyncReport


class TemplateSyncError(Exception):
    """Base class for every templatesync failure."""


class TemplateNotFoundError(TemplateSyncError, LookupError):
    """Raised when an implementation references a template that does not exist."""

    def __init__(self, template_name: str, implementation_name: str):
        self.template_name = template_name
        self.implementation_name = implementation_name
        super().__init__(
            f"Cannot find template [{template_name}] used by project "
            f"[{implementation_name}]"
        )


class ConfigReadError(TemplateSyncError):
    """Raised when a configuration document cannot be read or parsed."""


class PersistenceError(TemplateSyncError):
    """Raised when a project cannot be written to durable storage."""


class SyncBatchError(TemplateSyncError):
    """Raised after a template fan-out in which some implementations failed."""

    def __init__(self, report: "SyncReport"):
        self.report = report
        failed = ", ".join(sorted(report.failed))
        super().__init__(
            f"Template [{report.template}] failed to sync "
            f"{len(report.failed)} implementation(s): {failed}"
        )
