"""Shared utilities for all CLI command modules.

Provides the Rich console instance and the helper that wires a store,
an audit log, and a sync engine together for one command invocation.
"""

from __future__ import annotations

import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from rich.console import Console

from .. import TEMPLATESYNC_HOME
from ..audit import AuditLog
from ..config import TemplateSyncConfig, load_config, setup_logging
from ..listener import install
from ..models import Project
from ..store import ProjectStore
from ..sync.engine import TemplateSyncEngine

console = Console()


@dataclass
class Workspace:
    """Everything a command needs to operate on the project store."""

    config: TemplateSyncConfig
    store: ProjectStore
    engine: TemplateSyncEngine
    audit: Optional[AuditLog]


def open_workspace(home: str, listen: bool = True) -> Workspace:
    """Load configuration and build the store and engine for ``home``.

    Args:
        home: Home directory holding ``config.yaml``.
        listen: Register the sync listener so lifecycle operations propagate.
    """
    config = load_config(Path(home).expanduser())
    setup_logging(config.log_level)

    store = ProjectStore(config.resolved_jobs_dir)
    audit = AuditLog(config.resolved_audit_log) if config.audit_enabled else None
    engine = TemplateSyncEngine(store, audit=audit)
    if listen:
        install(engine)
    return Workspace(config=config, store=store, engine=engine, audit=audit)


def require_project(store: ProjectStore, name: str) -> Project:
    """Look up a project or exit with an error message."""
    project = store.find_by_name(name)
    if project is None:
        console.print(f"[bold red]No project named[/] [cyan]{name}[/]")
        sys.exit(1)
    return project


def role_label(project: Project) -> str:
    """Rich markup describing whether a project is a template and/or implementation."""
    roles = []
    if project.is_template:
        roles.append("[magenta]template[/]")
    if project.is_implementation:
        roles.append("[cyan]implementation[/]")
    return ", ".join(roles) or "[dim]plain[/]"


def sync_flag(enabled: bool) -> str:
    return "[green]sync[/]" if enabled else "[yellow]keep local[/]"
