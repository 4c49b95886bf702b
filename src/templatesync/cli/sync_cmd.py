"""Sync commands: sync, audit."""

from __future__ import annotations

import sys

import click
from rich.markup import escape
from rich.table import Table

from ..errors import SyncBatchError, TemplateSyncError
from ._common import TEMPLATESYNC_HOME, console, open_workspace, require_project


def register_sync_commands(main: click.Group) -> None:
    """Register the sync and audit commands."""

    @main.command("sync")
    @click.argument("name")
    @click.option("--home", default=TEMPLATESYNC_HOME, type=click.Path())
    def sync(name, home):
        """Sync NAME from its template, or push NAME to its implementations."""
        ws = open_workspace(home, listen=False)
        project = require_project(ws.store, name)

        if not project.is_implementation and not project.is_template:
            console.print(f"[yellow]{name} is neither a template nor an implementation.[/]")
            sys.exit(1)

        try:
            if project.is_implementation:
                project = ws.engine.sync_on_implementation_save(project)
                console.print(
                    f"  [cyan]{name}[/] synced with "
                    f"[magenta]{project.implementation.template_name}[/]"
                )
            if project.is_template:
                report = ws.engine.sync_on_template_save(project)
                console.print(
                    f"  [magenta]{name}[/] pushed to {len(report.synced)} implementation(s)"
                )
        except SyncBatchError as exc:
            for impl_name in exc.report.synced:
                console.print(f"  [green]ok[/] {impl_name}")
            for impl_name, reason in exc.report.failed.items():
                console.print(f"  [red]failed[/] {impl_name}: {escape(reason)}")
            sys.exit(1)
        except TemplateSyncError as exc:
            console.print(f"[bold red]Sync failed:[/] {escape(str(exc))}")
            sys.exit(1)

    @main.command("audit")
    @click.option("--home", default=TEMPLATESYNC_HOME, type=click.Path())
    @click.option("--limit", "-n", default=20, help="Number of entries to show.")
    def audit(home, limit):
        """Show recent sync events."""
        ws = open_workspace(home, listen=False)
        if ws.audit is None:
            console.print("[yellow]Audit log is disabled.[/]")
            return

        entries = ws.audit.read(limit=limit)
        if not entries:
            console.print("[dim]No audit entries.[/]")
            return

        table = Table(title="Sync audit")
        table.add_column("Time", style="dim")
        table.add_column("Event")
        table.add_column("Project", style="cyan")
        table.add_column("Detail")
        for entry in entries:
            table.add_row(
                entry.timestamp.strftime("%Y-%m-%d %H:%M:%S"),
                entry.event_type,
                entry.project,
                entry.detail,
            )
        console.print(table)
