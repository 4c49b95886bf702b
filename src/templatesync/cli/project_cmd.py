"""Project commands: list, show, new, link, rename, delete."""

from __future__ import annotations

import sys

import click
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from ..errors import TemplateSyncError
from ..models import MatrixProject, Project, SyncPolicy, TemplateProperty
from ._common import TEMPLATESYNC_HOME, console, open_workspace, require_project, role_label, sync_flag


def register_project_commands(main: click.Group) -> None:
    """Register the project lifecycle commands."""

    @main.command("list")
    @click.option("--home", default=TEMPLATESYNC_HOME, type=click.Path())
    def list_projects(home):
        """List projects and how they relate to templates."""
        ws = open_workspace(home, listen=False)
        projects = ws.store.all_projects()
        if not projects:
            console.print("[dim]No projects found.[/]")
            return

        table = Table(title="Projects")
        table.add_column("Name", style="cyan")
        table.add_column("Role")
        table.add_column("Template")
        table.add_column("Disabled")
        for project in projects:
            template = project.implementation.template_name if project.implementation else ""
            table.add_row(
                project.name,
                role_label(project),
                template,
                "yes" if project.disabled else "no",
            )
        console.print(table)

    @main.command("show")
    @click.argument("name")
    @click.option("--home", default=TEMPLATESYNC_HOME, type=click.Path())
    def show_project(name, home):
        """Show a project's fields and sync policy."""
        ws = open_workspace(home, listen=False)
        project = require_project(ws.store, name)

        lines = [
            f"Role: {role_label(project)}",
            f"Description: {escape(project.description) if project.description else '[dim]none[/]'}",
            f"Disabled: {'yes' if project.disabled else 'no'}",
            f"Parameters: {', '.join(d.name for d in project.parameter_definitions) or '[dim]none[/]'}",
            f"Triggers: {', '.join(f'{t.kind}({t.spec})' for t in project.triggers) or '[dim]none[/]'}",
        ]
        if isinstance(project, MatrixProject):
            lines.append(f"Configurations: {len(project.configurations)}")

        policy = project.implementation
        if policy is not None:
            lines += [
                "",
                f"Template: [cyan]{policy.template_name}[/]",
                f"  Build triggers: {sync_flag(policy.sync_build_triggers)}",
                f"  Disabled flag: {sync_flag(policy.sync_disabled)}",
                f"  Description: {sync_flag(policy.sync_description)}",
                f"  Matrix axes: {sync_flag(policy.sync_matrix_axis)}",
            ]

        console.print(Panel("\n".join(lines), title=project.name, border_style="cyan"))

    @main.command("new")
    @click.argument("name")
    @click.option("--home", default=TEMPLATESYNC_HOME, type=click.Path())
    @click.option("--template", "as_template", is_flag=True, help="Mark the project as a template.")
    @click.option("--matrix", is_flag=True, help="Create a matrix project.")
    @click.option("--description", default=None, help="Project description.")
    def new_project(name, home, as_template, matrix, description):
        """Create an empty project."""
        ws = open_workspace(home)
        cls = MatrixProject if matrix else Project
        project = cls(
            name=name,
            description=description,
            template=TemplateProperty() if as_template else None,
        )
        try:
            ws.store.create(project)
        except TemplateSyncError as exc:
            console.print(f"[bold red]Error:[/] {escape(str(exc))}")
            sys.exit(1)
        console.print(f"Created [cyan]{name}[/] ({role_label(project)})")

    @main.command("link")
    @click.argument("implementation")
    @click.argument("template")
    @click.option("--home", default=TEMPLATESYNC_HOME, type=click.Path())
    @click.option("--keep-triggers", is_flag=True, help="Keep local build triggers.")
    @click.option("--keep-disabled", is_flag=True, help="Keep the local disabled flag.")
    @click.option("--keep-description", is_flag=True, help="Keep the local description.")
    @click.option("--keep-axes", is_flag=True, help="Keep local matrix axes.")
    def link_project(implementation, template, home, keep_triggers, keep_disabled,
                     keep_description, keep_axes):
        """Make IMPLEMENTATION follow TEMPLATE and sync it now."""
        ws = open_workspace(home)
        project = ws.store.find_by_name(implementation)
        if project is None:
            project = Project(name=implementation)

        project.implementation = SyncPolicy(
            template_name=template,
            sync_build_triggers=not keep_triggers,
            sync_disabled=not keep_disabled,
            sync_description=not keep_description,
            sync_matrix_axis=not keep_axes,
        )
        try:
            ws.store.save(project)
        except TemplateSyncError as exc:
            console.print(f"[bold red]Sync failed:[/] {escape(str(exc))}")
            sys.exit(1)
        console.print(f"[cyan]{implementation}[/] now follows [magenta]{template}[/]")

    @main.command("rename")
    @click.argument("old_name")
    @click.argument("new_name")
    @click.option("--home", default=TEMPLATESYNC_HOME, type=click.Path())
    def rename_project(old_name, new_name, home):
        """Rename a project; implementations of a template follow it."""
        ws = open_workspace(home)
        require_project(ws.store, old_name)
        try:
            ws.store.rename(old_name, new_name)
        except TemplateSyncError as exc:
            console.print(f"[bold red]Error:[/] {escape(str(exc))}")
            sys.exit(1)
        console.print(f"Renamed [cyan]{old_name}[/] to [cyan]{new_name}[/]")

    @main.command("delete")
    @click.argument("name")
    @click.option("--home", default=TEMPLATESYNC_HOME, type=click.Path())
    @click.confirmation_option(prompt="Delete this project?")
    def delete_project(name, home):
        """Delete a project; implementations of a template are detached."""
        ws = open_workspace(home)
        require_project(ws.store, name)
        try:
            ws.store.delete(name)
        except TemplateSyncError as exc:
            console.print(f"[bold red]Error:[/] {escape(str(exc))}")
            sys.exit(1)
        console.print(f"Deleted [cyan]{name}[/]")
