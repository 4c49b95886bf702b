"""
templatesync CLI -- drive template synchronization from the command line.

Each command group lives in its own module and is registered on the
main Click group here.

Entry point: templatesync.cli:main
"""

from __future__ import annotations

import click

from .. import __version__


@click.group()
@click.version_option(version=__version__, prog_name="templatesync")
def main():
    """templatesync -- keep implementation projects in step with their templates."""


# ---------------------------------------------------------------------------
# Register all command groups/commands from modular files
# ---------------------------------------------------------------------------

from .project_cmd import register_project_commands
from .sync_cmd import register_sync_commands

register_project_commands(main)
register_sync_commands(main)
