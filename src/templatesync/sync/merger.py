"""Pouring a template's configuration document over an implementation."""

from __future__ import annotations

import logging

from ..models import Project
from ..store import ProjectStore

logger = logging.getLogger("templatesync.sync.merger")


class ConfigDocumentMerger:
    """Replaces an implementation's whole document with its template's."""

    def __init__(self, store: ProjectStore):
        self.store = store

    def merge(self, implementation: Project, template: Project) -> Project:
        """Overwrite ``implementation`` with the document of ``template``.

        The template document is read in full before anything is written, so
        a read failure leaves the implementation untouched. The result keeps
        the implementation's name; every other declared field now matches the
        template.

        Args:
            implementation: The project to overwrite.
            template: The project whose document is the source.

        Returns:
            The updated implementation. Continue with this object; the one
            passed in is stale.

        Raises:
            ConfigReadError: If the template document cannot be read or parsed.
            PersistenceError: If the overwritten implementation cannot be saved.
        """
        document = self.store.read_config(template)
        merged = self.store.update_from_xml(implementation, document)
        logger.debug("Merged document of %s onto %s", template.name, implementation.name)
        return merged
