"""
Parameter reconciliation -- name-keyed merge of local and template parameters.

The template decides which parameters exist, in what order, and what their
descriptions say. A parameter the implementation already had keeps its own
object (and so its local default value, choices, and kind).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

from ..models import ParameterDefinition, ParametersProperty

logger = logging.getLogger("templatesync.sync.parameters")


@dataclass
class ReconcileResult:
    """Outcome of reconciling two parameter lists.

    ``block`` is None when no parameters remain, meaning the project should
    carry no parameter block at all rather than an empty one.
    """

    block: Optional[ParametersProperty]
    added: list[str] = field(default_factory=list)
    removed: list[str] = field(default_factory=list)

    @property
    def definitions(self) -> list[ParameterDefinition]:
        return [] if self.block is None else list(self.block.definitions)


def reconcile_parameters(
    old_params: list[ParameterDefinition],
    new_params: list[ParameterDefinition],
) -> ReconcileResult:
    """Merge an implementation's parameters with the template's.

    For each template parameter, in template order: when the implementation
    has a parameter of the same name, that old object is kept and only its
    description is overwritten with the template's; otherwise the template
    parameter is taken as is. Old parameters the template no longer declares
    are dropped.

    Args:
        old_params: The implementation's parameters before the merge. Not
            modified, but matched entries have their ``description`` updated.
        new_params: The template-derived parameters.

    Returns:
        ReconcileResult with the replacement block and the added/removed names.
    """
    remaining = list(old_params)
    result: list[ParameterDefinition] = []
    added: list[str] = []

    for new_param in new_params:
        match = None
        for index, old_param in enumerate(remaining):
            if old_param.name == new_param.name:
                match = remaining.pop(index)
                break

        if match is not None:
            # Template descriptions always win, even for local parameters.
            match.description = new_param.description
            result.append(match)
        else:
            result.append(new_param)
            added.append(new_param.name)
            logger.info("\t+++ new parameter [%s]", new_param.name)

    removed = [unused.name for unused in remaining]
    for name in removed:
        logger.info("\t--- old parameter [%s]", name)

    block = ParametersProperty(definitions=result) if result else None
    return ReconcileResult(block=block, added=added, removed=removed)
