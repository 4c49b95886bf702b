"""Pre-merge capture of the fields an implementation may keep local."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from ..models import Axis, MatrixProject, ParameterDefinition, Project, SyncPolicy, Trigger


@dataclass
class FieldSnapshot:
    """Values of an implementation's protected fields before the overwrite.

    Parameters are held by reference so that matched ones survive as the
    same objects. Triggers and axes are copied into fresh lists because the
    live lists may be replaced or mutated during the merge.
    """

    was_template: bool
    parameters: list[ParameterDefinition] = field(default_factory=list)
    triggers: list[Trigger] = field(default_factory=list)
    disabled: bool = False
    description: Optional[str] = None
    axes: Optional[list[Axis]] = None

    @classmethod
    def capture(cls, project: Project, policy: SyncPolicy) -> "FieldSnapshot":
        with project.trigger_lock:
            triggers = list(project.triggers)

        axes = None
        if isinstance(project, MatrixProject) and not policy.sync_matrix_axis:
            axes = [axis.model_copy(deep=True) for axis in project.axes]

        return cls(
            was_template=project.is_template,
            parameters=project.parameter_definitions,
            triggers=triggers,
            disabled=project.disabled,
            description=project.description,
            axes=axes,
        )
