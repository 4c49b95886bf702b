"""
Pydantic models for projects, their properties, and the sync policy.

A project is the unit a template mirrors onto its implementations. Plain
attribute assignment on these models is a silent field write; only the
explicit mutators (``disable``, ``set_description``, ...) go through the
owning store and fire change notifications.
"""

from __future__ import annotations

import itertools
import threading
from typing import TYPE_CHECKING, Any, Optional

from pydantic import BaseModel, Field, PrivateAttr

if TYPE_CHECKING:
    from .store import ProjectStore


class ParameterDefinition(BaseModel):
    """A named build parameter. Identity is the name."""

    name: str
    description: str = ""
    kind: str = "string"
    default_value: Optional[str] = None
    choices: list[str] = Field(default_factory=list)


class ParametersProperty(BaseModel):
    """Ordered parameter block attached to a project."""

    definitions: list[ParameterDefinition] = Field(default_factory=list)

    @property
    def names(self) -> list[str]:
        return [d.name for d in self.definitions]

    def get(self, name: str) -> Optional[ParameterDefinition]:
        for definition in self.definitions:
            if definition.name == name:
                return definition
        return None


class Trigger(BaseModel):
    """Something that starts a build: a timer, an SCM poll, an upstream job."""

    kind: str
    spec: str = ""


class BuildStep(BaseModel):
    """A single step of the build."""

    kind: str = "shell"
    command: str = ""


class Axis(BaseModel):
    """One dimension of a matrix project."""

    name: str
    values: list[str] = Field(default_factory=list)


class TemplateProperty(BaseModel):
    """Marks a project as a template other projects may implement."""


class SyncPolicy(BaseModel):
    """Marks a project as an implementation and selects what it keeps local.

    Each ``sync_*`` flag set to False keeps that field category local to the
    implementation. Parameters are always reconciled and have no flag.
    """

    template_name: str
    sync_build_triggers: bool = True
    sync_disabled: bool = True
    sync_description: bool = True
    sync_matrix_axis: bool = True


class Project(BaseModel):
    """A configured job and the properties attached to it."""

    name: str = Field(frozen=True)
    description: Optional[str] = None
    disabled: bool = False
    builders: list[BuildStep] = Field(default_factory=list)
    triggers: list[Trigger] = Field(default_factory=list)

    template: Optional[TemplateProperty] = None
    implementation: Optional[SyncPolicy] = None
    parameters: Optional[ParametersProperty] = None

    _store: Any = PrivateAttr(default=None)
    _trigger_lock: Any = PrivateAttr(default_factory=threading.RLock)

    @property
    def is_template(self) -> bool:
        return self.template is not None

    @property
    def is_implementation(self) -> bool:
        return self.implementation is not None

    @property
    def trigger_lock(self) -> threading.RLock:
        """Lock guarding the live ``triggers`` list."""
        return self._trigger_lock

    @property
    def parameter_definitions(self) -> list[ParameterDefinition]:
        """The project's parameters in declared order (empty when no block)."""
        if self.parameters is None:
            return []
        return list(self.parameters.definitions)

    def attach(self, store: Optional["ProjectStore"]) -> None:
        """Bind the project to the store that persists it."""
        self._store = store

    def rebuild_derived_state(self) -> None:
        """Regenerate runtime-only state after a load. Plain projects have none."""

    # Observable mutators: each one persists through the owning store and
    # therefore fires the save notification pipeline.

    def save(self) -> None:
        if self._store is not None:
            self._store.save(self)

    def set_description(self, description: Optional[str]) -> None:
        self.description = description
        self.save()

    def disable(self) -> None:
        self.disabled = True
        self.save()

    def enable(self) -> None:
        self.disabled = False
        self.save()

    def add_trigger(self, trigger: Trigger) -> None:
        with self._trigger_lock:
            self.triggers.append(trigger)
        self.save()


class MatrixProject(Project):
    """A project whose build fans out over the cartesian product of its axes."""

    axes: list[Axis] = Field(default_factory=list)

    _configurations: list[str] = PrivateAttr(default_factory=list)

    def model_post_init(self, __context: Any) -> None:
        self.rebuild_configurations()

    @property
    def configurations(self) -> list[str]:
        """Combination names (``axis=value,...``) derived from ``axes``."""
        return list(self._configurations)

    def rebuild_configurations(self) -> None:
        """Derive the runtime combinations from the current axis list."""
        if not self.axes:
            self._configurations = []
            return
        names = [axis.name for axis in self.axes]
        self._configurations = [
            ",".join(f"{n}={v}" for n, v in zip(names, combo))
            for combo in itertools.product(*(axis.values for axis in self.axes))
        ]

    def rebuild_derived_state(self) -> None:
        self.rebuild_configurations()

    def set_axes(self, axes: list[Axis]) -> None:
        self.axes = list(axes)
        self.rebuild_configurations()
        self.save()
