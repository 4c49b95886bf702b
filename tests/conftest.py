"""Shared test fixtures for templatesync."""

from __future__ import annotations

from pathlib import Path

import pytest

from templatesync.audit import AuditLog
from templatesync.models import (
    BuildStep,
    ParameterDefinition,
    ParametersProperty,
    Project,
    SyncPolicy,
    TemplateProperty,
    Trigger,
)
from templatesync.store import ProjectStore
from templatesync.sync.engine import TemplateSyncEngine


@pytest.fixture
def jobs_dir(tmp_path: Path) -> Path:
    """Provide an empty jobs directory."""
    path = tmp_path / "jobs"
    path.mkdir()
    return path


@pytest.fixture
def store(jobs_dir: Path) -> ProjectStore:
    return ProjectStore(jobs_dir)


@pytest.fixture
def audit(tmp_path: Path) -> AuditLog:
    return AuditLog(tmp_path / "audit.jsonl")


@pytest.fixture
def engine(store: ProjectStore, audit: AuditLog) -> TemplateSyncEngine:
    return TemplateSyncEngine(store, audit=audit)


@pytest.fixture
def template(store: ProjectStore) -> Project:
    """A stored template with parameters, a trigger, and a build step."""
    project = Project(
        name="base/nightly",
        description="Template description",
        disabled=False,
        builders=[BuildStep(kind="shell", command="make test")],
        triggers=[Trigger(kind="timer", spec="H 2 * * *")],
        template=TemplateProperty(),
        parameters=ParametersProperty(
            definitions=[
                ParameterDefinition(name="A", description="desc1"),
                ParameterDefinition(name="B", description="desc2"),
            ]
        ),
    )
    return store.create(project)


@pytest.fixture
def make_impl(store: ProjectStore):
    """Factory storing an implementation of ``base/nightly`` whose local fields differ."""

    def _make(name: str = "app-nightly", **policy) -> Project:
        project = Project(
            name=name,
            description="Local description",
            disabled=True,
            builders=[BuildStep(kind="shell", command="echo local")],
            triggers=[Trigger(kind="scm", spec="H/5 * * * *")],
            implementation=SyncPolicy(template_name="base/nightly", **policy),
            parameters=ParametersProperty(
                definitions=[
                    ParameterDefinition(name="B", description="old-desc2", default_value="local-b"),
                    ParameterDefinition(name="C", description="desc3"),
                ]
            ),
        )
        return store.create(project)

    return _make
