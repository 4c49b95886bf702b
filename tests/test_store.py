"""Tests for the filesystem project store."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pytest

from templatesync.errors import ConfigReadError, PersistenceError
from templatesync.models import Project, SyncPolicy, TemplateProperty
from templatesync.store import ProjectStore, StoreListener


class RecordingListener(StoreListener):
    """Listener that remembers every event it receives."""

    def __init__(self):
        self.events = []

    def on_saved(self, project):
        self.events.append(("saved", project.name))

    def on_deleted(self, project):
        self.events.append(("deleted", project.name))

    def on_renamed(self, project, old_name, new_name):
        self.events.append(("renamed", old_name, new_name))


@pytest.fixture
def listener(store: ProjectStore) -> RecordingListener:
    recorder = RecordingListener()
    store.add_listener(recorder)
    return recorder


class TestLookup:
    """Tests for loading and locating projects."""

    def test_create_writes_config(self, store: ProjectStore, jobs_dir: Path):
        store.create(Project(name="folder/job", description="d"))

        assert (jobs_dir / "folder" / "job" / "config.xml").exists()
        assert store.find_by_name("folder/job").description == "d"

    def test_find_missing(self, store: ProjectStore):
        assert store.find_by_name("nope") is None

    def test_reload_reads_from_disk(self, store: ProjectStore, jobs_dir: Path):
        store.create(Project(name="a", template=TemplateProperty()))

        fresh = ProjectStore(jobs_dir)

        assert fresh.find_by_name("a").is_template

    def test_reload_skips_broken_documents(self, jobs_dir: Path):
        broken = jobs_dir / "broken"
        broken.mkdir()
        (broken / "config.xml").write_text("<project>", encoding="utf-8")

        store = ProjectStore(jobs_dir)

        assert store.find_by_name("broken") is None

    def test_implementations_of(self, store: ProjectStore):
        store.create(Project(name="t", template=TemplateProperty()))
        store.create(Project(name="z", implementation=SyncPolicy(template_name="t")))
        store.create(Project(name="a", implementation=SyncPolicy(template_name="t")))
        store.create(Project(name="other", implementation=SyncPolicy(template_name="u")))

        assert [p.name for p in store.implementations_of("t")] == ["a", "z"]

    def test_create_duplicate(self, store: ProjectStore):
        store.create(Project(name="a"))
        with pytest.raises(PersistenceError):
            store.create(Project(name="a"))

    def test_read_config_missing_file(self, store: ProjectStore):
        project = store.create(Project(name="a"))
        store.config_path("a").unlink()

        with pytest.raises(ConfigReadError):
            store.read_config(project)


class TestNotifications:
    """Tests for listener notification and suppression."""

    def test_save_notifies(self, store: ProjectStore, listener: RecordingListener):
        store.create(Project(name="a"))
        assert listener.events == [("saved", "a")]

    def test_suppressed_save_is_silent_but_persisted(
        self, store: ProjectStore, listener: RecordingListener, jobs_dir: Path
    ):
        project = store.create(Project(name="a"))
        listener.events.clear()

        with store.suppressed():
            project.description = "quiet"
            store.save(project)

        assert listener.events == []
        assert ProjectStore(jobs_dir).find_by_name("a").description == "quiet"

    def test_suppression_nests(self, store: ProjectStore):
        with store.suppressed():
            with store.suppressed():
                assert store.notifications_suppressed
            assert store.notifications_suppressed
        assert not store.notifications_suppressed

    def test_suppression_released_on_error(self, store: ProjectStore):
        with pytest.raises(RuntimeError):
            with store.suppressed():
                raise RuntimeError("boom")
        assert not store.notifications_suppressed

    def test_delete_notifies(self, store: ProjectStore, listener: RecordingListener, jobs_dir: Path):
        store.create(Project(name="folder/a"))
        store.delete("folder/a")

        assert listener.events[-1] == ("deleted", "folder/a")
        assert store.find_by_name("folder/a") is None
        assert not (jobs_dir / "folder" / "a").exists()

    def test_rename_moves_project(self, store: ProjectStore, listener: RecordingListener, jobs_dir: Path):
        store.create(Project(name="old", description="d"))

        renamed = store.rename("old", "new/name")

        assert renamed.name == "new/name"
        assert renamed.description == "d"
        assert store.find_by_name("old") is None
        assert store.find_by_name("new/name") is renamed
        assert (jobs_dir / "new" / "name" / "config.xml").exists()
        assert listener.events[-1] == ("renamed", "old", "new/name")

    def test_rename_onto_existing(self, store: ProjectStore):
        store.create(Project(name="a"))
        store.create(Project(name="b"))
        with pytest.raises(PersistenceError):
            store.rename("a", "b")

    def test_rename_refuses_project_with_nested_projects(self, store: ProjectStore, jobs_dir: Path):
        store.create(Project(name="base", description="folder"))
        nested = store.create(Project(name="base/nightly", description="inner"))

        with pytest.raises(PersistenceError, match="base/nightly"):
            store.rename("base", "moved")

        assert store.find_by_name("base/nightly") is nested
        assert store.find_by_name("moved") is None
        assert (jobs_dir / "base" / "nightly" / "config.xml").exists()
        fresh = ProjectStore(jobs_dir)
        assert [p.name for p in fresh.all_projects()] == ["base", "base/nightly"]

    def test_rename_into_itself(self, store: ProjectStore):
        store.create(Project(name="a"))
        with pytest.raises(PersistenceError):
            store.rename("a", "a/b")
        assert store.find_by_name("a") is not None

    @pytest.mark.parametrize("bad_name", ["../x", "a/", "a//b", "./a", ""])
    def test_rename_rejects_invalid_names(self, store: ProjectStore, jobs_dir: Path, bad_name):
        project = store.create(Project(name="a"))

        with pytest.raises(PersistenceError, match="Invalid project name"):
            store.rename("a", bad_name)

        assert store.find_by_name("a") is project
        assert store.config_path("a").exists()


class TestPersistence:
    """Tests for writes and document loading."""

    def test_write_failure_raises_persistence_error(self, store: ProjectStore):
        project = Project(name="a")
        with patch("templatesync.store.os.replace", side_effect=OSError("disk full")):
            with pytest.raises(PersistenceError, match="disk full"):
                store.save(project)

    def test_write_failure_removes_temporary_file(self, store: ProjectStore):
        with patch("templatesync.store.os.replace", side_effect=OSError("disk full")):
            with pytest.raises(PersistenceError):
                store.save(Project(name="a"))

        assert not store.config_path("a").with_suffix(".xml.tmp").exists()
        assert not store.config_path("a").exists()

    def test_unstorable_text_is_not_written(self, store: ProjectStore, jobs_dir: Path):
        with pytest.raises(PersistenceError):
            store.create(Project(name="p", description="build\x01log"))

        assert store.find_by_name("p") is None
        assert not store.config_path("p").exists()
        assert not store.config_path("p").with_suffix(".xml.tmp").exists()

    def test_unstorable_text_keeps_existing_document(self, store: ProjectStore, jobs_dir: Path):
        project = store.create(Project(name="p", description="clean"))
        before = store.read_config(project)

        project.description = "build\x01log"
        with pytest.raises(PersistenceError):
            store.save(project)

        assert store.read_config(project) == before
        assert ProjectStore(jobs_dir).find_by_name("p").description == "clean"

    @pytest.mark.parametrize("bad_name", ["../x", "a/", "a//b", "./a", ""])
    def test_create_rejects_invalid_names(self, store: ProjectStore, jobs_dir: Path, bad_name):
        with pytest.raises(PersistenceError, match="Invalid project name"):
            store.create(Project(name=bad_name))

        assert store.find_by_name(bad_name) is None
        assert not (jobs_dir.parent / "x").exists()
        assert list(jobs_dir.rglob("config.xml")) == []

    def test_update_from_xml_keeps_name(self, store: ProjectStore):
        source = store.create(Project(name="src", description="from source"))
        target = store.create(Project(name="dst", description="mine"))

        updated = store.update_from_xml(target, store.read_config(source))

        assert updated is not target
        assert updated.name == "dst"
        assert updated.description == "from source"
        assert store.find_by_name("dst") is updated

    def test_update_from_bad_xml_leaves_project(self, store: ProjectStore):
        target = store.create(Project(name="dst", description="mine"))

        with pytest.raises(ConfigReadError):
            store.update_from_xml(target, "<project")

        assert store.find_by_name("dst") is target
        assert "mine" in store.read_config(target)
