"""Tests for saved-project persistence and schema validation."""
from __future__ import annotations

import json

import pytest

from errors import ProjectStoreError
from project_store import PROJECTS_FILE, ProjectStore
from schemas import validate_project, validate_projects


@pytest.fixture()
def store(tmp_path):
    return ProjectStore(tmp_path)


class TestProjectStore:
    def test_empty(self, store):
        assert store.list_projects() == []
        assert store.get("nope") is None

    def test_save_assigns_id_and_time(self, store, sample_document):
        stored = store.save(sample_document)
        assert stored.project_id
        assert stored.last_modified > 0
        assert store.get(stored.project_id) == stored

    def test_update_in_place(self, store, sample_document):
        first = store.save(sample_document.with_fields(title="First"))
        second = store.save(sample_document.with_fields(title="Second"))
        store.save(first.with_fields(title="First, revised"))
        titles = [d.title for d in store.list_projects()]
        assert titles == ["Second", "First, revised"]
        assert store.get(second.project_id).title == "Second"

    def test_newest_first(self, store, sample_document):
        ids = [store.save(sample_document).project_id for _ in range(3)]
        assert [d.project_id for d in store.list_projects()] == ids[::-1]

    def test_delete(self, store, sample_document):
        stored = store.save(sample_document)
        assert store.delete(stored.project_id) is True
        assert store.delete(stored.project_id) is False
        assert store.list_projects() == []

    def test_default_directory_is_workspace(self, isolated_settings):
        assert ProjectStore().path == isolated_settings.get_workspace_dir() / PROJECTS_FILE

    def test_invalid_color_rejected(self, store, sample_document):
        with pytest.raises(ProjectStoreError) as excinfo:
            store.save(sample_document.with_fields(header_color="red"))
        assert any("headerColor" in issue for issue in excinfo.value.issues)
        assert not store.path.exists()

    def test_corrupt_file(self, store):
        store.path.write_text("{not json", encoding="utf-8")
        with pytest.raises(ProjectStoreError):
            store.list_projects()

    def test_schema_mismatch_on_read(self, store):
        store.path.write_text(json.dumps([{"title": "no id"}]), encoding="utf-8")
        with pytest.raises(ProjectStoreError) as excinfo:
            store.list_projects()
        assert excinfo.value.issues

    def test_no_temp_file_left(self, store, sample_document):
        store.save(sample_document)
        assert [p.name for p in store.path.parent.iterdir()] == [PROJECTS_FILE]


class TestSchema:
    def test_valid_record(self, sample_document):
        ok, issues = validate_project(sample_document.with_fields(project_id="p", last_modified=1).to_dict())
        assert ok and issues == []

    def test_messages_name_the_path(self, sample_document):
        record = sample_document.with_fields(project_id="p", last_modified=1).to_dict()
        record["sections"][0]["layout"] = "diagonal"
        ok, issues = validate_projects([record])
        assert not ok
        assert issues[0].startswith("0 -> sections -> 0 -> layout:")

    def test_not_a_list(self):
        ok, issues = validate_projects({"id": "x"})
        assert not ok
        assert issues[0].startswith("root:")
