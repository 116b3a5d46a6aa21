"""
project_store.py

Saved-project persistence: a single ``projects.json`` list in the workspace
directory, newest first.

Every read and write is validated against ``schemas/project_schema.json``;
problems raise ProjectStoreError and leave the file untouched.
"""

from __future__ import annotations

import json
import os
import uuid
from pathlib import Path
from typing import Any, Dict, List, Optional

from debug_trace import trace
from errors import ProjectStoreError
from models import Document, now_ms
from schemas import validate_project, validate_projects
from settings import get_settings

PROJECTS_FILE = "projects.json"


class ProjectStore:
    """
    Key-value store of saved projects keyed by project id.

    Args:
        directory: Folder holding ``projects.json`` (default: the workspace
            directory from settings).
    """

    def __init__(self, directory: Optional[Path] = None):
        base = Path(directory) if directory else get_settings().get_workspace_dir()
        self.path = base / PROJECTS_FILE

    # ----------------------------
    # File I/O
    # ----------------------------

    def _read(self) -> List[Dict[str, Any]]:
        if not self.path.exists():
            return []
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except OSError as e:
            raise ProjectStoreError(f"Could not read {self.path}: {e}") from e
        except json.JSONDecodeError as e:
            raise ProjectStoreError(f"{self.path} is not valid JSON: {e}") from e

        ok, issues = validate_projects(data)
        if not ok:
            raise ProjectStoreError(f"{self.path} does not match the project schema", issues)
        return data

    def _write(self, records: List[Dict[str, Any]]) -> None:
        tmp = self.path.with_suffix(".json.tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp, "w", encoding="utf-8") as f:
                json.dump(records, f, indent=2, ensure_ascii=False)
            os.replace(tmp, self.path)
        except OSError as e:
            raise ProjectStoreError(f"Could not write {self.path}: {e}") from e

    # ----------------------------
    # Operations
    # ----------------------------

    def list_projects(self) -> List[Document]:
        """All saved projects, most recently created first."""
        return [Document.from_dict(r) for r in self._read()]

    def get(self, project_id: str) -> Optional[Document]:
        for record in self._read():
            if record.get("id") == project_id:
                return Document.from_dict(record)
        return None

    def save(self, document: Document) -> Document:
        """
        Insert or update a project.

        A document whose id is already stored replaces that record in place;
        otherwise it is prepended, with a fresh uuid4 id if it has none.

        Returns:
            The document as stored (id and timestamp filled in).
        """
        stored = document.with_fields(
            project_id=document.project_id or str(uuid.uuid4()),
            last_modified=document.last_modified or now_ms(),
        )
        record = stored.to_dict()
        ok, issues = validate_project(record)
        if not ok:
            raise ProjectStoreError("Project cannot be saved", issues)

        records = self._read()
        for i, existing in enumerate(records):
            if existing.get("id") == record["id"]:
                records[i] = record
                trace(f"Updated project {record['id']}", "STORE")
                break
        else:
            records.insert(0, record)
            trace(f"Added project {record['id']}", "STORE")

        self._write(records)
        return stored

    def delete(self, project_id: str) -> bool:
        """Remove a project.  Returns False if no project had that id."""
        records = self._read()
        kept = [r for r in records if r.get("id") != project_id]
        if len(kept) == len(records):
            return False
        self._write(kept)
        trace(f"Deleted project {project_id}", "STORE")
        return True
