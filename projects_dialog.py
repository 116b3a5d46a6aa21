"""
projects_dialog.py

Dialog listing saved projects with Open and Delete actions.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from PyQt6.QtCore import Qt
from PyQt6.QtWidgets import (
    QDialog,
    QDialogButtonBox,
    QListWidget,
    QListWidgetItem,
    QMessageBox,
    QPushButton,
    QVBoxLayout,
)

from errors import ProjectStoreError
from models import Document
from project_store import ProjectStore


def _format_modified(ms: int) -> str:
    if not ms:
        return "-"
    return datetime.fromtimestamp(ms / 1000).strftime("%Y-%m-%d %H:%M")


class ProjectsDialog(QDialog):
    """Pick a saved project to open.

    Args:
        store: Project store to list from and delete in.
        parent: Parent widget.

    After ``exec()`` returns Accepted, ``selected_document`` holds the
    project to open.
    """

    def __init__(self, store: ProjectStore, parent=None):
        super().__init__(parent)
        self.store = store
        self.selected_document: Optional[Document] = None
        self._projects: List[Document] = []

        self.setWindowTitle("Saved Projects")
        self.setMinimumSize(460, 360)
        layout = QVBoxLayout(self)

        self.list = QListWidget()
        self.list.itemDoubleClicked.connect(lambda _item: self.accept())
        layout.addWidget(self.list, 1)

        buttons = QDialogButtonBox(QDialogButtonBox.StandardButton.Open | QDialogButtonBox.StandardButton.Cancel)
        self.delete_btn = QPushButton("Delete")
        buttons.addButton(self.delete_btn, QDialogButtonBox.ButtonRole.ActionRole)
        buttons.accepted.connect(self.accept)
        buttons.rejected.connect(self.reject)
        self.delete_btn.clicked.connect(self.delete_selected)
        layout.addWidget(buttons)

        self.reload()

    def reload(self):
        self.list.clear()
        try:
            self._projects = self.store.list_projects()
        except ProjectStoreError as e:
            QMessageBox.critical(self, "Could not load projects", str(e))
            self._projects = []
        for doc in self._projects:
            item = QListWidgetItem(f"{doc.title or 'Untitled'}    ({_format_modified(doc.last_modified)})")
            item.setData(Qt.ItemDataRole.UserRole, doc.project_id)
            self.list.addItem(item)
        if self._projects:
            self.list.setCurrentRow(0)

    def _current(self) -> Optional[Document]:
        row = self.list.currentRow()
        if 0 <= row < len(self._projects):
            return self._projects[row]
        return None

    def delete_selected(self):
        doc = self._current()
        if doc is None:
            return
        answer = QMessageBox.question(self, "Delete project", f"Delete '{doc.title or 'Untitled'}'?")
        if answer != QMessageBox.StandardButton.Yes:
            return
        try:
            self.store.delete(doc.project_id)
        except ProjectStoreError as e:
            QMessageBox.critical(self, "Delete failed", str(e))
        self.reload()

    def accept(self):
        self.selected_document = self._current()
        if self.selected_document is None:
            return
        super().accept()
