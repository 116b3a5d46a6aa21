"""
errors.py

Exception hierarchy for GraphAbstract.

Geometry problems are never raised (they are clamped away); everything that
can go wrong talking to the outside world lands here.
"""

from __future__ import annotations

from typing import Iterable, List


class GraphAbstractError(Exception):
    """Base class for all application errors."""


class ServiceError(GraphAbstractError):
    """Raised when the extraction/polish/chat API fails or reports failure."""


class ExportError(GraphAbstractError):
    """Raised when an image or slide-deck export cannot be produced."""


class IconRasterError(ExportError):
    """Raised when a single icon cannot be converted to a bitmap.

    The slide-deck exporter catches this per icon and substitutes a
    placeholder, so it never aborts an export on its own.
    """


class ProjectStoreError(GraphAbstractError):
    """Raised when saved projects cannot be read, validated or written."""

    def __init__(self, message: str, issues: Iterable[str] = ()):
        self.issues: List[str] = [str(i).strip() for i in issues if str(i).strip()]
        super().__init__(self._format(message))

    def _format(self, message: str) -> str:
        if not self.issues:
            return message
        lines = [message]
        for issue in self.issues:
            lines.append(f"- {issue}")
        return "\n".join(lines)
