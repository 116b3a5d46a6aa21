"""
schemas/__init__.py

JSON Schema for the saved-projects store and its validation helper.
"""

from __future__ import annotations

import json
import os
from typing import Any, Dict, List, Optional, Tuple

from jsonschema import Draft202012Validator

# Schema file paths
SCHEMA_DIR = os.path.dirname(os.path.abspath(__file__))
PROJECT_SCHEMA_PATH = os.path.join(SCHEMA_DIR, "project_schema.json")

# Cached schema
_project_schema: Optional[Dict] = None


def get_project_schema() -> Dict:
    """Load and return the saved-projects schema."""
    global _project_schema
    if _project_schema is None:
        with open(PROJECT_SCHEMA_PATH, "r", encoding="utf-8") as f:
            _project_schema = json.load(f)
    return _project_schema


def validate_projects(data: Any) -> Tuple[bool, List[str]]:
    """
    Validate a list of saved projects.

    Args:
        data: The decoded ``projects.json`` payload

    Returns:
        Tuple of (is_valid, list_of_error_messages)
    """
    validator = Draft202012Validator(get_project_schema())
    errors = sorted(validator.iter_errors(data), key=lambda e: [str(p) for p in e.absolute_path])
    if not errors:
        return True, []

    error_messages = []
    for error in errors:
        path = " -> ".join(str(p) for p in error.absolute_path) if error.absolute_path else "root"
        error_messages.append(f"{path}: {error.message}")
    return False, error_messages


def validate_project(project: Dict[str, Any]) -> Tuple[bool, List[str]]:
    """Validate a single saved project record."""
    return validate_projects([project])
