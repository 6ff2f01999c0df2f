"""Execution context and project detection.

get_context_with_project() builds the context string that is sent with
every prompt and that forms half of the response cache key.
"""

import os
import platform

from askai.context.detector import ProjectDetector
from askai.context.project import (
    PROJECT_TYPES,
    UNKNOWN,
    ProjectInfo,
    normalize_project_type,
)
from askai.context.scanner import ProjectScanner, ScanResult


def get_current_context() -> str:
    """Working directory, shell and OS as a three-line string."""
    try:
        cwd = os.getcwd()
    except OSError:
        cwd = "unknown"

    shell = os.environ.get("SHELL", "bash")
    os_name = platform.system().lower() or "unknown"

    return f"Current directory: {cwd}\nShell: {shell}\nOS: {os_name}"


def get_context_with_project() -> str:
    """get_current_context() plus project details when the cwd is a known project."""
    context = get_current_context()
    try:
        cwd = os.getcwd()
    except OSError:
        return context

    info = ProjectDetector.detect(cwd)
    if info.primary_type != UNKNOWN:
        context += "\n" + info.to_context_string()
    return context


__all__ = [
    "get_current_context",
    "get_context_with_project",
    "normalize_project_type",
    "PROJECT_TYPES",
    "ProjectDetector",
    "ProjectInfo",
    "ProjectScanner",
    "ScanResult",
]
