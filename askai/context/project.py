"""Project metadata detected from a directory."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

GIT = "git"
RUST = "rust"
NODEJS = "nodejs"
PYTHON = "python"
GO = "go"
JAVA = "java"
UNKNOWN = "unknown"

PROJECT_TYPES = (GIT, RUST, NODEJS, PYTHON, GO, JAVA, UNKNOWN)

_ALIASES = {
    "git": GIT,
    "rust": RUST,
    "cargo": RUST,
    "nodejs": NODEJS,
    "node": NODEJS,
    "npm": NODEJS,
    "yarn": NODEJS,
    "python": PYTHON,
    "py": PYTHON,
    "pip": PYTHON,
    "go": GO,
    "golang": GO,
    "java": JAVA,
    "maven": JAVA,
    "gradle": JAVA,
}


def normalize_project_type(text: str) -> str:
    """Map a user-supplied type name (e.g. "cargo", "npm") to a project type."""
    return _ALIASES.get(text.strip().lower(), UNKNOWN)


@dataclass
class ProjectInfo:
    """A directory and the project types found in it."""
    root_dir: Path
    name: str = ""
    types: List[str] = field(default_factory=lambda: [UNKNOWN])
    git_branch: Optional[str] = None
    metadata: Dict[str, str] = field(default_factory=dict)

    def __post_init__(self):
        self.root_dir = Path(self.root_dir)
        if not self.name:
            self.name = self.root_dir.name or UNKNOWN

    @property
    def primary_type(self) -> str:
        """First detected type that is not git; unknown if there is none."""
        for project_type in self.types:
            if project_type not in (GIT, UNKNOWN):
                return project_type
        return UNKNOWN

    def has_type(self, project_type: str) -> bool:
        return project_type in self.types

    def to_context_string(self) -> str:
        lines = [f"Project: {self.name}", f"Project Type: {self.primary_type}"]
        if self.git_branch:
            lines.append(f"Git Branch: {self.git_branch}")
        if self.metadata:
            lines.append("Metadata:")
            lines.extend(f"  {key}: {value}" for key, value in sorted(self.metadata.items()))
        return "\n".join(lines) + "\n"
