"""Project type detection from marker files."""

import json
import logging
from pathlib import Path
from typing import Dict, Optional, Union

from askai.context.project import GIT, GO, JAVA, NODEJS, PYTHON, RUST, UNKNOWN, ProjectInfo

logger = logging.getLogger(__name__)


class ProjectDetector:
    """Detects project types in a single directory (no recursion)."""

    MARKERS = {
        PYTHON: ["requirements.txt", "pyproject.toml", "setup.py"],
        GO: ["go.mod"],
        JAVA: ["pom.xml", "build.gradle"],
    }

    @classmethod
    def detect(cls, path: Union[str, Path]) -> ProjectInfo:
        """
        Inspect marker files in path.

        Types are reported in a fixed order: git, rust, nodejs, python, go,
        java. A directory without markers is reported as unknown.
        """
        path = Path(path)
        info = ProjectInfo(root_dir=path)
        types = []

        if (path / ".git").exists():
            types.append(GIT)
            info.git_branch = cls._read_git_branch(path)

        cargo = path / "Cargo.toml"
        if cargo.exists():
            types.append(RUST)
            info.metadata.update(cls._read_cargo_metadata(cargo))

        package_json = path / "package.json"
        if package_json.exists():
            types.append(NODEJS)
            info.metadata.update(cls._read_package_json(package_json))

        for project_type, markers in cls.MARKERS.items():
            if any((path / marker).exists() for marker in markers):
                types.append(project_type)

        info.types = types or [UNKNOWN]
        return info

    @classmethod
    def is_project_type(cls, path: Union[str, Path], project_type: str) -> bool:
        return cls.detect(path).has_type(project_type)

    @staticmethod
    def _read_git_branch(path: Path) -> Optional[str]:
        try:
            head = (path / ".git" / "HEAD").read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError):
            return None
        prefix = "ref: refs/heads/"
        if head.startswith(prefix):
            return head[len(prefix):].strip() or None
        return None

    @staticmethod
    def extract_toml_value(line: str, key: str) -> Optional[str]:
        """Return the value of a simple `key = "value"` line, else None."""
        line = line.strip()
        if not line.startswith(key) or "=" not in line:
            return None
        name, value = line.split("=", 1)
        if name.strip() != key:
            return None
        return value.strip().strip('"').strip("'")

    @classmethod
    def _read_cargo_metadata(cls, cargo: Path) -> Dict[str, str]:
        metadata = {}
        try:
            content = cargo.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.debug(f"Could not read {cargo}: {e}")
            return metadata

        for line in content.splitlines():
            # Only the first name/version pair ([package]) is of interest
            name = cls.extract_toml_value(line, "name")
            if name is not None and "package_name" not in metadata:
                metadata["package_name"] = name
            version = cls.extract_toml_value(line, "version")
            if version is not None and "version" not in metadata:
                metadata["version"] = version
        return metadata

    @staticmethod
    def _read_package_json(package_json: Path) -> Dict[str, str]:
        try:
            data = json.loads(package_json.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.debug(f"Could not parse {package_json}: {e}")
            return {}

        if not isinstance(data, dict):
            return {}

        metadata = {}
        if isinstance(data.get("name"), str):
            metadata["package_name"] = data["name"]
        if isinstance(data.get("version"), str):
            metadata["version"] = data["version"]
        return metadata
