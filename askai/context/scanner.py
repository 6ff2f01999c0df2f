"""Directory tree scanning for projects."""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Union

from askai.context.detector import ProjectDetector
from askai.context.project import UNKNOWN, ProjectInfo

logger = logging.getLogger(__name__)


@dataclass
class ScanResult:
    projects: List[ProjectInfo] = field(default_factory=list)
    total_scanned: int = 0


class ProjectScanner:
    """
    Walks a directory tree and collects every directory with a known
    project type.

    Symlinked directories are not followed and hidden directories below the
    root are skipped.
    """

    def __init__(self, max_depth: int = 3):
        """
        Args:
            max_depth: Deepest directory level to inspect, root is 0 (0 = unlimited)
        """
        self.max_depth = max_depth

    def scan(self, root: Union[str, Path]) -> ScanResult:
        root = Path(root)
        result = ScanResult()
        if not root.is_dir():
            logger.warning(f"Not a directory: {root}")
            return result

        root_depth = len(root.parts)

        def on_error(error: OSError) -> None:
            logger.debug(f"Skipping unreadable directory: {error}")

        for dirpath, dirnames, _ in os.walk(root, onerror=on_error, followlinks=False):
            current = Path(dirpath)
            depth = len(current.parts) - root_depth

            # Prune in place so os.walk never descends into them
            dirnames[:] = sorted(d for d in dirnames if not d.startswith("."))
            if self.max_depth and depth >= self.max_depth:
                dirnames[:] = []

            result.total_scanned += 1
            info = ProjectDetector.detect(current)
            if info.primary_type != UNKNOWN:
                result.projects.append(info)

        return result

    def scan_multiple(self, roots: Iterable[Union[str, Path]]) -> ScanResult:
        combined = ScanResult()
        for root in roots:
            result = self.scan(root)
            combined.projects.extend(result.projects)
            combined.total_scanned += result.total_scanned
        return combined

    def scan_by_type(self, root: Union[str, Path], project_type: str) -> ScanResult:
        """Scan root and keep only projects whose primary type matches."""
        result = self.scan(root)
        result.projects = [p for p in result.projects if p.primary_type == project_type]
        return result
