"""Removal of leftover files and directories after termination."""

import enum
import logging
import os
import shutil
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

logger = logging.getLogger(__name__)


class CleanupStatus(enum.Enum):
    """Outcome of removing a single path."""
    REMOVED = 'removed'
    NOT_FOUND = 'not_found'
    FAILED = 'failed'


@dataclass
class CleanupResult:
    """Result of removing one path."""
    path: str
    status: CleanupStatus
    error: Optional[str] = None


@dataclass
class CleanupReport:
    """Per-path results in the order the paths were given."""
    results: List[CleanupResult] = field(default_factory=list)

    def _paths(self, status: CleanupStatus) -> List[str]:
        return [r.path for r in self.results if r.status is status]

    @property
    def removed(self) -> List[str]:
        return self._paths(CleanupStatus.REMOVED)

    @property
    def missing(self) -> List[str]:
        return self._paths(CleanupStatus.NOT_FOUND)

    @property
    def failed(self) -> List[str]:
        return self._paths(CleanupStatus.FAILED)


class CleanupExecutor:
    """Delete configured paths, one at a time, never stopping on failure."""

    def remove_path(self, path: str) -> CleanupResult:
        """Remove a file, symlink or directory tree.

        Args:
            path: Path to remove

        Returns:
            Result tagged with the outcome
        """
        if not os.path.lexists(path):
            logger.debug("Nothing to remove at %s", path)
            return CleanupResult(path, CleanupStatus.NOT_FOUND)

        logger.info("Removing %s", path)
        try:
            if os.path.isdir(path) and not os.path.islink(path):
                shutil.rmtree(path)
            else:
                os.remove(path)
        except FileNotFoundError:
            return CleanupResult(path, CleanupStatus.NOT_FOUND)
        except OSError as e:
            logger.warning("Failed to remove %s: %s", path, e)
            return CleanupResult(path, CleanupStatus.FAILED, str(e))
        return CleanupResult(path, CleanupStatus.REMOVED)

    def remove(self, paths: Iterable[str]) -> CleanupReport:
        """Remove every path that exists.

        Args:
            paths: Paths to remove, in order

        Returns:
            Report with one result per path
        """
        report = CleanupReport()
        for path in paths:
            report.results.append(self.remove_path(path))
        return report
