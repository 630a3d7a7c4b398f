"""Plain-text persistence for the project cache and the ignore list."""

from __future__ import annotations

import contextlib
import logging
import os
import tempfile
from pathlib import Path

from steve.config import Settings
from steve.errors import CacheUnavailable
from steve.schemas import Project

logger = logging.getLogger(__name__)


def write_atomic(path: Path, lines: list[str]) -> None:
    """Write one entry per line to path atomically (write-temp then rename).

    Creates the parent directory if needed. A failure before the rename
    leaves any existing file untouched.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    content = "".join(f"{line}\n" for line in lines)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
        os.replace(tmp_name, path)
    except BaseException:
        with contextlib.suppress(OSError):
            os.unlink(tmp_name)
        raise


def _read_lines(path: Path) -> list[str] | None:
    """Read non-blank lines, or None if the file does not exist."""
    if not path.exists():
        return None
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise CacheUnavailable(f"Cannot read {path}: {e}") from e
    return [line.strip() for line in text.splitlines() if line.strip()]


class ProjectStore:
    """Owns the persisted project cache and ignore list files."""

    def __init__(
        self,
        cache_path: Path | str,
        ignore_path: Path | str,
    ):
        """Initialize the store.

        Args:
            cache_path: File holding one absolute project path per line
            ignore_path: File holding one ignored project name per line
        """
        self.cache_path = Path(cache_path)
        self.ignore_path = Path(ignore_path)

    @classmethod
    def from_settings(cls, settings: Settings) -> ProjectStore:
        return cls(cache_path=settings.cache_path, ignore_path=settings.ignore_path)

    def has_cache(self) -> bool:
        """Check if a cache has ever been saved."""
        return self.cache_path.exists()

    def load(self) -> list[Project]:
        """Load the cached projects in scan order.

        Returns:
            Cached projects; empty if the cache file does not exist

        Raises:
            CacheUnavailable: If the file exists but is unreadable or corrupt
        """
        lines = _read_lines(self.cache_path)
        if lines is None:
            return []

        projects: list[Project] = []
        seen: set[str] = set()
        for line in lines:
            if not os.path.isabs(line):
                raise CacheUnavailable(f"Corrupt cache {self.cache_path}: not an absolute path: {line!r}")
            project = Project.from_path(line)
            if project.name in seen:
                raise CacheUnavailable(f"Corrupt cache {self.cache_path}: duplicate project {project.name!r}")
            seen.add(project.name)
            projects.append(project)

        logger.debug(f"Loaded {len(projects)} projects from {self.cache_path}")
        return projects

    def save(self, projects: list[Project]) -> None:
        """Overwrite the cache with the given projects."""
        write_atomic(self.cache_path, [p.path for p in projects])
        logger.info(f"Saved {len(projects)} projects to {self.cache_path}")

    def load_ignored(self) -> set[str]:
        """Load the ignored project names; empty if the file does not exist."""
        lines = _read_lines(self.ignore_path)
        return set(lines) if lines else set()

    def save_ignored(self, ignored: set[str]) -> None:
        """Overwrite the ignore list, sorted for stable diffs."""
        write_atomic(self.ignore_path, sorted(ignored))
        logger.info(f"Saved {len(ignored)} ignored projects to {self.ignore_path}")
