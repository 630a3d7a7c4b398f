"""Project scanner: finds Mix projects directly under a root directory."""

from __future__ import annotations

import logging
from pathlib import Path

from steve.config import DEFAULT_MARKER_FILE, expand_path
from steve.errors import RootNotFound
from steve.schemas import Project

logger = logging.getLogger(__name__)

# Dependency and build directories never treated as projects
DEFAULT_EXCLUDES = {"deps", "_build", ".elixir_ls", "node_modules", ".git", "_checkouts"}


def _is_excluded(directory: Path) -> bool:
    """Check if a directory is a build/dependency dir or hidden."""
    return directory.name in DEFAULT_EXCLUDES or directory.name.startswith(".")


def scan_projects(
    root_path: str | Path,
    marker_file: str = DEFAULT_MARKER_FILE,
) -> list[Project]:
    """Scan the immediate subdirectories of root_path for projects.

    Args:
        root_path: Directory whose children are candidate projects
        marker_file: File whose presence makes a directory a project

    Returns:
        Projects sorted by name

    Raises:
        RootNotFound: If root_path does not exist or is not a directory
    """
    root = expand_path(root_path)
    if not root.is_dir():
        logger.warning(f"Projects root does not exist: {root}")
        raise RootNotFound(f"Projects root not found or not a directory: {root}")

    projects: list[Project] = []
    skipped = 0

    for entry in root.iterdir():
        try:
            if not entry.is_dir() or _is_excluded(entry):
                continue
            if not (entry / marker_file).is_file():
                skipped += 1
                continue
        except PermissionError:
            logger.warning(f"Permission denied: {entry}")
            continue

        projects.append(Project.from_path(entry))

    projects.sort(key=lambda p: p.name)
    logger.info(f"Scanned {root}: {len(projects)} projects, {skipped} directories without {marker_file}")
    return projects
