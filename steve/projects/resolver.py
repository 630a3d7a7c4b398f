"""Project resolver: turns a name filter into the ordered target set."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field

from steve.errors import EmptyTargetSet
from steve.schemas import Project

logger = logging.getLogger(__name__)

_FILTER_SEPARATORS = re.compile(r"[,\s]+")


@dataclass
class Resolution:
    """Target projects plus filter terms that matched nothing."""

    projects: list[Project] = field(default_factory=list)
    unresolved: list[str] = field(default_factory=list)


def parse_names(raw: str | None) -> list[str]:
    """Split a comma/space separated name list, dropping blanks and duplicates.

    Returns:
        Names in first-seen order; empty if raw is None or blank
    """
    if raw is None:
        return []
    names: list[str] = []
    for name in _FILTER_SEPARATORS.split(raw.strip()):
        if name and name not in names:
            names.append(name)
    return names


def resolve(
    cache: list[Project],
    ignored: set[str],
    name_filter: list[str] | None = None,
    require_targets: bool = True,
) -> Resolution:
    """Compute the projects an action applies to, in cache order.

    An explicit name filter selects by exact name and overrides the ignore
    list. Without a filter every cached project not in the ignore list is
    targeted.

    Args:
        cache: Cached projects in scan order
        ignored: Names excluded from default-scope actions
        name_filter: Exact project names to select
        require_targets: Raise when nothing resolves

    Returns:
        Resolution with the targets and any unmatched filter terms

    Raises:
        EmptyTargetSet: If require_targets and no project resolves
    """
    resolution = Resolution()

    if name_filter:
        wanted = set(name_filter)
        resolution.projects = [p for p in cache if p.name in wanted]
        known = {p.name for p in resolution.projects}
        resolution.unresolved = [n for n in name_filter if n not in known]
        for name in resolution.unresolved:
            logger.warning(f"No cached project named '{name}'")
    else:
        resolution.projects = [p for p in cache if p.name not in ignored]

    if require_targets and not resolution.projects:
        if name_filter:
            raise EmptyTargetSet(f"No matching projects found for: {', '.join(name_filter)}")
        raise EmptyTargetSet("No projects found")

    return resolution
