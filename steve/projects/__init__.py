"""Multi-project management: cache, scanner, resolver, runner, executor, dispatcher."""

from steve.projects.dispatcher import dispatch, handle_projects
from steve.projects.scanner import scan_projects
from steve.projects.store import ProjectStore

__all__ = ["dispatch", "handle_projects", "scan_projects", "ProjectStore"]
