"""Exceptions that abort a whole project action."""

from __future__ import annotations


class ProjectsError(Exception):
    """Base class for errors surfaced to the caller of a project action."""

    pass


class CacheUnavailable(ProjectsError):
    """Raised when a persisted cache or ignore file exists but cannot be read."""

    pass


class RootNotFound(ProjectsError):
    """Raised when the scan root does not exist or is not a directory."""

    pass


class EmptyTargetSet(ProjectsError):
    """Raised when an action resolves to zero projects."""

    pass


class InvalidRequest(ProjectsError):
    """Raised for malformed requests (unknown action, missing filter)."""

    pass
