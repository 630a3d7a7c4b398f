"""Pydantic schemas for project actions, outcomes and reports."""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field


class ProjectAction(str, Enum):
    """Actions accepted by the elixir_projects tool."""

    LIST = "list"
    REFRESH = "refresh"
    UPDATE_DEPS = "update_deps"
    OUTDATED = "outdated"
    GIT_PULL = "git_pull"
    GIT_PUSH = "git_push"
    GIT_STATUS = "git_status"
    DELETE = "delete"
    IGNORE = "ignore"
    UNIGNORE = "unignore"


class OutcomeKind(str, Enum):
    """How a single per-project operation ended."""

    SUCCESS = "success"
    FAILED = "failed"
    TIMEOUT = "timeout"
    LAUNCH_FAILED = "launch_failed"


class GitState(str, Enum):
    """Working tree state reported by git_status."""

    CLEAN = "clean"
    UNCOMMITTED = "uncommitted"
    UNPUSHED = "unpushed"
    UNCOMMITTED_AND_UNPUSHED = "uncommitted_and_unpushed"


# --- Projects ---


class Project(BaseModel):
    """A project directory recognized by its marker file."""

    name: str
    path: str

    @classmethod
    def from_path(cls, path: str | Path) -> Project:
        """Build a project whose name is the final path component."""
        path = Path(path)
        return cls(name=path.name or str(path), path=str(path))


# --- Request ---


class ProjectsRequest(BaseModel):
    """One call of the elixir_projects tool."""

    action: ProjectAction = Field(..., description="Action to perform")
    project: str | None = Field(
        default=None,
        description="Project name(s) to target, comma or space separated",
    )
    path: str | None = Field(
        default=None,
        description="Directory to scan instead of the default projects root",
    )


# --- Process Runner ---


class CommandResult(BaseModel):
    """Result of running one external command in one project directory."""

    stdout: str
    stderr: str
    exit_code: int | None
    kind: OutcomeKind
    command_executed: str
    duration_seconds: float = 0.0


# --- Batch Executor ---


class GitStatusDetail(BaseModel):
    """Parsed git status for one project."""

    has_changes: bool = False
    ahead: int = 0
    behind: int = 0

    @property
    def state(self) -> GitState:
        if self.has_changes and self.ahead:
            return GitState.UNCOMMITTED_AND_UNPUSHED
        if self.has_changes:
            return GitState.UNCOMMITTED
        if self.ahead:
            return GitState.UNPUSHED
        return GitState.CLEAN

    def describe(self) -> str:
        """Describe the state, e.g. "clean working tree, 2 unpushed commits"."""
        tree = "uncommitted changes" if self.has_changes else "clean working tree"
        if self.ahead:
            noun = "commit" if self.ahead == 1 else "commits"
            tree += f", {self.ahead} unpushed {noun}"
        if self.behind:
            tree += f", {self.behind} behind remote"
        return tree


class ProjectOutcome(BaseModel):
    """Per-project result of one batch action."""

    name: str
    path: str
    kind: OutcomeKind
    detail: str = ""
    exit_code: int | None = None
    output: str = ""
    error: str = ""
    git: GitStatusDetail | None = None
    outdated: list[str] = Field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.kind == OutcomeKind.SUCCESS


class BatchReport(BaseModel):
    """Ordered per-project outcomes of one batch action plus a summary."""

    action: ProjectAction
    outcomes: list[ProjectOutcome] = Field(default_factory=list)
    unresolved: list[str] = Field(default_factory=list)

    @property
    def succeeded(self) -> int:
        return sum(1 for o in self.outcomes if o.success)

    @property
    def failed(self) -> int:
        return len(self.outcomes) - self.succeeded

    @property
    def summary(self) -> str:
        return f"{self.succeeded} succeeded, {self.failed} failed"


# --- Dispatcher ---


class ActionResult(BaseModel):
    """Plain-text payload returned to the tool boundary."""

    action: ProjectAction
    text: str
    projects: list[Project] = Field(default_factory=list)
    report: BatchReport | None = None
