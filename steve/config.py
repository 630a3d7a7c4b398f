"""Settings and per-action command definitions."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from steve.schemas import ProjectAction

DEFAULT_CACHE_DIR = Path.home() / ".cache" / "steve"
DEFAULT_PROJECTS_ROOT = Path.home() / "src" / "flt"

CACHE_FILENAME = "projects"
IGNORE_FILENAME = "ignored"

# Mix projects are recognized by their manifest
DEFAULT_MARKER_FILE = "mix.exs"

# Timeouts in seconds
DEFAULT_COMMAND_TIMEOUT = 60.0
DEFAULT_NETWORK_TIMEOUT = 300.0


def expand_path(raw: str | Path) -> Path:
    """Expand a leading ~ and make the path absolute."""
    return Path(raw).expanduser().absolute()


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number of seconds, got {raw!r}") from None
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {raw!r}")
    return value


@dataclass
class Settings:
    """Runtime settings for the project tools."""

    cache_dir: Path = DEFAULT_CACHE_DIR
    projects_root: Path = DEFAULT_PROJECTS_ROOT
    marker_file: str = DEFAULT_MARKER_FILE
    command_timeout: float = DEFAULT_COMMAND_TIMEOUT
    network_timeout: float = DEFAULT_NETWORK_TIMEOUT

    @property
    def cache_path(self) -> Path:
        return self.cache_dir / CACHE_FILENAME

    @property
    def ignore_path(self) -> Path:
        return self.cache_dir / IGNORE_FILENAME

    @classmethod
    def from_env(cls) -> Settings:
        """Build settings, letting STEVE_* environment variables override defaults."""
        cache_dir = os.environ.get("STEVE_CACHE_DIR")
        projects_root = os.environ.get("STEVE_PROJECTS_ROOT")
        return cls(
            cache_dir=expand_path(cache_dir) if cache_dir else DEFAULT_CACHE_DIR,
            projects_root=expand_path(projects_root) if projects_root else DEFAULT_PROJECTS_ROOT,
            command_timeout=_env_float("STEVE_COMMAND_TIMEOUT", DEFAULT_COMMAND_TIMEOUT),
            network_timeout=_env_float("STEVE_NETWORK_TIMEOUT", DEFAULT_NETWORK_TIMEOUT),
        )

    def timeout_for(self, action: ProjectAction) -> float:
        """Timeout applied to each command run for the given action."""
        spec = ACTION_SPECS.get(action)
        if spec is not None and spec.network:
            return self.network_timeout
        return self.command_timeout


@dataclass
class ActionSpec:
    """External commands run per project for a batch action."""

    action: ProjectAction
    description: str
    commands: list[list[str]] = field(default_factory=list)
    network: bool = False


ACTION_SPECS: dict[ProjectAction, ActionSpec] = {
    ProjectAction.UPDATE_DEPS: ActionSpec(
        action=ProjectAction.UPDATE_DEPS,
        description="Update all Mix dependencies",
        commands=[["mix", "deps.update", "--all"]],
        network=True,
    ),
    ProjectAction.OUTDATED: ActionSpec(
        action=ProjectAction.OUTDATED,
        description="List outdated Hex dependencies",
        commands=[["mix", "hex.outdated"]],
        network=True,
    ),
    ProjectAction.GIT_PULL: ActionSpec(
        action=ProjectAction.GIT_PULL,
        description="Pull from the tracked remote branch",
        commands=[["git", "pull"]],
        network=True,
    ),
    ProjectAction.GIT_PUSH: ActionSpec(
        action=ProjectAction.GIT_PUSH,
        description="Push to the tracked remote branch",
        commands=[["git", "push"]],
        network=True,
    ),
    ProjectAction.GIT_STATUS: ActionSpec(
        action=ProjectAction.GIT_STATUS,
        description="Report uncommitted changes and unpushed commits",
        commands=[
            ["git", "status", "--porcelain"],
            ["git", "status", "--branch", "--porcelain=v2"],
        ],
    ),
}


def get_action_spec(action: ProjectAction) -> ActionSpec:
    """Get the command spec for a subprocess-backed batch action."""
    return ACTION_SPECS[action]


def is_batch_action(action: ProjectAction) -> bool:
    """Check if an action runs external commands per project."""
    return action in ACTION_SPECS
