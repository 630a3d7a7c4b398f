"""Pytest configuration and fixtures for Steve tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from steve.config import Settings
from steve.projects.store import ProjectStore
from steve.schemas import CommandResult, OutcomeKind, Project


def make_result(
    stdout: str = "",
    stderr: str = "",
    exit_code: int | None = 0,
    kind: OutcomeKind | None = None,
    command: str = "",
) -> CommandResult:
    """Build a CommandResult; kind follows exit_code unless given."""
    if kind is None:
        kind = OutcomeKind.SUCCESS if exit_code == 0 else OutcomeKind.FAILED
    return CommandResult(
        stdout=stdout,
        stderr=stderr,
        exit_code=exit_code,
        kind=kind,
        command_executed=command,
    )


class FakeRunner:
    """Stands in for run_command, answering per (project name, command)."""

    def __init__(self, responses: dict[tuple[str, str], CommandResult] | None = None):
        self.responses = responses or {}
        self.calls: list[tuple[str, str, float]] = []

    def add(self, project: str, command: str, result: CommandResult) -> None:
        self.responses[(project, command)] = result

    def __call__(self, command: list[str], work_dir: str, timeout: float) -> CommandResult:
        name = Path(work_dir).name
        command_str = " ".join(command)
        self.calls.append((name, command_str, timeout))
        result = self.responses.get((name, command_str))
        if result is None:
            return make_result(command=command_str)
        return result.model_copy(update={"command_executed": command_str})


@pytest.fixture
def tmp_workspace(tmp_path: Path) -> Path:
    """Create a temporary workspace directory for tests."""
    workspace = tmp_path / "workspace"
    workspace.mkdir()
    return workspace


@pytest.fixture
def projects_root(tmp_workspace: Path) -> Path:
    """A root holding three Mix projects and two non-project directories."""
    root = tmp_workspace / "src"
    root.mkdir()
    for name in ["moneyclub", "billing", "accounts"]:
        project = root / name
        project.mkdir()
        (project / "mix.exs").write_text(f"defmodule {name.title()}.MixProject do\nend\n")
        (project / "lib").mkdir()
    (root / "notes").mkdir()
    (root / "notes" / "README.md").write_text("not a project\n")
    (root / "_build").mkdir()
    (root / "_build" / "mix.exs").write_text("")
    return root


@pytest.fixture
def settings(tmp_workspace: Path, projects_root: Path) -> Settings:
    """Settings pointing the cache and projects root into the workspace."""
    return Settings(
        cache_dir=tmp_workspace / "cache",
        projects_root=projects_root,
        command_timeout=5.0,
        network_timeout=20.0,
    )


@pytest.fixture
def store(settings: Settings) -> ProjectStore:
    return ProjectStore.from_settings(settings)


@pytest.fixture
def fake_runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def sample_cache() -> list[Project]:
    return [
        Project(name="a", path="/p/a"),
        Project(name="b", path="/p/b"),
    ]
