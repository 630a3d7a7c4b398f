"""End-to-end git_status against real repositories (requires git)."""

import shutil
import subprocess

import pytest

from steve.projects.dispatcher import dispatch
from steve.schemas import GitState

pytestmark = pytest.mark.skipif(shutil.which("git") is None, reason="git not available")


def _git(cwd, *args):
    subprocess.run(
        ["git", "-c", "user.name=Test", "-c", "user.email=test@example.com", *args],
        cwd=cwd,
        check=True,
        capture_output=True,
    )


@pytest.fixture
def repo_with_remote(tmp_workspace, projects_root):
    """Make 'moneyclub' a clone of a bare remote, in sync."""
    remote = tmp_workspace / "remote.git"
    _git(tmp_workspace, "init", "--bare", "-b", "main", str(remote))

    project = projects_root / "moneyclub"
    _git(project, "init", "-b", "main")
    _git(project, "add", ".")
    _git(project, "commit", "-m", "initial")
    _git(project, "remote", "add", "origin", str(remote))
    _git(project, "push", "-u", "origin", "main")
    return project


class TestGitStatusIntegration:
    """Run git_status through the real process runner."""

    def test_clean_and_pushed(self, settings, store, repo_with_remote):
        result = dispatch("git_status", project="moneyclub", settings=settings, store=store)

        outcome = result.report.outcomes[0]
        assert outcome.success is True
        assert outcome.git.state == GitState.CLEAN
        assert "All 1 projects are clean and pushed!" in result.text

    def test_two_unpushed_commits(self, settings, store, repo_with_remote):
        for i in range(2):
            (repo_with_remote / f"file{i}.ex").write_text(f"# {i}\n")
            _git(repo_with_remote, "add", ".")
            _git(repo_with_remote, "commit", "-m", f"change {i}")

        result = dispatch("git_status", project="moneyclub", settings=settings, store=store)

        outcome = result.report.outcomes[0]
        assert outcome.success is True
        assert outcome.detail == "clean working tree, 2 unpushed commits"

    def test_uncommitted_changes(self, settings, store, repo_with_remote):
        (repo_with_remote / "mix.exs").write_text("changed\n")

        result = dispatch("git_status", project="moneyclub", settings=settings, store=store)

        assert result.report.outcomes[0].git.state == GitState.UNCOMMITTED
        assert "Uncommitted changes (1):\n  moneyclub" in result.text

    def test_non_repository_fails_without_aborting(self, settings, store, repo_with_remote, tmp_workspace, monkeypatch):
        """A project outside any git repo fails; the others still report."""
        monkeypatch.setenv("GIT_CEILING_DIRECTORIES", str(tmp_workspace))

        result = dispatch("git_status", settings=settings, store=store)

        by_name = {o.name: o for o in result.report.outcomes}
        assert by_name["moneyclub"].success is True
        assert by_name["billing"].success is False
        assert result.report.summary == "1 succeeded, 2 failed"
