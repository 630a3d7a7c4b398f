"""Batch executor: runs one action across projects and aggregates the outcomes."""

from __future__ import annotations

import logging
import re
import shutil
from typing import Callable

from steve.config import Settings, get_action_spec
from steve.schemas import (
    BatchReport,
    CommandResult,
    GitState,
    GitStatusDetail,
    OutcomeKind,
    Project,
    ProjectAction,
    ProjectOutcome,
)
from steve.projects.runner import run_command

logger = logging.getLogger(__name__)

Runner = Callable[[list[str], str, float], CommandResult]

# "# branch.ab +<ahead> -<behind>" header of `git status --branch --porcelain=v2`
_BRANCH_AB = re.compile(r"^# branch\.ab \+(\d+) -(\d+)\s*$", re.MULTILINE)

_TITLES = {
    ProjectAction.UPDATE_DEPS: "Updated",
    ProjectAction.OUTDATED: "Checked outdated dependencies on",
    ProjectAction.GIT_PULL: "Git pull on",
    ProjectAction.GIT_PUSH: "Git push on",
    ProjectAction.GIT_STATUS: "Git status of",
    ProjectAction.DELETE: "Deleted",
}

_MARKS = {
    OutcomeKind.SUCCESS: "✓",
    OutcomeKind.FAILED: "✗",
    OutcomeKind.TIMEOUT: "⏱",
    OutcomeKind.LAUNCH_FAILED: "✗",
}


def _first_line(text: str) -> str:
    for line in text.splitlines():
        if line.strip():
            return line.strip()
    return ""


def _failure(project: Project, result: CommandResult) -> ProjectOutcome:
    """Outcome for a command that did not succeed."""
    if result.kind == OutcomeKind.TIMEOUT:
        detail = result.stderr.splitlines()[-1].strip() if result.stderr.strip() else "timed out"
    elif result.kind == OutcomeKind.LAUNCH_FAILED:
        detail = f"could not run {result.command_executed.split()[0]}: {result.stderr}"
    else:
        detail = _first_line(result.stderr) or _first_line(result.stdout) or f"exit code {result.exit_code}"
    return ProjectOutcome(
        name=project.name,
        path=project.path,
        kind=result.kind if result.kind != OutcomeKind.SUCCESS else OutcomeKind.FAILED,
        detail=detail,
        exit_code=result.exit_code,
        output=result.stdout,
        error=result.stderr,
    )


def _success(project: Project, result: CommandResult, detail: str = "") -> ProjectOutcome:
    return ProjectOutcome(
        name=project.name,
        path=project.path,
        kind=OutcomeKind.SUCCESS,
        detail=detail,
        exit_code=result.exit_code,
        output=result.stdout,
        error=result.stderr,
    )


# --- Output interpretation ---


def parse_outdated(stdout: str) -> list[str]:
    """Extract outdated dependency lines from `mix hex.outdated` output.

    Rows of the dependency table whose status is not "Up-to-date" are
    outdated. Lines with "->" (version transitions) are always included.
    """
    outdated: list[str] = []
    in_table = False
    for line in stdout.splitlines():
        stripped = line.strip()
        if stripped.startswith("Dependency"):
            in_table = True
            continue
        if in_table and not stripped:
            in_table = False
            continue
        if "->" in line or (in_table and "Up-to-date" not in line):
            outdated.append(stripped)
    return outdated


def parse_git_status(porcelain: str, branch_v2: str) -> GitStatusDetail:
    """Combine `git status --porcelain` and `--branch --porcelain=v2` output."""
    detail = GitStatusDetail(has_changes=bool(porcelain.strip()))
    match = _BRANCH_AB.search(branch_v2)
    if match:
        detail.ahead = int(match.group(1))
        detail.behind = int(match.group(2))
    return detail


def _run_update_deps(project: Project, result: CommandResult) -> ProjectOutcome:
    if result.kind != OutcomeKind.SUCCESS:
        return _failure(project, result)
    return _success(project, result)


def _run_outdated(project: Project, result: CommandResult) -> ProjectOutcome:
    # hex.outdated exits 1 when anything is outdated
    if result.kind not in (OutcomeKind.SUCCESS, OutcomeKind.FAILED):
        return _failure(project, result)
    outdated = parse_outdated(result.stdout)
    if outdated or "Newer versions" in result.stdout:
        outcome = _success(project, result, f"{len(outdated)} outdated")
        outcome.outdated = outdated
        return outcome
    if result.kind == OutcomeKind.FAILED:
        return _failure(project, result)
    return _success(project, result, "up to date")


def _run_git_pull(project: Project, result: CommandResult) -> ProjectOutcome:
    if result.kind != OutcomeKind.SUCCESS:
        return _failure(project, result)
    if "Already up to date" in result.stdout or "Already up-to-date" in result.stdout:
        return _success(project, result, "up to date")
    return _success(project, result, "updated")


def _run_git_push(project: Project, result: CommandResult) -> ProjectOutcome:
    if result.kind != OutcomeKind.SUCCESS:
        return _failure(project, result)
    if "Everything up-to-date" in result.stderr:
        return _success(project, result, "up to date")
    return _success(project, result, "pushed")


_INTERPRETERS = {
    ProjectAction.UPDATE_DEPS: _run_update_deps,
    ProjectAction.OUTDATED: _run_outdated,
    ProjectAction.GIT_PULL: _run_git_pull,
    ProjectAction.GIT_PUSH: _run_git_push,
}


def _run_git_status(project: Project, runner: Runner, timeout: float) -> ProjectOutcome:
    status_cmd, branch_cmd = get_action_spec(ProjectAction.GIT_STATUS).commands

    status = runner(status_cmd, project.path, timeout)
    if status.kind != OutcomeKind.SUCCESS:
        return _failure(project, status)

    branch = runner(branch_cmd, project.path, timeout)
    if branch.kind != OutcomeKind.SUCCESS:
        return _failure(project, branch)

    git = parse_git_status(status.stdout, branch.stdout)
    outcome = _success(project, status, git.describe())
    outcome.output = status.stdout + branch.stdout
    outcome.git = git
    return outcome


# --- Execution ---


def execute(
    action: ProjectAction,
    projects: list[Project],
    settings: Settings,
    runner: Runner = run_command,
    unresolved: list[str] | None = None,
) -> BatchReport:
    """Run a subprocess-backed action on each project, one after another.

    A failing, timed-out or unlaunchable project never stops the batch.

    Args:
        action: One of the actions with an entry in the command table
        projects: Resolved targets, in report order
        settings: Supplies the per-action timeout
        runner: Executes one command; run_command unless testing
        unresolved: Filter terms that matched no project

    Returns:
        BatchReport with one outcome per project
    """
    timeout = settings.timeout_for(action)
    report = BatchReport(action=action, unresolved=list(unresolved or []))
    logger.info(f"Running {action.value} on {len(projects)} projects")

    for project in projects:
        if action == ProjectAction.GIT_STATUS:
            outcome = _run_git_status(project, runner, timeout)
        else:
            interpret = _INTERPRETERS[action]
            (command,) = get_action_spec(action).commands
            outcome = interpret(project, runner(command, project.path, timeout))

        if not outcome.success:
            logger.warning(f"{action.value} failed for {project.name}: {outcome.kind.value} {outcome.detail}")
        report.outcomes.append(outcome)

    logger.info(f"Finished {action.value}: {report.summary}")
    return report


def delete_projects(
    projects: list[Project],
    cache: list[Project],
    unresolved: list[str] | None = None,
) -> tuple[BatchReport, list[Project]]:
    """Recursively remove project directories.

    Args:
        projects: Projects to delete
        cache: Current cache; not modified
        unresolved: Filter terms that matched no project

    Returns:
        The report and the cache without the deleted (or already missing) projects
    """
    report = BatchReport(action=ProjectAction.DELETE, unresolved=list(unresolved or []))
    removed: set[str] = set()

    for project in projects:
        try:
            shutil.rmtree(project.path)
        except FileNotFoundError:
            removed.add(project.path)
            outcome = ProjectOutcome(
                name=project.name,
                path=project.path,
                kind=OutcomeKind.FAILED,
                detail="directory not found, removed from cache",
            )
        except OSError as e:
            logger.error(f"Failed to delete {project.path}: {e}")
            outcome = ProjectOutcome(
                name=project.name,
                path=project.path,
                kind=OutcomeKind.FAILED,
                detail=str(e),
                error=str(e),
            )
        else:
            logger.info(f"Deleted {project.path}")
            removed.add(project.path)
            outcome = ProjectOutcome(
                name=project.name,
                path=project.path,
                kind=OutcomeKind.SUCCESS,
                detail="deleted",
            )
        report.outcomes.append(outcome)

    remaining = [p for p in cache if p.path not in removed]
    return report, remaining


# --- Rendering ---


def _outcome_line(outcome: ProjectOutcome) -> str:
    mark = _MARKS[outcome.kind]
    if outcome.kind == OutcomeKind.SUCCESS:
        return f"{mark} {outcome.name} ({outcome.detail})" if outcome.detail else f"{mark} {outcome.name}"
    if outcome.kind == OutcomeKind.TIMEOUT:
        return f"{mark} {outcome.name}: timeout - {outcome.detail}"
    return f"{mark} {outcome.name}: {outcome.detail}"


def _git_status_groups(report: BatchReport) -> list[str]:
    checked = [o for o in report.outcomes if o.git is not None]
    dirty = [o.name for o in checked if o.git.has_changes]
    ahead = [o.name for o in checked if o.git.ahead]
    clean = [o.name for o in checked if o.git.state == GitState.CLEAN]

    if not dirty and not ahead and len(clean) == len(report.outcomes):
        return [f"✅ All {len(clean)} projects are clean and pushed!"]

    lines: list[str] = []
    if dirty:
        lines.append(f"⚠️  Uncommitted changes ({len(dirty)}):")
        lines.extend(f"  {name}" for name in dirty)
    if ahead:
        lines.append(f"📤 Unpushed commits ({len(ahead)}):")
        lines.extend(f"  {name}" for name in ahead)
    lines.append(f"✓ {len(clean)} projects clean")
    return lines


def _outdated_groups(report: BatchReport) -> list[str]:
    with_outdated = [o for o in report.outcomes if o.success and o.outdated]
    checked = sum(1 for o in report.outcomes if o.success)
    if not with_outdated:
        return [f"All {checked} projects are up to date!"]
    return [f"{len(with_outdated)}/{len(report.outcomes)} projects have outdated dependencies"]


def render_report(report: BatchReport) -> str:
    """Render a report as plain text: one line per project, then a summary."""
    title = _TITLES.get(report.action, report.action.value)
    lines = [f"{title} {len(report.outcomes)} projects:"]

    for outcome in report.outcomes:
        lines.append(_outcome_line(outcome))
        if outcome.outdated:
            lines.extend(f"    {dep}" for dep in outcome.outdated)

    if report.action == ProjectAction.GIT_STATUS:
        lines.append("")
        lines.extend(_git_status_groups(report))
    elif report.action == ProjectAction.OUTDATED:
        lines.append("")
        lines.extend(_outdated_groups(report))

    if report.unresolved:
        lines.append("")
        lines.append(f"Unknown projects (not in cache): {', '.join(report.unresolved)}")

    lines.append("")
    lines.append(f"Summary: {report.summary}")
    return "\n".join(lines)
