"""Action dispatcher: the single entry point of the elixir_projects tool."""

from __future__ import annotations

import logging

from pydantic import ValidationError

from steve.config import Settings, expand_path, is_batch_action
from steve.errors import EmptyTargetSet, InvalidRequest, RootNotFound
from steve.schemas import ActionResult, Project, ProjectAction, ProjectsRequest
from steve.projects.executor import Runner, delete_projects, execute, render_report
from steve.projects.resolver import parse_names, resolve
from steve.projects.runner import run_command
from steve.projects.scanner import scan_projects
from steve.projects.store import ProjectStore

logger = logging.getLogger(__name__)

VALID_ACTIONS = ", ".join(a.value for a in ProjectAction)


def parse_request(
    action: str,
    project: str | None = None,
    path: str | None = None,
) -> ProjectsRequest:
    """Validate raw tool arguments.

    Raises:
        InvalidRequest: If the action is unknown
    """
    try:
        return ProjectsRequest(action=action, project=project or None, path=path or None)
    except ValidationError:
        raise InvalidRequest(f"Unknown action '{action}'. Use: {VALID_ACTIONS}") from None


def _load_candidates(request: ProjectsRequest, settings: Settings, store: ProjectStore) -> list[Project]:
    """Projects an action chooses from: a scan of the path override, else the cache."""
    if request.path:
        try:
            return scan_projects(request.path, settings.marker_file)
        except RootNotFound:
            logger.warning(f"Path override does not exist: {request.path}")
            return []

    if not store.has_cache():
        # First use: build the cache from the default root
        try:
            projects = scan_projects(settings.projects_root, settings.marker_file)
        except RootNotFound:
            logger.warning(f"No cache and no projects root at {settings.projects_root}")
            return []
        store.save(projects)
        return projects

    return store.load()


# --- Handlers ---


def _handle_list(request: ProjectsRequest, settings: Settings, store: ProjectStore) -> ActionResult:
    candidates = _load_candidates(request, settings, store)
    resolution = resolve(
        candidates,
        store.load_ignored(),
        parse_names(request.project),
        require_targets=False,
    )
    projects = resolution.projects

    if not projects:
        text = "No Elixir projects found"
    else:
        lines = [f"Found {len(projects)} projects: {', '.join(p.name for p in projects)}"]
        lines.extend(f"  {p.name}: {p.path}" for p in projects)
        text = "\n".join(lines)
    if resolution.unresolved:
        text += f"\nUnknown projects (not in cache): {', '.join(resolution.unresolved)}"

    return ActionResult(action=request.action, text=text, projects=projects)


def _handle_refresh(request: ProjectsRequest, settings: Settings, store: ProjectStore) -> ActionResult:
    root = expand_path(request.path) if request.path else settings.projects_root
    projects = scan_projects(root, settings.marker_file)
    store.save(projects)

    text = f"Refreshed project cache. Found {len(projects)} Elixir projects:"
    if projects:
        text += "\n" + "\n".join(p.path for p in projects)
    return ActionResult(action=request.action, text=text, projects=projects)


def _handle_batch(
    request: ProjectsRequest,
    settings: Settings,
    store: ProjectStore,
    runner: Runner,
) -> ActionResult:
    candidates = _load_candidates(request, settings, store)
    try:
        resolution = resolve(candidates, store.load_ignored(), parse_names(request.project))
    except EmptyTargetSet as e:
        logger.info(f"{request.action.value}: {e}")
        return ActionResult(action=request.action, text=f"No matching projects found ({e})")

    report = execute(
        request.action,
        resolution.projects,
        settings,
        runner=runner,
        unresolved=resolution.unresolved,
    )
    return ActionResult(
        action=request.action,
        text=render_report(report),
        projects=resolution.projects,
        report=report,
    )


def _handle_delete(request: ProjectsRequest, settings: Settings, store: ProjectStore) -> ActionResult:
    names = parse_names(request.project)
    if not names:
        raise EmptyTargetSet("Refusing to delete: 'project' filter is required for delete action")

    candidates = _load_candidates(request, settings, store)
    try:
        resolution = resolve(candidates, set(), names)
    except EmptyTargetSet as e:
        return ActionResult(action=request.action, text=f"No matching projects found ({e})")

    # A path override never touches the cache
    cache = [] if request.path else store.load()
    report, remaining = delete_projects(resolution.projects, cache, resolution.unresolved)
    if not request.path and len(remaining) != len(cache):
        store.save(remaining)

    return ActionResult(
        action=request.action,
        text=render_report(report),
        projects=resolution.projects,
        report=report,
    )


def _handle_ignore(request: ProjectsRequest, settings: Settings, store: ProjectStore) -> ActionResult:
    names = parse_names(request.project)
    ignored = store.load_ignored()

    if not names:
        if not ignored:
            return ActionResult(action=request.action, text="No projects are currently ignored")
        return ActionResult(action=request.action, text=f"Ignored projects: {', '.join(sorted(ignored))}")

    # Read the cache first so a corrupt cache aborts before anything is saved
    known = {p.name for p in _load_candidates(request, settings, store)}
    added = [n for n in names if n not in ignored]
    already = [n for n in names if n in ignored]
    if added:
        store.save_ignored(ignored | set(added))

    lines = []
    if added:
        lines.append(f"Ignored: {', '.join(added)}")
    if already:
        lines.append(f"Already ignored: {', '.join(already)}")
    unknown = [n for n in added if n not in known]
    if unknown:
        lines.append(f"Not in cache: {', '.join(unknown)}")
    return ActionResult(action=request.action, text="\n".join(lines))


def _handle_unignore(request: ProjectsRequest, store: ProjectStore) -> ActionResult:
    names = parse_names(request.project)
    if not names:
        raise InvalidRequest("'project' filter is required for unignore action")

    ignored = store.load_ignored()
    removed = [n for n in names if n in ignored]
    missing = [n for n in names if n not in ignored]
    if removed:
        store.save_ignored(ignored - set(removed))

    lines = []
    if removed:
        lines.append(f"Unignored: {', '.join(removed)}")
    if missing:
        lines.append(f"Not ignored: {', '.join(missing)}")
    return ActionResult(action=request.action, text="\n".join(lines))


def handle_projects(
    request: ProjectsRequest,
    settings: Settings | None = None,
    store: ProjectStore | None = None,
    runner: Runner = run_command,
) -> ActionResult:
    """Run one elixir_projects action.

    Args:
        request: Validated tool arguments
        settings: Paths and timeouts; read from the environment if omitted
        store: Cache and ignore list persistence; built from settings if omitted
        runner: Executes one command per project; run_command unless testing

    Returns:
        ActionResult with the plain-text report

    Raises:
        ProjectsError: For failures that abort the whole call (corrupt cache,
            missing root on refresh, delete without a filter, malformed request)
    """
    settings = settings or Settings.from_env()
    store = store or ProjectStore.from_settings(settings)
    action = request.action
    logger.info(f"Received elixir_projects request: action={action.value}, project={request.project}, path={request.path}")

    if action == ProjectAction.LIST:
        result = _handle_list(request, settings, store)
    elif action == ProjectAction.REFRESH:
        result = _handle_refresh(request, settings, store)
    elif action == ProjectAction.DELETE:
        result = _handle_delete(request, settings, store)
    elif action == ProjectAction.IGNORE:
        result = _handle_ignore(request, settings, store)
    elif action == ProjectAction.UNIGNORE:
        result = _handle_unignore(request, store)
    elif is_batch_action(action):
        result = _handle_batch(request, settings, store, runner)
    else:
        raise InvalidRequest(f"Unknown action '{action.value}'. Use: {VALID_ACTIONS}")

    logger.info(f"Completed elixir_projects request: action={action.value}")
    return result


def dispatch(
    action: str,
    project: str | None = None,
    path: str | None = None,
    settings: Settings | None = None,
    store: ProjectStore | None = None,
    runner: Runner = run_command,
) -> ActionResult:
    """Validate raw arguments and run the action."""
    request = parse_request(action, project, path)
    return handle_projects(request, settings=settings, store=store, runner=runner)
