"""MCP server exposing Steve's project tools to an agent host."""

import asyncio
import logging

from mcp.server.fastmcp import FastMCP
from mcp.server.fastmcp.exceptions import ToolError

from steve.errors import ProjectsError
from steve.projects.dispatcher import dispatch

logger = logging.getLogger(__name__)

# stdout carries the MCP transport; basicConfig logs to stderr
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

mcp = FastMCP("steve", instructions="Steve - a local MCP server for system tasks")


@mcp.tool()
async def elixir_projects(
    action: str,
    project: str | None = None,
    path: str | None = None,
) -> str:
    """Manage Elixir projects. Uses cached project list from ~/.cache/steve/projects.

    Actions: list, refresh, update_deps, outdated, git_pull, git_push,
    git_status, delete, ignore, unignore.

    Args:
        action: Action to perform
        project: Project name(s) to target, comma or space separated (e.g. 'moneyclub').
            Required for delete and unignore; naming an ignored project still targets it.
        path: Directory to scan instead of the default ~/src/flt
    """
    try:
        result = await asyncio.to_thread(dispatch, action, project, path)
    except ProjectsError as e:
        logger.warning(f"elixir_projects {action} failed: {e}")
        raise ToolError(str(e)) from e
    return result.text


if __name__ == "__main__":
    mcp.run()
