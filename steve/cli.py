"""CLI for Steve - run project actions locally or start the MCP server."""

from __future__ import annotations

import logging

import click

from steve import __version__
from steve.schemas import ProjectAction


@click.group()
@click.version_option(version=__version__, prog_name="steve")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def main(verbose: bool) -> None:
    """Steve - a local MCP server for managing Elixir projects.

    Keeps a cache of the Mix projects under ~/src/flt and runs git and
    dependency commands across them.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


@main.command()
@click.argument(
    "action",
    type=click.Choice([a.value for a in ProjectAction]),
)
@click.option(
    "--project", "-p",
    default=None,
    help="Project name(s), comma separated (required for delete and unignore)",
)
@click.option(
    "--path",
    default=None,
    type=click.Path(file_okay=False, dir_okay=True),
    help="Directory to scan instead of the cached projects",
)
@click.option(
    "--yes", "-y",
    is_flag=True,
    help="Do not ask for confirmation before delete",
)
def projects(action: str, project: str | None, path: str | None, yes: bool) -> None:
    """Run one project action and print the report.

    \b
    Example:
        steve projects list
        steve projects refresh --path ~/src/flt
        steve projects git_status
        steve projects git_pull --project moneyclub,billing
        steve projects ignore --project legacy_app
    """
    from steve.errors import ProjectsError
    from steve.projects.dispatcher import dispatch

    if action == ProjectAction.DELETE.value and project and not yes:
        click.confirm(f"Delete project directories for '{project}'?", abort=True)

    try:
        result = dispatch(action, project=project, path=path)
    except ProjectsError as e:
        raise click.ClickException(str(e)) from e

    click.echo(result.text)


@main.command()
def mcp() -> None:
    """Run the MCP server for agent host integration.

    \b
    Configure in .mcp.json:
        {
            "mcpServers": {
                "steve": {
                    "command": "steve",
                    "args": ["mcp"]
                }
            }
        }
    """
    # The server logs requests at INFO to stderr
    root = logging.getLogger()
    if root.level > logging.INFO:
        root.setLevel(logging.INFO)

    from mcp_steve.server import mcp as mcp_server
    mcp_server.run()


if __name__ == "__main__":
    main()
