"""Steve - a local MCP server for managing a directory of Elixir projects.

Keeps a cached inventory of Mix projects under a root directory and runs
batch operations (dependency updates, outdated checks, git pull/push/status,
delete) across a filtered subset of them.
"""

__version__ = "0.1.0"
