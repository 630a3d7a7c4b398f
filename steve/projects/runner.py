"""Process runner: executes one external command in one project directory."""

from __future__ import annotations

import logging
import os
import subprocess
import time
from pathlib import Path

from steve.config import DEFAULT_COMMAND_TIMEOUT
from steve.schemas import CommandResult, OutcomeKind

logger = logging.getLogger(__name__)

# Output limits
MAX_OUTPUT_BYTES = 10 * 1024  # 10KB


def _truncate_output(output: str, max_bytes: int = MAX_OUTPUT_BYTES) -> str:
    """Truncate output to max_bytes."""
    if len(output.encode("utf-8", errors="replace")) <= max_bytes:
        return output

    # Truncate by bytes, preserving valid UTF-8
    encoded = output.encode("utf-8", errors="replace")[:max_bytes]
    truncated = encoded.decode("utf-8", errors="replace")
    return truncated + "\n... [output truncated]"


def _decode(output: bytes | str | None) -> str:
    if output is None:
        return ""
    if isinstance(output, bytes):
        return output.decode("utf-8", errors="replace")
    return output


def _command_env() -> dict[str, str]:
    """Environment for child processes: never block on a credential prompt."""
    env = dict(os.environ)
    env["GIT_TERMINAL_PROMPT"] = "0"
    return env


def run_command(
    command: list[str],
    work_dir: str | Path,
    timeout_seconds: float = DEFAULT_COMMAND_TIMEOUT,
) -> CommandResult:
    """Run a command with its working directory set to a project.

    A non-zero exit is a normal FAILED result, not an exception. A command
    still running after timeout_seconds is killed and reported as TIMEOUT.
    A command that cannot be started is reported as LAUNCH_FAILED.

    Args:
        command: Program and arguments, run without a shell
        work_dir: Project directory to run in
        timeout_seconds: Seconds to wait before killing the process

    Returns:
        CommandResult with captured output, exit code and outcome kind
    """
    command_str = " ".join(command)
    logger.info(f"Executing command: {command_str} (cwd: {work_dir})")
    started = time.monotonic()

    try:
        result = subprocess.run(
            command,
            cwd=str(work_dir),
            capture_output=True,
            stdin=subprocess.DEVNULL,
            timeout=timeout_seconds,
            text=True,
            errors="replace",
            env=_command_env(),
        )

    except subprocess.TimeoutExpired as e:
        logger.warning(f"Command timed out after {timeout_seconds}s: {command_str} (cwd: {work_dir})")
        stderr = _decode(e.stderr)
        message = f"Command timed out after {timeout_seconds:g} seconds"
        return CommandResult(
            stdout=_truncate_output(_decode(e.stdout)),
            stderr=_truncate_output(f"{stderr}\n{message}" if stderr else message),
            exit_code=None,
            kind=OutcomeKind.TIMEOUT,
            command_executed=command_str,
            duration_seconds=time.monotonic() - started,
        )

    except OSError as e:
        logger.error(f"Command failed to launch: {command_str} (cwd: {work_dir}): {e}")
        return CommandResult(
            stdout="",
            stderr=str(e),
            exit_code=None,
            kind=OutcomeKind.LAUNCH_FAILED,
            command_executed=command_str,
            duration_seconds=time.monotonic() - started,
        )

    kind = OutcomeKind.SUCCESS if result.returncode == 0 else OutcomeKind.FAILED
    logger.debug(f"Command exited {result.returncode}: {command_str}")
    return CommandResult(
        stdout=_truncate_output(result.stdout),
        stderr=_truncate_output(result.stderr),
        exit_code=result.returncode,
        kind=kind,
        command_executed=command_str,
        duration_seconds=time.monotonic() - started,
    )
