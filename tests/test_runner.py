"""Tests for the process runner."""

import shutil
import subprocess

import pytest
from unittest.mock import patch

from steve.projects.runner import MAX_OUTPUT_BYTES, _truncate_output, run_command
from steve.schemas import OutcomeKind

requires_sh = pytest.mark.skipif(shutil.which("sh") is None, reason="sh not available")


@requires_sh
class TestRunCommand:
    """Test command execution in a project directory."""

    def test_simple_command_succeeds(self, tmp_path):
        """Zero exit is a success with captured stdout."""
        result = run_command(["sh", "-c", "echo hello"], tmp_path)

        assert result.kind == OutcomeKind.SUCCESS
        assert result.exit_code == 0
        assert "hello" in result.stdout
        assert result.command_executed == "sh -c echo hello"

    def test_working_directory_respected(self, tmp_path):
        """Command runs inside the given directory."""
        (tmp_path / "mix.exs").write_text("")

        result = run_command(["ls"], tmp_path)

        assert result.kind == OutcomeKind.SUCCESS
        assert "mix.exs" in result.stdout

    def test_nonzero_exit_is_failed_not_raised(self, tmp_path):
        """A non-zero exit is a FAILED result with stderr captured."""
        result = run_command(["sh", "-c", "echo oops >&2; exit 3"], tmp_path)

        assert result.kind == OutcomeKind.FAILED
        assert result.exit_code == 3
        assert "oops" in result.stderr

    def test_timeout_kills_process(self, tmp_path):
        """A command running past its timeout is reported as TIMEOUT."""
        result = run_command(["sh", "-c", "sleep 10"], tmp_path, timeout_seconds=0.5)

        assert result.kind == OutcomeKind.TIMEOUT
        assert result.exit_code is None
        assert "timed out" in result.stderr.lower()
        assert result.duration_seconds < 10

    def test_missing_binary_is_launch_failed(self, tmp_path):
        """A binary that does not exist is LAUNCH_FAILED."""
        result = run_command(["definitely-not-a-real-binary-12345"], tmp_path)

        assert result.kind == OutcomeKind.LAUNCH_FAILED
        assert result.exit_code is None
        assert result.stderr != ""

    def test_missing_work_dir_is_launch_failed(self, tmp_path):
        """A project directory that vanished is LAUNCH_FAILED."""
        result = run_command(["ls"], tmp_path / "gone")
        assert result.kind == OutcomeKind.LAUNCH_FAILED

    def test_stdin_not_inherited(self, tmp_path):
        """Commands reading stdin get EOF instead of blocking."""
        result = run_command(["sh", "-c", "cat"], tmp_path, timeout_seconds=5)
        assert result.kind == OutcomeKind.SUCCESS

    def test_git_prompt_disabled(self, tmp_path):
        """Child processes never prompt for git credentials."""
        result = run_command(["sh", "-c", "echo $GIT_TERMINAL_PROMPT"], tmp_path)
        assert result.stdout.strip() == "0"


class TestRunCommandMocked:
    """Test runner behavior around subprocess.run."""

    @patch("steve.projects.runner.subprocess.run")
    def test_timeout_keeps_partial_output(self, mock_run, tmp_path):
        """Output captured before the timeout is kept."""
        mock_run.side_effect = subprocess.TimeoutExpired(
            cmd=["git", "pull"], timeout=1, output=b"Fetching origin\n", stderr=b"remote: waiting\n"
        )

        result = run_command(["git", "pull"], tmp_path, timeout_seconds=1)

        assert result.kind == OutcomeKind.TIMEOUT
        assert result.stdout == "Fetching origin\n"
        assert result.stderr.startswith("remote: waiting")
        assert result.stderr.endswith("Command timed out after 1 seconds")

    @patch("steve.projects.runner.subprocess.run")
    def test_permission_denied_is_launch_failed(self, mock_run, tmp_path):
        """PermissionError on launch is LAUNCH_FAILED."""
        mock_run.side_effect = PermissionError("Permission denied: 'mix'")

        result = run_command(["mix", "hex.outdated"], tmp_path)

        assert result.kind == OutcomeKind.LAUNCH_FAILED
        assert "Permission denied" in result.stderr

    @patch("steve.projects.runner.subprocess.run")
    def test_passes_timeout_and_cwd(self, mock_run, tmp_path):
        """Timeout and working directory reach subprocess.run."""
        mock_run.return_value = subprocess.CompletedProcess(args=["git"], returncode=0, stdout="", stderr="")

        run_command(["git", "status"], tmp_path, timeout_seconds=42)

        kwargs = mock_run.call_args.kwargs
        assert kwargs["timeout"] == 42
        assert kwargs["cwd"] == str(tmp_path)


class TestTruncateOutput:
    """Test output truncation."""

    def test_short_output_unchanged(self):
        assert _truncate_output("hello") == "hello"

    def test_long_output_truncated(self):
        """Output over the limit is cut and marked."""
        result = _truncate_output("x" * (MAX_OUTPUT_BYTES * 5))

        assert len(result) <= MAX_OUTPUT_BYTES + 100
        assert result.endswith("[output truncated]")
