"""Unit tests for the Claude Code agent."""

import subprocess
import threading
from unittest.mock import MagicMock, patch

import pytest

from repomirror.agents import (
    AgentCancelledError,
    AgentError,
    AgentExecutionError,
    AgentNotInstalledError,
    AgentTimeoutError,
    ClaudeCodeAgent,
)
from repomirror.exceptions import InvalidArgumentError

WORKING_DIR = "/path/to/target"


def create_mock_process(returncode: int, stdout: str = "", stderr: str = "") -> MagicMock:
    """Create a mock Popen object that completes immediately."""
    process = MagicMock()
    process.returncode = returncode
    process.communicate = MagicMock(return_value=(stdout, stderr))
    return process


def create_hanging_process() -> MagicMock:
    """Create a mock Popen object that never finishes until killed."""
    process = MagicMock()
    process.returncode = -9
    killed = threading.Event()

    def communicate(timeout=None):
        if killed.is_set():
            return ("", "")
        raise subprocess.TimeoutExpired(cmd="claude", timeout=timeout)

    process.communicate = MagicMock(side_effect=communicate)
    process.kill = MagicMock(side_effect=killed.set)
    return process


@pytest.fixture
def agent() -> ClaudeCodeAgent:
    """Create a ClaudeCodeAgent with a short poll interval."""
    return ClaudeCodeAgent(poll_interval=0.01)


@pytest.mark.unit
class TestBuildCommand:
    """Tests for command construction."""

    def test_command_uses_print_mode_and_permission_mode(self, agent: ClaudeCodeAgent) -> None:
        assert agent.build_command("do it") == [
            "claude",
            "-p",
            "do it",
            "--permission-mode",
            "acceptEdits",
        ]

    def test_custom_executable(self) -> None:
        agent = ClaudeCodeAgent(executable="/opt/bin/claude")
        assert agent.build_command("x")[0] == "/opt/bin/claude"

    def test_default_timeout_is_five_minutes(self) -> None:
        assert ClaudeCodeAgent().timeout == 300


@pytest.mark.unit
class TestExecute:
    """Tests for execute method."""

    def test_execute_calls_claude_cli(self, agent: ClaudeCodeAgent) -> None:
        """Subprocess called with the command and working directory."""
        process = create_mock_process(0, stdout="Migrated 3 files")

        with patch(
            "repomirror.agents.claude_code.subprocess.Popen", return_value=process
        ) as mock_popen:
            agent.execute("migrate", WORKING_DIR)

        call_args = mock_popen.call_args
        assert call_args[0][0] == agent.build_command("migrate")
        assert call_args[1]["cwd"] == WORKING_DIR
        assert call_args[1]["text"] is True

    def test_execute_returns_output(self, agent: ClaudeCodeAgent) -> None:
        process = create_mock_process(0, stdout="Migrated 3 files")

        with patch("repomirror.agents.claude_code.subprocess.Popen", return_value=process):
            result = agent.execute("migrate", WORKING_DIR)

        assert result.agent_name == "claude_code"
        assert result.output == "Migrated 3 files"
        assert result.duration_ms >= 0

    def test_nonzero_exit_reports_stderr(self, agent: ClaudeCodeAgent) -> None:
        process = create_mock_process(2, stdout="partial", stderr="boom")

        with (
            patch("repomirror.agents.claude_code.subprocess.Popen", return_value=process),
            pytest.raises(AgentExecutionError) as exc_info,
        ):
            agent.execute("migrate", WORKING_DIR)

        assert exc_info.value.exit_code == 2
        assert exc_info.value.output == "boom"
        assert "exit code 2" in str(exc_info.value)

    def test_nonzero_exit_falls_back_to_stdout(self, agent: ClaudeCodeAgent) -> None:
        process = create_mock_process(1, stdout="only stdout")

        with (
            patch("repomirror.agents.claude_code.subprocess.Popen", return_value=process),
            pytest.raises(AgentExecutionError) as exc_info,
        ):
            agent.execute("migrate", WORKING_DIR)

        assert exc_info.value.output == "only stdout"

    def test_nonzero_exit_without_output(self, agent: ClaudeCodeAgent) -> None:
        process = create_mock_process(1)

        with (
            patch("repomirror.agents.claude_code.subprocess.Popen", return_value=process),
            pytest.raises(AgentExecutionError) as exc_info,
        ):
            agent.execute("migrate", WORKING_DIR)

        assert exc_info.value.output == "Unknown error"

    def test_missing_executable(self, agent: ClaudeCodeAgent) -> None:
        with (
            patch(
                "repomirror.agents.claude_code.subprocess.Popen",
                side_effect=FileNotFoundError("claude"),
            ),
            pytest.raises(AgentNotInstalledError, match="not found"),
        ):
            agent.execute("migrate", WORKING_DIR)

    def test_other_os_error(self, agent: ClaudeCodeAgent) -> None:
        with (
            patch(
                "repomirror.agents.claude_code.subprocess.Popen",
                side_effect=PermissionError("denied"),
            ),
            pytest.raises(AgentError),
        ):
            agent.execute("migrate", WORKING_DIR)

    def test_timeout_kills_process(self) -> None:
        agent = ClaudeCodeAgent(timeout=0.05, poll_interval=0.01)
        process = create_hanging_process()

        with (
            patch("repomirror.agents.claude_code.subprocess.Popen", return_value=process),
            pytest.raises(AgentTimeoutError, match="timed out"),
        ):
            agent.execute("migrate", WORKING_DIR)

        process.kill.assert_called_once()

    def test_cancel_event_kills_process(self, agent: ClaudeCodeAgent) -> None:
        process = create_hanging_process()
        cancel = threading.Event()
        cancel.set()

        with (
            patch("repomirror.agents.claude_code.subprocess.Popen", return_value=process),
            pytest.raises(AgentCancelledError),
        ):
            agent.execute("migrate", WORKING_DIR, cancel_event=cancel)

        process.kill.assert_called_once()

    def test_relative_working_dir_rejected(self, agent: ClaudeCodeAgent) -> None:
        with (
            patch("repomirror.agents.claude_code.subprocess.Popen") as mock_popen,
            pytest.raises(InvalidArgumentError, match="absolute"),
        ):
            agent.execute("migrate", "relative/dir")

        mock_popen.assert_not_called()

    def test_empty_instructions_rejected(self, agent: ClaudeCodeAgent) -> None:
        with pytest.raises(InvalidArgumentError):
            agent.execute("   ", WORKING_DIR)
