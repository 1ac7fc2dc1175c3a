"""Unit tests for the CLI app."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from typer.testing import CliRunner

from disclaude import __version__
from disclaude.cli.main import app
from disclaude.claude.schema import ClaudeResponse
from disclaude.claude.streaming import StreamResult
from disclaude.exceptions import ClaudeTimeoutError
from tests.helpers.fake_process import make_response_payload


@pytest.fixture
def runner():
    """CLI test runner."""
    return CliRunner()


@pytest.fixture(autouse=True)
def no_logging_setup():
    """Keep the CLI callback from replacing pytest's log handlers."""
    with patch("disclaude.cli.main.configure_logging") as mock_configure:
        yield mock_configure


class TestMainApp:
    def test_app_name(self):
        assert app.info.name == "disclaude"

    def test_all_commands_registered(self, runner):
        result = runner.invoke(app, ["--help"])

        assert result.exit_code == 0
        for command in ("ask", "stream", "classify", "version"):
            assert command in result.stdout

    def test_verbose_enables_debug(self, runner, no_logging_setup):
        runner.invoke(app, ["--verbose", "classify", "hello"])
        no_logging_setup.assert_called_once_with("DEBUG")


class TestVersionCommand:
    def test_version(self, runner):
        result = runner.invoke(app, ["version"])
        assert result.exit_code == 0
        assert __version__ in result.stdout


class TestClassifyCommand:
    def test_question(self, runner):
        result = runner.invoke(app, ["classify", "Ready to deploy? (yes/no)"])

        assert result.exit_code == 0
        assert "yes_no" in result.stdout
        assert "Yes" in result.stdout
        assert "No" in result.stdout

    def test_no_question(self, runner):
        result = runner.invoke(app, ["classify", "I finished."])

        assert result.exit_code == 0
        assert "No question detected" in result.stdout


class TestAskCommand:
    def test_success(self, runner):
        response = ClaudeResponse.model_validate(make_response_payload(result="Fixed it."))
        with patch("disclaude.cli.main.ClaudeProcess") as mock_cls:
            mock_cls.return_value.execute = AsyncMock(return_value=response)
            result = runner.invoke(
                app, ["ask", "fix the bug", "--cwd", "/work", "-t", "Read", "-t", "Edit"]
            )

        assert result.exit_code == 0
        assert "Fixed it." in result.stdout
        assert "sess-123" in result.stdout

        request = mock_cls.return_value.execute.call_args.args[0]
        assert request.prompt == "fix the bug"
        assert request.working_directory == "/work"
        assert request.allowed_tools == ("Read", "Edit")

    def test_json_output(self, runner):
        response = ClaudeResponse.model_validate(make_response_payload())
        with patch("disclaude.cli.main.ClaudeProcess") as mock_cls:
            mock_cls.return_value.execute = AsyncMock(return_value=response)
            result = runner.invoke(app, ["ask", "hi", "--json"])

        assert result.exit_code == 0
        assert '"modelUsage"' in result.stdout

    def test_failure_exits_nonzero(self, runner):
        with patch("disclaude.cli.main.ClaudeProcess") as mock_cls:
            mock_cls.return_value.execute = AsyncMock(
                side_effect=ClaudeTimeoutError("Claude CLI timed out after 1s")
            )
            result = runner.invoke(app, ["ask", "hi", "--timeout", "1"])

        assert result.exit_code == 1
        assert "took too long" in result.stdout


class TestStreamCommand:
    def test_prints_increments_and_token(self, runner):
        async def execute_streaming(request, on_update=None):
            await on_update("Hel")
            await on_update("Hello")
            return StreamResult(content="Hello", session_id="tok-9")

        bridge = MagicMock()
        bridge.execute_streaming = AsyncMock(side_effect=execute_streaming)
        with patch("disclaude.cli.main.StreamingBridge", return_value=bridge):
            result = runner.invoke(app, ["stream", "say hello"])

        assert result.exit_code == 0
        assert "Hello" in result.stdout
        assert "Resume token: tok-9" in result.stdout

    def test_missing_token(self, runner):
        bridge = MagicMock()
        bridge.execute_streaming = AsyncMock(return_value=StreamResult("partial", None))
        with patch("disclaude.cli.main.StreamingBridge", return_value=bridge):
            result = runner.invoke(app, ["stream", "hi"])

        assert result.exit_code == 0
        assert "No resume token returned" in result.stdout
