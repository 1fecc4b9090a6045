"""Unit tests for the command line interface."""

import json
from collections.abc import Generator
from pathlib import Path
from typing import Any

import click
import httpx
import pytest
from click.testing import CliRunner

from tests.helpers.transport import ScriptedTransport, make_response
from watchfetch import __version__
from watchfetch.cli import cli
from watchfetch.cli.main import format_outcome, parse_header
from watchfetch.features.fetch import (
    Content,
    FetchErrorClass,
    FetchMetrics,
    NotModified,
    NotOk,
    UrlInput,
)


URL = "https://api.example.com/openapi.json"


class ContextTransport(ScriptedTransport):
    """Scripted transport usable as an async context manager."""

    async def __aenter__(self) -> "ContextTransport":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        return None


@pytest.fixture(autouse=True)
def isolated_cli(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Generator[None, None, None]:
    """Keep logging configuration and settings local to each test."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr("watchfetch.cli.main.configure_logging", lambda **_: None)
    for name in ("LOG_LEVEL", "JSON_LOGS", "STATE_PATH", "DEFAULT_TIMEOUT_SECONDS"):
        monkeypatch.delenv(f"WATCHFETCH_{name}", raising=False)
    FetchMetrics.reset()
    yield
    FetchMetrics.reset()


@pytest.fixture
def transport(monkeypatch: pytest.MonkeyPatch) -> ContextTransport:
    """Replace the HTTP transport used by the CLI."""
    scripted = ContextTransport()

    def factory(**_: Any) -> ContextTransport:
        return scripted

    monkeypatch.setattr("watchfetch.cli.main.HttpxTransport", factory)
    return scripted


def write_config(tmp_path: Path, content: str) -> Path:
    path = tmp_path / "watch.yaml"
    path.write_text(content, encoding="utf-8")
    return path


def output_lines(output: str) -> list[str]:
    return [line.strip() for line in output.splitlines()]


class TestFormatOutcome:
    """Tests for format_outcome."""

    def test_content_with_body(self) -> None:
        """Test content lines include the body size."""
        outcome = Content(buffer=b"abc", resolved_input=UrlInput(path=URL))

        assert format_outcome("api", outcome) == "api: content (3 bytes)"

    def test_content_without_body(self) -> None:
        """Test content lines for local inputs."""
        outcome = Content(buffer=None, resolved_input=UrlInput(path=URL))

        assert format_outcome("api", outcome) == "api: content"

    def test_not_modified(self) -> None:
        """Test not-modified lines."""
        outcome = NotModified(response=httpx.Response(304))

        assert format_outcome("api", outcome) == "api: not-modified"

    def test_not_ok(self) -> None:
        """Test not-ok lines include status and error class."""
        outcome = NotOk(
            response=httpx.Response(503), error_class=FetchErrorClass.HTTP_5XX
        )

        assert format_outcome("api", outcome) == "api: not-ok (503 HTTP_5XX)"


class TestParseHeader:
    """Tests for parse_header."""

    def test_splits_on_first_colon(self) -> None:
        """Test that values may contain colons."""
        assert parse_header("X-Time: 12:00") == ("X-Time", "12:00")

    @pytest.mark.parametrize("value", ["no-colon", ": value"])
    def test_invalid(self, value: str) -> None:
        """Test that malformed headers are rejected."""
        with pytest.raises(click.BadParameter):
            parse_header(value)


class TestValidateCommand:
    """Tests for the validate command."""

    def test_valid_config(self, tmp_path: Path) -> None:
        """Test the summary printed for a valid file."""
        config = write_config(
            tmp_path,
            "sources:\n"
            "  - id: a\n    input: a.yaml\n"
            "  - id: b\n    input: b.yaml\n    enabled: false\n",
        )

        result = CliRunner().invoke(cli, ["validate", "--config", str(config)])

        assert result.exit_code == 0, result.output
        lines = output_lines(result.output)
        assert "Configuration is valid!" in lines
        assert "Sources: 2" in lines
        assert "Enabled: 1" in lines

    def test_invalid_config(self, tmp_path: Path) -> None:
        """Test that errors and hints are printed with exit code 1."""
        config = write_config(tmp_path, "sources:\n  - id: Bad Id\n    input: a.yaml\n")

        result = CliRunner().invoke(cli, ["validate", "--config", str(config)])

        assert result.exit_code == 1
        assert "Configuration validation failed:" in result.output
        assert "sources.0.id" in result.output
        assert "Hint:" in result.output


class TestCheckCommand:
    """Tests for the check command."""

    def test_local_source_changes_once(self, tmp_path: Path) -> None:
        """Test that state persists between runs."""
        config = write_config(tmp_path, "sources:\n  - id: spec\n    input: spec.yaml\n")
        state = tmp_path / "state.json"
        args = ["check", "--config", str(config), "--state", str(state)]

        first = CliRunner().invoke(cli, args)
        second = CliRunner().invoke(cli, args)

        assert first.exit_code == 0, first.output
        assert "spec: content" in output_lines(first.output)
        assert second.exit_code == 0, second.output
        assert "spec: not-modified" in output_lines(second.output)
        saved = json.loads(state.read_text(encoding="utf-8"))
        assert saved["sources"]["spec"]["last_value"] == "file"

    def test_url_source_uses_config(
        self, tmp_path: Path, transport: ContextTransport
    ) -> None:
        """Test that config headers and timeouts reach the transport."""
        config = write_config(
            tmp_path,
            "fetch:\n  headers:\n    Accept: application/json\n"
            "sources:\n"
            f"  - id: api\n    input: {URL}\n    timeout_seconds: 7\n"
            "    headers:\n      X-Client: cli\n"
            "  - id: disabled-src\n    input: off.yaml\n    enabled: false\n",
        )
        transport.queue(make_response(200, b"{}", etag='"a"'))

        result = CliRunner().invoke(
            cli,
            ["check", "--config", str(config), "--state", str(tmp_path / "s.json")],
        )

        assert result.exit_code == 0, result.output
        assert "api: content (2 bytes)" in output_lines(result.output)
        sent = transport.requests[0]
        assert sent.headers["Accept"] == "application/json"
        assert sent.headers["X-Client"] == "cli"
        assert sent.timeout == 7

    def test_state_path_from_environment(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Test that the state path falls back to settings."""
        config = write_config(tmp_path, "sources:\n  - id: spec\n    input: spec.yaml\n")
        state = tmp_path / "env-state.json"
        monkeypatch.setenv("WATCHFETCH_STATE_PATH", str(state))

        result = CliRunner().invoke(cli, ["check", "--config", str(config)])

        assert result.exit_code == 0, result.output
        assert state.exists()

    def test_corrupt_state_file(self, tmp_path: Path) -> None:
        """Test that an unreadable state file aborts the run."""
        config = write_config(tmp_path, "sources:\n  - id: spec\n    input: spec.yaml\n")
        state = tmp_path / "state.json"
        state.write_text("{broken", encoding="utf-8")

        result = CliRunner().invoke(
            cli, ["check", "--config", str(config), "--state", str(state)]
        )

        assert result.exit_code == 1
        assert "invalid JSON" in result.output


class TestWatchCommand:
    """Tests for the watch command."""

    def test_local_input(self) -> None:
        """Test that a file is reported once, then as unchanged."""
        result = CliRunner().invoke(
            cli, ["watch", "spec.yaml", "--max-polls", "2", "--interval", "0"]
        )

        assert result.exit_code == 0, result.output
        lines = output_lines(result.output)
        assert "poll 1: content" in lines
        assert "poll 2: not-modified" in lines

    def test_url_input_writes_output(
        self, tmp_path: Path, transport: ContextTransport
    ) -> None:
        """Test revalidation and output writing for a URL."""
        output = tmp_path / "latest.json"
        transport.queue(
            make_response(200, b"v1", etag='"a"'),
            make_response(200, etag='"a"'),
        )

        result = CliRunner().invoke(
            cli,
            [
                "watch",
                URL,
                "--max-polls",
                "2",
                "--interval",
                "0",
                "--timeout",
                "4",
                "--header",
                "X-Trace: 1",
                "--output",
                str(output),
            ],
        )

        assert result.exit_code == 0, result.output
        lines = output_lines(result.output)
        assert "poll 1: content (2 bytes)" in lines
        assert "poll 2: not-modified" in lines
        assert transport.methods == ["GET", "HEAD"]
        assert transport.requests[1].headers["If-None-Match"] == '"a"'
        assert transport.requests[0].headers["X-Trace"] == "1"
        assert transport.requests[0].timeout == 4
        assert output.read_bytes() == b"v1"

    def test_invalid_header_option(self) -> None:
        """Test that malformed --header values are usage errors."""
        result = CliRunner().invoke(
            cli, ["watch", "spec.yaml", "--max-polls", "1", "--header", "broken"]
        )

        assert result.exit_code == 2
        assert "Expected NAME:VALUE" in result.output


class TestVersion:
    """Tests for the version option."""

    def test_version(self) -> None:
        """Test that the package version is printed."""
        result = CliRunner().invoke(cli, ["--version"])

        assert result.exit_code == 0
        assert __version__ in result.output
