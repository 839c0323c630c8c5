"""End-to-end tests for the open-tasks command line."""

import json
import logging
from pathlib import Path

import pytest
from click.testing import CliRunner

from opentasks.cli import cli
from opentasks.logging_setup import ROOT_LOGGER


@pytest.fixture
def workdir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """A project directory with an isolated home directory."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    project = tmp_path / "project"
    project.mkdir()
    return project


@pytest.fixture
def run(workdir: Path):
    runner = CliRunner()

    def invoke(*args: str):
        return runner.invoke(cli, ["--cwd", str(workdir), *args])

    yield invoke

    # Handlers installed by the CLI point at the runner's closed streams.
    package_logger = logging.getLogger(ROOT_LOGGER)
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)


def invocation_dirs(workdir: Path) -> list[Path]:
    outputs = workdir / ".open-tasks" / "outputs"
    return sorted(p for p in outputs.iterdir() if p.is_dir())


class TestOperations:
    """Tests for running operations as subcommands."""

    def test_store_writes_invocation(self, run, workdir: Path) -> None:
        result = run("store", "Hello World", "--token", "greeting")

        assert result.exit_code == 0, result.output
        [directory] = invocation_dirs(workdir)
        assert directory.name.endswith("-store")
        assert (directory / "greeting.txt").read_text() == "Hello World"
        index = json.loads((directory / "index.json").read_text())
        assert index["references"][0]["token"] == "greeting"

    def test_tokens_carry_across_invocations(self, run, workdir: Path) -> None:
        assert run("store", "production", "--token", "env").exit_code == 0

        result = run(
            "replace", "Deploy to {{env}}", "--ref", "env", "--token", "message"
        )

        assert result.exit_code == 0, result.output
        latest = invocation_dirs(workdir)[-1]
        assert (latest / "message.txt").read_text() == "Deploy to production"

    def test_latest_binding_wins(self, run, workdir: Path) -> None:
        run("store", "first", "--token", "value")
        run("store", "second", "--token", "value")

        result = run("replace", "{{value}}", "--token", "copy")

        assert result.exit_code == 0, result.output
        latest = invocation_dirs(workdir)[-1]
        assert (latest / "copy.txt").read_text() == "second"

    def test_unknown_reference_fails(self, run, workdir: Path) -> None:
        result = run("join", "--ref", "missing")

        assert result.exit_code == 1
        [directory] = invocation_dirs(workdir)
        assert (directory / "join.error").exists()
        assert not (directory / "index.json").exists()

    def test_unknown_command(self, run) -> None:
        result = run("no-such-operation")

        assert result.exit_code != 0


class TestList:
    def test_lists_builtin_operations(self, run) -> None:
        result = run("list")

        assert result.exit_code == 0
        for name in ("store", "load", "replace", "template", "json-transform", "ask"):
            assert name in result.output


class TestConfiguration:
    """Tests for configuration errors at startup."""

    def test_invalid_config_exits(self, run, workdir: Path) -> None:
        config = workdir / ".open-tasks" / ".config.json"
        config.parent.mkdir(parents=True)
        config.write_text("{not json")

        result = run("store", "x")

        assert result.exit_code == 1
        assert "Invalid JSON" in result.output

    def test_output_dir_from_config(self, run, workdir: Path) -> None:
        config = workdir / ".open-tasks" / ".config.json"
        config.parent.mkdir(parents=True)
        config.write_text(json.dumps({"outputDir": "build/results"}))

        result = run("store", "x", "--token", "x")

        assert result.exit_code == 0, result.output
        assert any((workdir / "build" / "results").iterdir())
