from __future__ import annotations

from prodkit.cli import TOOL_GROUPS, cli
from prodkit.config import TOOLS


def test_every_tool_is_mounted():
    assert set(TOOL_GROUPS) == set(TOOLS)
    for name in TOOLS:
        assert cli.get_command(None, name) is not None


def test_tools_run_through_root(runner):
    result = runner.invoke(cli, ["tasks", "add", "write", "report"])
    assert result.exit_code == 0
    assert "Added task #1: write report" in result.output

    result = runner.invoke(cli, ["quicknotes", "remember", "the", "milk"])
    assert result.exit_code == 0
    assert "Note added." in result.output


def test_errors_exit_1_through_root(runner):
    result = runner.invoke(cli, ["tasks", "done", "5"])
    assert result.exit_code == 1
    assert "Error: task #5 not found" in result.output


def test_usage_errors_exit_1_through_root(runner):
    result = runner.invoke(cli, ["tasks", "add"])
    assert result.exit_code == 1
    assert "Missing argument" in result.output

    result = runner.invoke(cli, ["no-such-tool"])
    assert result.exit_code == 1
    assert "No such command" in result.output


def test_status_lists_tools(runner, data_dir):
    runner.invoke(cli, ["tasks", "add", "one"])
    (data_dir / "wins").mkdir(parents=True)
    (data_dir / "wins" / "wins.json").write_text("[broken")

    result = runner.invoke(cli, ["status"])
    assert result.exit_code == 0
    assert "(defaults)" in result.output
    assert "1 pending / 1" in result.output
    assert "unreadable" in result.output
    assert "journal" in result.output


def test_init_writes_config(runner, tmp_path):
    with runner.isolated_filesystem(temp_dir=tmp_path) as cwd:
        result = runner.invoke(cli, ["init", "--dir", "pkdata"])
        assert result.exit_code == 0
        assert "Created" in result.output
        assert 'data_dir = "pkdata"' in (tmp_path / cwd / "prodkit.toml").read_text()

        result = runner.invoke(cli, ["init"])
        assert result.exit_code == 1
        assert "already exists" in result.output


def test_help_verb(runner):
    result = runner.invoke(cli, ["habits", "help"])
    assert result.exit_code == 0
    assert "Daily habit tracker" in result.output
