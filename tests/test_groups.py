from __future__ import annotations

import click

from prodkit.groups import tool_group
from prodkit.store import StoreError


def _make_group():
    @tool_group("demo", fallback="add", fallback_when=lambda word: word != "nope")
    @click.pass_context
    def demo(ctx: click.Context) -> None:
        """Demo tool."""
        if ctx.invoked_subcommand is None:
            click.echo("default")

    @demo.command()
    @click.argument("words", nargs=-1)
    def add(words: tuple[str, ...]) -> None:
        click.echo("added: " + " ".join(words))

    @demo.command()
    @click.argument("kind")
    def fail(kind: str) -> None:
        if kind == "key":
            raise KeyError("item #3 not found")
        if kind == "value":
            raise ValueError("bad value")
        raise StoreError("broken file")

    return demo


def test_default_action(runner):
    result = runner.invoke(_make_group(), [])
    assert result.exit_code == 0
    assert result.output == "default\n"


def test_unknown_word_goes_to_fallback(runner):
    result = runner.invoke(_make_group(), ["buy", "milk"])
    assert result.exit_code == 0
    assert result.output == "added: buy milk\n"


def test_fallback_predicate_can_refuse(runner):
    result = runner.invoke(_make_group(), ["nope"])
    assert result.exit_code == 1
    assert "No such command" in result.output


def test_help_verb(runner):
    result = runner.invoke(_make_group(), ["help"])
    assert result.exit_code == 0
    assert "Demo tool." in result.output


def test_errors_become_click_exceptions(runner):
    group = _make_group()
    for kind, message in (("key", "item #3 not found"), ("value", "bad value"), ("store", "broken file")):
        result = runner.invoke(group, ["fail", kind])
        assert result.exit_code == 1
        assert f"Error: {message}" in result.output


def test_usage_errors_exit_1(runner):
    result = runner.invoke(_make_group(), ["fail"])
    assert result.exit_code == 1
    assert "Missing argument 'KIND'" in result.output

    result = runner.invoke(_make_group(), ["--bogus"])
    assert result.exit_code == 1
    assert "No such option" in result.output
