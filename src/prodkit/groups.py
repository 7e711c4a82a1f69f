"""Click group used by every tool.

ToolGroup adds three things to click.Group:

* a ``help`` verb that prints the group help (``tasks help``);
* an optional fallback command: an unrecognised first word is handed, with
  all remaining words, to that command (``quicknotes buy milk`` adds a note);
* translation of the managers' plain exceptions into click errors, so the
  tool prints ``Error: ...`` and exits 1 instead of a traceback. Usage
  errors (missing argument, unknown verb) exit 1 as well, not click's 2.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import click

from prodkit.store import StoreError

if TYPE_CHECKING:
    from collections.abc import Callable

CONTEXT_SETTINGS: dict[str, Any] = {"help_option_names": ["-h", "--help"]}


class ToolGroup(click.Group):
    """Group with a help verb, an optional fallback command and error translation."""

    def __init__(
        self,
        *args: Any,
        fallback: str | None = None,
        fallback_when: Callable[[str], bool] | None = None,
        **kwargs: Any,
    ) -> None:
        kwargs.setdefault("context_settings", dict(CONTEXT_SETTINGS))
        super().__init__(*args, **kwargs)
        self.fallback = fallback
        self.fallback_when = fallback_when

    def resolve_command(
        self, ctx: click.Context, args: list[str],
    ) -> tuple[str | None, click.Command | None, list[str]]:
        first = args[0] if args else ""
        if first == "help":
            click.echo(ctx.get_help())
            ctx.exit(0)
        if (
            self.fallback
            and first
            and not first.startswith("-")
            and self.get_command(ctx, first) is None
            and (self.fallback_when is None or self.fallback_when(first))
        ):
            return self.fallback, self.get_command(ctx, self.fallback), args
        return super().resolve_command(ctx, args)

    def make_context(
        self,
        info_name: str | None,
        args: list[str],
        parent: click.Context | None = None,
        **extra: Any,
    ) -> click.Context:
        try:
            return super().make_context(info_name, args, parent=parent, **extra)
        except click.UsageError as exc:
            exc.exit_code = 1
            raise

    def invoke(self, ctx: click.Context) -> Any:
        try:
            return super().invoke(ctx)
        except click.UsageError as exc:
            # Usage mistakes exit 1 like every other rejected input
            exc.exit_code = 1
            raise
        except KeyError as exc:
            raise click.ClickException(_message(exc)) from exc
        except (ValueError, FileExistsError, FileNotFoundError, StoreError) as exc:
            raise click.ClickException(_message(exc)) from exc


def _message(exc: BaseException) -> str:
    # KeyError("x") renders as "'x'"; use the raw argument instead
    return str(exc.args[0]) if exc.args else exc.__class__.__name__


def tool_group(name: str, **kwargs: Any) -> Callable[[Callable[..., Any]], ToolGroup]:
    """Decorator: ``@tool_group("tasks", fallback=None)`` for a tool's root group."""
    kwargs.setdefault("invoke_without_command", True)
    return click.group(name, cls=ToolGroup, **kwargs)  # type: ignore[return-value]
