"""Click command and group classes with an ``--examples`` flag.

``--examples`` prints copy-pasteable invocations and exits before argument
validation, so ``profilegate request respond --examples`` works without a
request id. A group without its own examples shows its subcommands'.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import click


def _examples_option(render: Callable[[], str]) -> click.Option:
    def show_examples(ctx: click.Context, _param: click.Parameter, value: bool) -> None:
        if not value or ctx.resilient_parsing:
            return
        click.echo(f"Examples for '{ctx.command_path}':\n")
        click.echo(render() or "  (none)")
        ctx.exit(0)

    return click.Option(
        ["--examples"],
        is_flag=True,
        expose_value=False,
        is_eager=True,
        callback=show_examples,
        help="Show usage examples.",
    )


class PgCommand(click.Command):
    def __init__(self, *args: Any, examples: str | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.examples = examples
        if examples:
            self.params.append(_examples_option(lambda: examples))


class PgGroup(click.Group):
    """Group whose subcommands are :class:`PgCommand` unless told otherwise."""

    command_class = PgCommand

    def __init__(self, *args: Any, examples: str | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.examples = examples
        self.params.append(_examples_option(self.collect_examples))

    def collect_examples(self) -> str:
        """The group's own examples, else every subcommand's in registration order."""
        if self.examples:
            return self.examples
        found = (getattr(cmd, "examples", None) for cmd in self.commands.values())
        return "\n".join(text for text in found if text)
