"""Subcommand modules for profilegate.

Provides register_commands() which uses deferred imports to keep
``profilegate --help`` fast.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register all command groups on the root CLI group."""
    from profilegate.commands.audience import audience
    from profilegate.commands.friends import friends
    from profilegate.commands.notifications import notifications
    from profilegate.commands.profile import profile
    from profilegate.commands.requests import request

    cli.add_command(request)
    cli.add_command(friends)
    cli.add_command(audience)
    cli.add_command(profile)
    cli.add_command(notifications)
