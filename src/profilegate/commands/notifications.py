"""Command group: friend-request notifications."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from profilegate.commands._base import PgGroup
from profilegate.services.notifications import NotificationService

if TYPE_CHECKING:
    from profilegate.commands._context import AppContext


@click.group(cls=PgGroup)
def notifications() -> None:
    """Read notifications created by friend-request activity."""


@notifications.command(
    "list",
    examples="""\
  profilegate notifications list bob
  profilegate notifications list bob --unread""",
)
@click.argument("user_id")
@click.option("--unread", is_flag=True, help="Only unread notifications.")
@click.pass_obj
def list_cmd(app: AppContext, user_id: str, unread: bool) -> None:
    """List USER_ID's notifications, newest first."""
    app.emit(NotificationService(app.store).list_notifications(user_id, unread_only=unread))


@notifications.command(
    "read",
    examples="""\
  profilegate notifications read bob""",
)
@click.argument("user_id")
@click.pass_obj
def read_cmd(app: AppContext, user_id: str) -> None:
    """Mark all of USER_ID's notifications as read."""
    app.emit(NotificationService(app.store).mark_read(user_id))
