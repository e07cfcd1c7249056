"""Command group: friendships."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from profilegate.commands._base import PgGroup
from profilegate.services.friends import FriendRequestService

if TYPE_CHECKING:
    from profilegate.commands._context import AppContext

_FRIENDS_EXAMPLES = """\
  profilegate friends list alice
  profilegate friends mutual alice bob
  profilegate friends status alice bob
  profilegate friends remove alice bob"""


@click.group(cls=PgGroup, examples=_FRIENDS_EXAMPLES)
def friends() -> None:
    """List, compare, and remove friendships."""


@friends.command(
    "list",
    examples="""\
  profilegate friends list alice
  profilegate -q friends list alice""",
)
@click.argument("user_id")
@click.pass_obj
def list_cmd(app: AppContext, user_id: str) -> None:
    """List USER_ID's friends."""
    app.emit(FriendRequestService(app.store).list_friends(user_id))


@friends.command(
    examples="""\
  profilegate friends mutual alice bob"""
)
@click.argument("user_a")
@click.argument("user_b")
@click.pass_obj
def mutual(app: AppContext, user_a: str, user_b: str) -> None:
    """List friends USER_A and USER_B have in common."""
    app.emit(FriendRequestService(app.store).mutual_friends(user_a, user_b))


@friends.command(
    examples="""\
  profilegate friends status alice bob
  profilegate -q friends status alice bob"""
)
@click.argument("viewer_id")
@click.argument("other_id")
@click.pass_obj
def status(app: AppContext, viewer_id: str, other_id: str) -> None:
    """Show how VIEWER_ID relates to OTHER_ID (friend, request_sent, ...)."""
    app.emit(FriendRequestService(app.store).relationship_status(viewer_id, other_id))


@friends.command(
    examples="""\
  profilegate friends remove alice bob"""
)
@click.argument("user_id")
@click.argument("friend_id")
@click.pass_obj
def remove(app: AppContext, user_id: str, friend_id: str) -> None:
    """Unfriend: end the friendship between USER_ID and FRIEND_ID."""
    app.emit(FriendRequestService(app.store).unfriend(user_id, friend_id))
