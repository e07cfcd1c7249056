"""Command group: friend requests."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from profilegate.commands._base import PgGroup
from profilegate.services.friends import FriendRequestService

if TYPE_CHECKING:
    from profilegate.commands._context import AppContext

_REQUEST_EXAMPLES = """\
  profilegate request send alice bob
  profilegate request respond FR-0001 bob --accept
  profilegate request respond FR-0002 bob --decline
  profilegate request cancel FR-0003 alice
  profilegate request list bob
  profilegate request list alice --sent
  profilegate request show FR-0001"""


@click.group(cls=PgGroup, examples=_REQUEST_EXAMPLES)
def request() -> None:
    """Send, answer, and withdraw friend requests."""


@request.command(
    examples="""\
  profilegate request send alice bob
  profilegate --json request send alice bob
  profilegate -q request send alice bob"""
)
@click.argument("sender_id")
@click.argument("receiver_id")
@click.pass_obj
def send(app: AppContext, sender_id: str, receiver_id: str) -> None:
    """Send a friend request from SENDER_ID to RECEIVER_ID."""
    app.emit(FriendRequestService(app.store).send_request(sender_id, receiver_id))


@request.command(
    examples="""\
  profilegate request respond FR-0001 bob --accept
  profilegate request respond FR-0001 bob --decline"""
)
@click.argument("request_id")
@click.argument("responder_id")
@click.option(
    "--accept/--decline",
    "accept",
    default=None,
    help="Accept or decline the request (one is required).",
)
@click.pass_obj
def respond(app: AppContext, request_id: str, responder_id: str, accept: bool | None) -> None:
    """Answer a pending request as its receiver."""
    if accept is None:
        raise click.UsageError("Pass --accept or --decline.")
    service = FriendRequestService(app.store)
    if accept:
        app.emit(service.accept(request_id, responder_id))
    else:
        app.emit(service.decline(request_id, responder_id))


@request.command(
    examples="""\
  profilegate request cancel FR-0001 alice"""
)
@click.argument("request_id")
@click.argument("canceller_id")
@click.pass_obj
def cancel(app: AppContext, request_id: str, canceller_id: str) -> None:
    """Withdraw a pending request as its sender."""
    app.emit(FriendRequestService(app.store).cancel(request_id, canceller_id))


@request.command(
    "list",
    examples="""\
  profilegate request list bob
  profilegate request list alice --sent
  profilegate -q request list bob""",
)
@click.argument("user_id")
@click.option("--sent", is_flag=True, help="Show requests USER_ID sent instead of received.")
@click.pass_obj
def list_cmd(app: AppContext, user_id: str, sent: bool) -> None:
    """List pending requests for a user."""
    app.emit(FriendRequestService(app.store).list_pending(user_id, sent=sent))


@request.command(
    examples="""\
  profilegate request show FR-0001
  profilegate --json request show FR-0001"""
)
@click.argument("request_id")
@click.pass_obj
def show(app: AppContext, request_id: str) -> None:
    """Show one request, whatever its status."""
    app.emit(FriendRequestService(app.store).get_request(request_id))
