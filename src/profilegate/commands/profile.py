"""Command group: profile snapshots and viewer-specific projections."""

from __future__ import annotations

import json
from typing import IO, TYPE_CHECKING, Any

import click

from profilegate.commands._base import PgGroup
from profilegate.services.profiles import ProfileService

if TYPE_CHECKING:
    from profilegate.commands._context import AppContext

_PROFILE_EXAMPLES = """\
  profilegate profile put alice alice.json
  cat alice.json | profilegate profile put alice -
  profilegate profile view alice
  profilegate profile view alice --viewer bob
  profilegate profile view alice --viewer bob --from-file draft.json"""


def _load_json_object(stream: IO[str], param_hint: str) -> dict[str, Any]:
    try:
        data = json.load(stream)
    except json.JSONDecodeError as exc:
        raise click.BadParameter(f"Invalid JSON: {exc}", param_hint=param_hint) from exc
    if not isinstance(data, dict):
        raise click.BadParameter("Expected a JSON object", param_hint=param_hint)
    return data


@click.group(cls=PgGroup, examples=_PROFILE_EXAMPLES)
def profile() -> None:
    """Store profiles and see them as another user would."""


@profile.command(
    examples="""\
  profilegate profile put alice alice.json
  cat alice.json | profilegate profile put alice -"""
)
@click.argument("owner_id")
@click.argument("source", type=click.File("r", encoding="utf-8"))
@click.pass_obj
def put(app: AppContext, owner_id: str, source: IO[str]) -> None:
    """Store OWNER_ID's profile from a JSON file (or - for stdin)."""
    data = _load_json_object(source, "SOURCE")
    app.emit(ProfileService(app.store).save_profile(owner_id, data))


@profile.command(
    examples="""\
  profilegate profile view alice
  profilegate profile view alice --viewer bob
  profilegate profile view alice --viewer alice
  profilegate --json profile view alice --viewer bob --from-file draft.json"""
)
@click.argument("owner_id")
@click.option("--viewer", "viewer_id", default=None, help="Viewer identity (default: anonymous).")
@click.option(
    "--from-file",
    "raw_file",
    type=click.File("r", encoding="utf-8"),
    default=None,
    help="Resolve this JSON profile instead of the stored one.",
)
@click.pass_obj
def view(app: AppContext, owner_id: str, viewer_id: str | None, raw_file: IO[str] | None) -> None:
    """Show OWNER_ID's profile as VIEWER would see it."""
    service = ProfileService(app.store)
    if raw_file is not None:
        raw = _load_json_object(raw_file, "--from-file")
        app.emit(service.resolve(viewer_id, owner_id, raw))
    else:
        app.emit(service.view_profile(viewer_id, owner_id))
