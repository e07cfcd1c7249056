"""Command group: per-field audience levels."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from profilegate.commands._base import PgGroup
from profilegate.services._helpers import parse_assignments
from profilegate.services.audience import AudienceService

if TYPE_CHECKING:
    from profilegate.commands._context import AppContext

_AUDIENCE_EXAMPLES = """\
  profilegate audience show alice
  profilegate audience set alice email "Only Me"
  profilegate audience bulk-set alice work=Friends birthday=only_me
  profilegate audience entry alice work job-1 Friends
  profilegate audience clear-entry alice work job-1"""


@click.group(cls=PgGroup, examples=_AUDIENCE_EXAMPLES)
def audience() -> None:
    """Choose who may see each profile field (Public, Friends, Only Me)."""


@audience.command(
    examples="""\
  profilegate audience show alice
  profilegate --json audience show alice"""
)
@click.argument("owner_id")
@click.pass_obj
def show(app: AppContext, owner_id: str) -> None:
    """Show the effective level of every field."""
    app.emit(AudienceService(app.store).get_config(owner_id))


@audience.command(
    "set",
    examples="""\
  profilegate audience set alice email Friends
  profilegate audience set alice phone_number "Only Me\"""",
)
@click.argument("owner_id")
@click.argument("field_key")
@click.argument("level")
@click.pass_obj
def set_cmd(app: AppContext, owner_id: str, field_key: str, level: str) -> None:
    """Set the level of one field."""
    app.emit(AudienceService(app.store).set_level(owner_id, field_key, level))


@audience.command(
    examples="""\
  profilegate audience bulk-set alice work=Friends education=Friends email=only_me"""
)
@click.argument("owner_id")
@click.argument("assignments", nargs=-1, required=True)
@click.pass_obj
def bulk_set(app: AppContext, owner_id: str, assignments: tuple[str, ...]) -> None:
    """Set several fields at once (FIELD=LEVEL ...). All or nothing."""
    try:
        mapping = parse_assignments(assignments)
    except ValueError as exc:
        raise click.BadParameter(str(exc), param_hint="ASSIGNMENTS") from exc
    app.emit(AudienceService(app.store).bulk_set(owner_id, mapping))


@audience.command(
    examples="""\
  profilegate audience entry alice work job-1 Friends
  profilegate audience entry alice websites site-2 "Only Me\"""",
)
@click.argument("owner_id")
@click.argument("field_key")
@click.argument("entry_id")
@click.argument("level")
@click.pass_obj
def entry(app: AppContext, owner_id: str, field_key: str, entry_id: str, level: str) -> None:
    """Set the level of one entry in a multi-entry field (work, websites, ...)."""
    app.emit(AudienceService(app.store).set_entry_level(owner_id, field_key, entry_id, level))


@audience.command(
    examples="""\
  profilegate audience clear-entry alice work job-1"""
)
@click.argument("owner_id")
@click.argument("field_key")
@click.argument("entry_id")
@click.pass_obj
def clear_entry(app: AppContext, owner_id: str, field_key: str, entry_id: str) -> None:
    """Drop an entry's own level so it follows the field again."""
    app.emit(AudienceService(app.store).clear_entry_level(owner_id, field_key, entry_id))
