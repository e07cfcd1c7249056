"""Rich rendering of a :class:`ServiceResult`, one renderer per operation.

:func:`render_result` looks the renderer up by ``result.op`` and falls back
to a plain key/value listing. All output is captured from a StringIO
console, so it is plain text whenever stdout is not a terminal.
"""

from __future__ import annotations

import json
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from rich.panel import Panel
from rich.table import Table
from rich.text import Text
from rich.tree import Tree

from profilegate.output.console import (
    create_console,
    get_output,
    style_for_level,
    style_for_status,
)

if TYPE_CHECKING:
    from rich.console import Console

    from profilegate.services.result import ServiceResult

Renderer = Callable[..., None]

_SLOW_MS = 1000.0
_NOTICEABLE_MS = 100.0


def render_result(result: ServiceResult, *, verbose: bool = False) -> str:
    console = create_console()
    if result.ok:
        _OP_RENDERERS.get(result.op, _render_generic)(result, console, verbose=verbose)
    else:
        _render_error(result, console, verbose=verbose)
    return get_output(console).rstrip("\n")


def render_quiet(result: ServiceResult) -> str:
    """``--quiet`` output: ids one per line, else the status, else ``OK: op``."""
    if not result.ok:
        reason = result.error.message if result.error else "Unknown error"
        return f"ERROR: {result.op} — {reason}"

    data = result.data
    if isinstance(data.get("items"), list):
        ids = (_item_id(item) for item in data["items"])
        return "\n".join(i for i in ids if i)
    for key in ("id", "status"):
        if key in data:
            return str(data[key])
    return f"OK: {result.op}"


def _item_id(item: Any) -> str:
    if isinstance(item, str):
        return item
    if isinstance(item, dict) and item.get("id") is not None:
        return str(item["id"])
    return ""


def _as_text(value: Any) -> str:
    return value if isinstance(value, str) else json.dumps(value, separators=(",", ":"))


def _value_style(key: str, text: str) -> str:
    if key == "id" or key.endswith("_id"):
        return "pg.id"
    if key == "level":
        return style_for_level(text)
    if key == "status":
        return style_for_status(text)
    return ""


def _status_line(console: Console, result: ServiceResult) -> None:
    console.print(Text.assemble(("OK", "pg.ok"), (f"  {result.op}", "pg.op")))


def _field(console: Console, key: str, value: Any) -> None:
    text = _as_text(value)
    console.print(Text.assemble((f"  {key}: ", "pg.key"), (text, _value_style(key, text))))


def _span_label(span: dict[str, Any]) -> Text:
    duration = float(span.get("duration_ms", 0.0))
    if duration > _SLOW_MS:
        style = "bold red"
    elif duration > _NOTICEABLE_MS:
        style = "yellow"
    else:
        style = "dim"
    label = Text.assemble((f"{duration:.2f}ms", style), f"  {span.get('name', '?')}")
    notes = span.get("annotations") or {}
    if notes:
        label.append("  (" + ", ".join(f"{k}={v}" for k, v in notes.items()) + ")")
    return label


def _span_tree(span: dict[str, Any], tree: Tree | None = None) -> Tree:
    node = Tree(_span_label(span)) if tree is None else tree.add(_span_label(span))
    for child in span.get("children", []):
        _span_tree(child, node)
    return node


def _render_meta(console: Console, result: ServiceResult) -> None:
    """Timing spans and any other meta keys, shown only with ``--verbose``."""
    if not result.meta:
        return
    console.print()
    console.print(Text("  meta:", style="dim"))
    for key, value in result.meta.items():
        if key == "telemetry":
            console.print(Panel.fit(_span_tree(value), border_style="dim"))
        else:
            console.print(Text(f"    {key}: {_as_text(value)}"))


def _render_error(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    err = result.error
    line = Text.assemble(("ERROR", "pg.error"), (f"  {result.op}", "pg.op"))
    if err is not None:
        line.append(f" [{err.code}]", style="pg.key")
    line.append(f" — {err.message if err else 'Unknown error'}")
    console.print(line)

    if verbose and err and err.detail:
        console.print(Text("  detail:", style="dim"))
        for key, value in err.detail.items():
            console.print(Text(f"    {key}: {value}"))


# ── Mutation renderers ────────────────────────────────────────────────

_MUTATION_KEYS = (
    "id",
    "status",
    "owner_id",
    "user_id",
    "friend_id",
    "field",
    "entry_id",
    "level",
    "removed",
    "count",
)


def _render_mutation(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render send/respond/cancel/unfriend and audience writes."""
    _status_line(console, result)
    for key in _MUTATION_KEYS:
        if key in result.data:
            _field(console, key, result.data[key])
    if verbose:
        _render_meta(console, result)


# ── Friend renderers ──────────────────────────────────────────────────


def _request_table(items: list[dict[str, Any]]) -> Table:
    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("ID", style="pg.id", no_wrap=True)
    table.add_column("Sender", style="pg.user")
    table.add_column("Receiver", style="pg.user")
    table.add_column("Status")
    table.add_column("Created", style="dim")
    for item in items:
        status = str(item.get("status", ""))
        table.add_row(
            str(item.get("id", "")),
            str(item.get("sender_id", "")),
            str(item.get("receiver_id", "")),
            Text(status, style=style_for_status(status)),
            str(item.get("created_at", "")),
        )
    return table


def _render_request(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    request = result.data.get("request", {})
    status = str(request.get("status", ""))
    body = Text.assemble(
        f"from: {request.get('sender_id', '?')}\n",
        f"to: {request.get('receiver_id', '?')}\n",
        "status: ",
        (status, style_for_status(status)),
        f"\ncreated: {request.get('created_at', '')}",
        f"\nupdated: {request.get('updated_at', '')}",
    )
    console.print(Panel(body, title=str(request.get("id", "?")), expand=False))


def _render_request_list(
    result: ServiceResult, console: Console, *, verbose: bool = False
) -> None:
    items = result.data.get("items", [])
    direction = result.data.get("direction", "received")
    console.print(Text(f"Pending requests ({direction}) for {result.data.get('user_id')}"))
    if items:
        console.print(_request_table(items))
    console.print(f"\n{result.data.get('count', len(items))} requests")


def _render_user_list(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render friends / mutual friends as one user per line."""
    items = result.data.get("items", [])
    for user in items:
        console.print(Text(f"  {user}", style="pg.user"))
    noun = "friend" if len(items) == 1 else "friends"
    console.print(f"\n{result.data.get('count', len(items))} {noun}")


# ── Audience renderers ────────────────────────────────────────────────


def _render_audience(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render get_config (all fields) or bulk_set (changed fields) as a table."""
    levels: dict[str, str] = result.data.get("levels", {})
    entries: dict[str, dict[str, str]] = result.data.get("entries", {})
    if result.op != "get_config":
        _status_line(console, result)

    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("Field")
    table.add_column("Level")
    for field_key, level in levels.items():
        table.add_row(field_key, Text(level, style=style_for_level(level)))
    console.print(table)

    for field_key, overrides in entries.items():
        console.print(Text(f"  {field_key} entries:", style="pg.key"))
        for entry_id, level in overrides.items():
            console.print(
                Text(f"    {entry_id}: "), Text(level, style=style_for_level(level)), end=""
            )
            console.print()


# ── Profile renderers ─────────────────────────────────────────────────


def _render_profile(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    profile: dict[str, Any] = result.data.get("profile", {})
    lines: list[str] = []
    for key, value in profile.items():
        if isinstance(value, list):
            lines.append(f"{key}:")
            lines.extend(f"  - {json.dumps(v) if not isinstance(v, str) else v}" for v in value)
        elif isinstance(value, dict):
            lines.append(f"{key}: {json.dumps(value)}")
        else:
            lines.append(f"{key}: {value}")

    owner = result.data.get("owner_id", "?")
    viewer = result.data.get("viewer_id")
    title = f"{owner} (as {viewer or 'anonymous'})" if result.op != "get_profile" else owner
    body = Text("\n".join(lines) or "(nothing visible)")
    console.print(Panel(body, title=title, expand=False))

    withheld = result.data.get("withheld") or []
    if verbose and withheld:
        console.print(Text(f"  withheld: {', '.join(withheld)}", style="dim"))
    if verbose:
        _render_meta(console, result)


def _render_saved_profile(
    result: ServiceResult, console: Console, *, verbose: bool = False
) -> None:
    _status_line(console, result)
    _field(console, "owner_id", result.data.get("owner_id", ""))
    _field(console, "fields", ", ".join(result.data.get("fields", [])))


# ── Notification renderers ────────────────────────────────────────────


def _render_notifications(
    result: ServiceResult, console: Console, *, verbose: bool = False
) -> None:
    items = result.data.get("items", [])
    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("Type")
    table.add_column("From", style="pg.user")
    table.add_column("Request", style="pg.id")
    table.add_column("Read")
    table.add_column("Created", style="dim")
    for item in items:
        table.add_row(
            str(item.get("type", "")),
            str(item.get("sender_id", "")),
            str(item.get("reference_id", "")),
            "yes" if item.get("is_read") else "no",
            str(item.get("created", "")),
        )
    console.print(table)
    console.print(f"\n{result.data.get('count', len(items))} notifications")


# ── Fallback ──────────────────────────────────────────────────────────


def _render_generic(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Fallback renderer: status line + all data as key-value pairs."""
    _status_line(console, result)
    for key, value in result.data.items():
        _field(console, key, value)
    if verbose:
        _render_meta(console, result)


# ── Dispatch table ────────────────────────────────────────────────────

_OP_RENDERERS: dict[str, Renderer] = {
    # Friend requests
    "send_request": _render_mutation,
    "respond": _render_mutation,
    "cancel": _render_mutation,
    "unfriend": _render_mutation,
    "get_request": _render_request,
    "list_pending": _render_request_list,
    "list_friends": _render_user_list,
    "mutual_friends": _render_user_list,
    "relationship_status": _render_generic,
    # Audience
    "get_config": _render_audience,
    "set_level": _render_mutation,
    "bulk_set": _render_audience,
    "set_entry_level": _render_mutation,
    "clear_entry_level": _render_mutation,
    # Profiles
    "save_profile": _render_saved_profile,
    "get_profile": _render_profile,
    "view_profile": _render_profile,
    "resolve": _render_profile,
    # Notifications
    "list_notifications": _render_notifications,
    "mark_read": _render_mutation,
}
