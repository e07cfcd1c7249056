"""Root CLI group: global flags, settings, and command registration."""

from __future__ import annotations

from pathlib import Path

import click
import structlog

from profilegate import __version__
from profilegate.commands import register_commands
from profilegate.commands._context import AppContext
from profilegate.config.settings import ProfileGateSettings


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="profilegate")
@click.option("--json", "json_output", is_flag=True, help="Structured JSON output.")
@click.option("-q", "--quiet", is_flag=True, help="Minimal output (IDs only).")
@click.option("-v", "--verbose", is_flag=True, help="Debug logging and timing spans.")
@click.option("--log-json", is_flag=True, help="Structured JSON log output to stderr.")
@click.option("-c", "--config", "config_path", default=None, help="Override config file path.")
@click.option(
    "--data-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Directory holding .profilegate/ (default: discovered from the cwd).",
)
@click.option("--sync", is_flag=True, help="Run plugin hooks inline instead of in the background.")
@click.pass_context
def cli(
    ctx: click.Context,
    json_output: bool,
    quiet: bool,
    verbose: bool,
    log_json: bool,
    config_path: str | None,
    data_dir: Path | None,
    sync: bool,
) -> None:
    """profilegate: friend requests and per-field profile visibility."""
    settings = ProfileGateSettings.from_cli(
        config_path=config_path,
        data_dir=data_dir,
        json_output=json_output,
        quiet=quiet,
        verbose=verbose,
        log_json=log_json,
        sync=sync,
    )
    app = AppContext(settings)
    ctx.obj = app
    ctx.call_on_close(app.close)

    structlog.contextvars.clear_contextvars()
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())
    else:
        structlog.contextvars.bind_contextvars(command=ctx.invoked_subcommand)


register_commands(cli)
