"""Per-invocation state shared by every profilegate command.

The root group builds one :class:`AppContext` from the resolved settings and
stores it on ``ctx.obj``; commands receive it with ``@click.pass_obj``, call
a service against :attr:`AppContext.store`, and hand the result to
:meth:`AppContext.emit`.
"""

from __future__ import annotations

from functools import cached_property
from typing import TYPE_CHECKING

import click
import structlog

from profilegate.config.logging import configure_logging
from profilegate.output.formatters import OutputSettings, format_result
from profilegate.services.telemetry import enable_telemetry

if TYPE_CHECKING:
    from profilegate.config.settings import ProfileGateSettings
    from profilegate.infrastructure.store import Store
    from profilegate.services.result import ServiceResult

log = structlog.get_logger("profilegate.cli")


class AppContext:
    """Settings, the lazily opened store, and result output.

    ``--help``, ``--version`` and ``--examples`` never open the store, so
    they work outside any data directory.
    """

    def __init__(self, settings: ProfileGateSettings) -> None:
        self.settings = settings
        self._store: Store | None = None
        configure_logging(verbose=settings.verbose, log_json=settings.log_json)
        if settings.verbose:
            enable_telemetry()

    @property
    def store(self) -> Store:
        if self._store is None:
            from profilegate.infrastructure.store import Store

            store = Store(self.settings)
            store.init_event_bus()
            self._store = store
        return self._store

    @cached_property
    def output_settings(self) -> OutputSettings:
        return OutputSettings(
            json_output=self.settings.json_output,
            quiet=self.settings.quiet,
            verbose=self.settings.verbose,
        )

    def emit(self, result: ServiceResult) -> None:
        """Print *result*; a failed result goes to stderr and exits with status 1."""
        rendered = format_result(result, settings=self.output_settings)
        if not result.ok:
            code = result.error.code if result.error else None
            log.debug("command.failed", op=result.op, code=code)
            click.echo(rendered, err=True)
            raise SystemExit(1)

        click.echo(rendered)
        # JSON output already carries the warnings list
        if not self.output_settings.json_output:
            for warning in result.warnings:
                click.echo(f"WARNING: {warning}", err=True)

    def close(self) -> None:
        """Drain queued plugin events and close the store."""
        store, self._store = self._store, None
        if store is not None:
            store.close()
