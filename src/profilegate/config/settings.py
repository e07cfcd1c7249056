"""ProfileGateSettings: one frozen object built from flags, env and TOML.

Sources, strongest first:

* keyword arguments (the root group's CLI flags)
* ``PROFILEGATE_*`` environment variables, ``__`` between section and key
* ``profilegate.toml``
* the section model defaults
"""

from __future__ import annotations

from contextvars import ContextVar
from pathlib import Path
from typing import Any

from pydantic import Field
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

from profilegate.config.discovery import find_config, find_data_dir, read_config
from profilegate.config.models import EventsConfig, NotificationsConfig, StoreConfig

# Config file for the settings object currently being built by from_cli().
_active_toml: ContextVar[Path | None] = ContextVar("profilegate_toml", default=None)


class TomlSettingsSource(PydanticBaseSettingsSource):
    """Top-level tables of a ``profilegate.toml`` file."""

    def __init__(self, settings_cls: type[BaseSettings], toml_path: Path | None) -> None:
        super().__init__(settings_cls)
        self._tables: dict[str, Any] = {} if toml_path is None else read_config(toml_path)

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        return self._tables.get(field_name), field_name, field_name in self._tables

    def __call__(self) -> dict[str, Any]:
        return dict(self._tables)


class ProfileGateSettings(BaseSettings):
    """Everything a command needs to open the store and format output.

    ``data_dir`` is the directory that holds ``.profilegate/``;
    ``config_path`` is the TOML file that was read, if any.
    """

    model_config = {
        "frozen": True,
        "env_prefix": "PROFILEGATE_",
        "env_nested_delimiter": "__",
    }

    data_dir: Path = Field(default_factory=Path.cwd)
    config_path: Path | None = None

    json_output: bool = False
    quiet: bool = False
    verbose: bool = False
    log_json: bool = False
    sync: bool = False

    store: StoreConfig = Field(default_factory=StoreConfig)
    events: EventsConfig = Field(default_factory=EventsConfig)
    notifications: NotificationsConfig = Field(default_factory=NotificationsConfig)

    @property
    def sync_events(self) -> bool:
        """Inline hook dispatch, from ``--sync`` or ``[events] sync = true``."""
        return self.sync or self.events.sync

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        toml = TomlSettingsSource(settings_cls, _active_toml.get())
        return init_settings, env_settings, toml

    @classmethod
    def from_cli(
        cls,
        *,
        config_path: str | None = None,
        data_dir: Path | None = None,
        **cli_flags: Any,
    ) -> ProfileGateSettings:
        """Build settings for one CLI invocation.

        ``-c`` names the config file outright (a missing file means no
        config); otherwise it is searched for upward from *data_dir* or the
        cwd. The store goes in *data_dir* when given, else beside the config
        file, else in the nearest directory that already has ``.profilegate/``,
        else in the cwd.
        """
        if config_path:
            explicit = Path(config_path)
            toml_path = explicit if explicit.is_file() else None
        else:
            toml_path = find_config(data_dir)

        if data_dir is None:
            data_dir = toml_path.parent if toml_path else (find_data_dir() or Path.cwd())

        token = _active_toml.set(toml_path)
        try:
            return cls(data_dir=data_dir, config_path=toml_path, **cli_flags)
        finally:
            _active_toml.reset(token)
