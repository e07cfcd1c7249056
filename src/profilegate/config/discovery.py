"""Locating ``profilegate.toml`` and the ``.profilegate/`` state directory.

Both are found by walking up from the working directory, the way git
finds ``.git/``, so commands run from a subdirectory share one store.
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any

import click
from pydantic import ValidationError

from profilegate.config.models import ProfileGateConfig

CONFIG_FILENAME = "profilegate.toml"
CONFIG_ENV_VAR = "PROFILEGATE_CONFIG"
STATE_DIRNAME = ".profilegate"


def _ancestors(start: Path | None) -> list[Path]:
    current = (start or Path.cwd()).resolve()
    return [current, *current.parents]


def find_config(start: Path | None = None) -> Path | None:
    """Nearest ``profilegate.toml`` at or above *start* (default: cwd).

    ``PROFILEGATE_CONFIG`` replaces the search; if it names a missing
    file there is no config at all.
    """
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        path = Path(env_path)
        return path if path.is_file() else None

    for directory in _ancestors(start):
        candidate = directory / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
    return None


def find_data_dir(start: Path | None = None) -> Path | None:
    """Nearest directory at or above *start* that already holds a store.

    A directory qualifies if it contains ``profilegate.toml`` or a
    ``.profilegate/`` state directory.
    """
    for directory in _ancestors(start):
        if (directory / CONFIG_FILENAME).is_file() or (directory / STATE_DIRNAME).is_dir():
            return directory
    return None


def read_config(path: Path) -> dict[str, Any]:
    """Parse *path* and check it against the section models.

    Returns the raw (sparse) mapping so unset keys keep their defaults.

    Raises:
        click.ClickException: If the file is not TOML or a value is invalid.
    """
    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as exc:
        msg = f"Invalid TOML in {path}: {exc}"
        raise click.ClickException(msg) from exc

    try:
        ProfileGateConfig.model_validate(data)
    except ValidationError as exc:
        msg = f"Invalid configuration in {path}: {exc}"
        raise click.ClickException(msg) from exc
    return data
