"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, profilegate.toml only contains
overrides. An empty file (or none at all) is a valid configuration.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class StoreConfig(BaseModel):
    """[store] section."""

    model_config = {"frozen": True}

    db_filename: str = "profilegate.db"
    busy_timeout_seconds: float = Field(default=30.0, gt=0)


class EventsConfig(BaseModel):
    """[events] section."""

    model_config = {"frozen": True}

    sync: bool = False
    max_retries: int = Field(default=3, ge=0)
    max_workers: int = Field(default=2, ge=1)


class NotificationsConfig(BaseModel):
    """[notifications] section."""

    model_config = {"frozen": True}

    enabled: bool = True


class ProfileGateConfig(BaseModel):
    """Root configuration composing all sections."""

    model_config = {"frozen": True}

    store: StoreConfig = Field(default_factory=StoreConfig)
    events: EventsConfig = Field(default_factory=EventsConfig)
    notifications: NotificationsConfig = Field(default_factory=NotificationsConfig)
