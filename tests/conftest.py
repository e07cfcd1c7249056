"""Shared pytest fixtures and test helpers for profilegate tests."""

from __future__ import annotations

from collections.abc import Generator
from pathlib import Path
from typing import Any

import pytest
from click.testing import CliRunner
from sqlalchemy.engine import Engine

from profilegate.config.settings import ProfileGateSettings
from profilegate.infrastructure.database.engine import init_database
from profilegate.infrastructure.store import Store


@pytest.fixture(autouse=True)
def _no_config_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep a developer's PROFILEGATE_* environment out of the tests."""
    monkeypatch.delenv("PROFILEGATE_CONFIG", raising=False)


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def db_engine(tmp_path: Path) -> Generator[Engine]:
    """Initialized SQLite engine with all tables created."""
    engine = init_database(tmp_path)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def settings(tmp_path: Path) -> ProfileGateSettings:
    return ProfileGateSettings.from_cli(data_dir=tmp_path)


@pytest.fixture
def store(settings: ProfileGateSettings) -> Generator[Store]:
    """Store on a temp directory with a synchronous event bus."""
    s = Store(settings)
    s.init_event_bus(sync=True)
    try:
        yield s
    finally:
        s.close()


@pytest.fixture
def bare_store(settings: ProfileGateSettings) -> Generator[Store]:
    """Store without an event bus (no plugins, no WAL rows)."""
    s = Store(settings)
    try:
        yield s
    finally:
        s.close()


@pytest.fixture
def _isolated_store(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Change CWD to a temp directory so the CLI creates an isolated store.

    Use via ``@pytest.mark.usefixtures("_isolated_store")`` on command test
    classes.
    """
    monkeypatch.chdir(tmp_path)


# ---------------------------------------------------------------------------
# Shared test helpers
# ---------------------------------------------------------------------------


def send(store: Store, sender: str, receiver: str) -> str:
    """Send a friend request, asserting success. Returns the request ID."""
    from profilegate.services.friends import FriendRequestService

    result = FriendRequestService(store).send_request(sender, receiver)
    assert result.ok, result.error
    return str(result.data["id"])


def befriend(store: Store, a: str, b: str) -> str:
    """Make *a* and *b* friends (a sends, b accepts). Returns the request ID."""
    from profilegate.services.friends import FriendRequestService

    request_id = send(store, a, b)
    result = FriendRequestService(store).accept(request_id, b)
    assert result.ok, result.error
    return request_id


def set_levels(store: Store, owner: str, **levels: str) -> dict[str, Any]:
    """Bulk-set audience levels, asserting success."""
    from profilegate.services.audience import AudienceService

    result = AudienceService(store).bulk_set(owner, levels)
    assert result.ok, result.error
    return result.data


SAMPLE_PROFILE: dict[str, Any] = {
    "id": "alice",
    "username": "alice",
    "display_name": "Alice Liddell",
    "avatar_url": "https://example.test/a.png",
    "cover_photo_url": "https://example.test/c.png",
    "current_city": "Oxford",
    "email": "alice@example.test",
    "phone_number": "+44 1865 000000",
    "birthday": "1852-05-04",
    "work": [
        {"id": "job-1", "company": "Looking Glass Ltd", "current": True},
        {"id": "job-2", "company": "Wonderland Co", "start_year": 1865, "end_year": 1871},
    ],
    "nickname_color": "blue",
}
