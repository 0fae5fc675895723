"""Infrastructure tests — session manager error mapping, logging format, settings.

Invariants:
    - Domain errors leave the session manager unchanged
    - SQLAlchemy errors leave it as DatabaseError (HTTP 503)
"""

import json
import logging

import pytest
from sqlalchemy import text

from reelvote.config import Settings
from reelvote.core.errors import DatabaseError, StateError
from reelvote.infrastructure.database import DatabaseSessionManager
from reelvote.infrastructure.observability import JSONFormatter


@pytest.fixture
async def manager():
    mgr = DatabaseSessionManager("sqlite+aiosqlite:///:memory:")
    yield mgr
    await mgr.dispose()


async def test_health_check_ok(manager):
    assert await manager.health_check() is True


async def test_domain_error_passes_through(manager):
    with pytest.raises(StateError):
        async with manager.session():
            raise StateError("nope", current_state="live")


async def test_sqlalchemy_error_becomes_database_error(manager):
    with pytest.raises(DatabaseError) as exc:
        async with manager.session() as db:
            await db.execute(text("SELECT * FROM no_such_table"))
    assert exc.value.http_status == 503
    assert exc.value.to_response()["error"]["category"] == "database"


def test_json_formatter_includes_extras():
    record = logging.LogRecord(
        "reelvote.test", logging.INFO, __file__, 1, "Ballot updated", None, None,
    )
    record.event_id = "e-1"
    record.affected_count = 2
    payload = json.loads(JSONFormatter().format(record))
    assert payload["message"] == "Ballot updated"
    assert payload["event_id"] == "e-1"
    assert payload["affected_count"] == 2
    assert "participant_id" not in payload


def test_settings_rewrites_postgres_url():
    settings = Settings(database_url="postgresql://u:p@host/db")
    assert settings.database_url == "postgresql+asyncpg://u:p@host/db"


def test_settings_bounds_default_rank():
    with pytest.raises(ValueError):
        Settings(default_max_rank_n=11)
