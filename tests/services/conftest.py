"""Service test fixtures — async DB, seeded catalog, and FastAPI test client.

Invariants:
    - Every test gets a fresh in-memory SQLite database (partial unique index included)
    - get_db dependency overridden to use test DB sessions
    - db_manager patched so the readiness probe hits the test engine
    - file_session_factory gives independent connections for interleaved transactions

Design Decisions:
    - SQLite in-memory: fast, no external dependency; row locks compile to nothing there,
      the unique indexes still enforce the invariants
"""

import pytest
from sqlalchemy.ext.asyncio import (
    AsyncSession, create_async_engine, async_sessionmaker,
)
from httpx import ASGITransport, AsyncClient

from reelvote.db.base import Base
from reelvote.infrastructure.database import get_db, DatabaseSessionManager
import reelvote.infrastructure.database as db_module
import reelvote.models  # noqa: F401
from reelvote.main import app
from reelvote.services.catalog import Catalog
from reelvote.services.event_lifecycle import EventLifecycle


@pytest.fixture
async def test_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:", echo=False,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def test_session_factory(test_engine):
    return async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False,
    )


@pytest.fixture
async def test_db(test_session_factory):
    async with test_session_factory() as session:
        yield session


@pytest.fixture
async def client(test_engine, test_session_factory):
    """FastAPI test client with DB dependency overridden."""
    async def override_get_db():
        async with test_session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db

    original_manager = db_module.db_manager
    fake_manager = DatabaseSessionManager.__new__(DatabaseSessionManager)
    fake_manager.engine = test_engine
    fake_manager._session_factory = test_session_factory
    db_module.db_manager = fake_manager

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()
    db_module.db_manager = original_manager


@pytest.fixture
async def movies(test_db):
    """Four catalog movies, in registration order."""
    catalog = Catalog(test_db)
    return [
        await catalog.register_movie(603, "The Matrix", "/matrix.jpg"),
        await catalog.register_movie(27205, "Inception"),
        await catalog.register_movie(157336, "Interstellar"),
        await catalog.register_movie(680, "Pulp Fiction"),
    ]


@pytest.fixture
async def members(test_db):
    """Registered participants alice, bob and carol."""
    catalog = Catalog(test_db)
    return [
        await catalog.register_participant("alice", "Alice"),
        await catalog.register_participant("bob", "Bob"),
        await catalog.register_participant("carol", "Carol"),
    ]


@pytest.fixture
def make_event(test_db, movies):
    """Factory: event with the first `n_movies` movies, driven to `state`."""
    async def _make(
        kind: str = "survey",
        state: str = "live",
        n_movies: int = 3,
        max_rank_n: int = 3,
        title: str | None = None,
    ):
        lifecycle = EventLifecycle(test_db)
        event = await lifecycle.create_event(
            kind, title or f"Test {kind}", max_rank_n=max_rank_n,
        )
        for movie in movies[:n_movies]:
            await lifecycle.add_entry(event.id, movie.id)
        if state != "draft":
            await lifecycle.change_state(event.id, "live")
        if state in ("frozen", "closed"):
            await lifecycle.change_state(event.id, state)
        return event

    return _make


@pytest.fixture
async def file_session_factory(tmp_path):
    """Sessions over a file-backed SQLite database: each session gets its own connection."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'reelvote.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    await engine.dispose()
