"""Pytest fixtures for Aces tests."""

import pytest
import pytest_asyncio
from random import Random

from httpx import AsyncClient, ASGITransport

from api.session import InMemorySessionStore, set_session_store
from core.game import AcesGame, GameSnapshot
from db.engine import Session, configure_engine, dispose_engine, init_models


@pytest.fixture
def rng():
    """Seeded random number generator for reproducible tests."""
    return Random(42)


@pytest.fixture
def game(rng):
    """A freshly started game."""
    return AcesGame.start(rng=rng)


@pytest.fixture
def make_game():
    """Factory for games over a hand-picked deck."""

    def _make(deck, hand=(), rng=None, **flags) -> AcesGame:
        snapshot = GameSnapshot(deck=list(deck), hand=list(hand), **flags)
        return AcesGame.from_persisted(snapshot, rng=rng or Random(0))

    return _make


@pytest_asyncio.fixture
async def db_session():
    """A session bound to a fresh in-memory database."""
    configure_engine("sqlite+aiosqlite://")
    await init_models()
    async with Session() as session:
        yield session
    await dispose_engine()


@pytest_asyncio.fixture
async def session_store():
    """A fresh in-memory session store installed as the global store."""
    store = InMemorySessionStore()
    set_session_store(store)
    yield store
    set_session_store(None)


@pytest_asyncio.fixture
async def client(session_store):
    """Test client over a fresh database and session store."""
    from api.main import app

    configure_engine("sqlite+aiosqlite://")
    await init_models()
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    await dispose_engine()
