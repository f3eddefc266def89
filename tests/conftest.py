import os
from datetime import date, timedelta

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

import pulse.models  # noqa: F401
from pulse.config import Settings, get_settings
from pulse.database import Base, get_db
from pulse.main import app
from pulse.schemas import DailyEntry, ScreenTime
from pulse.store import EntryStore

BASE_DATE = date(2026, 1, 1)


@pytest.fixture
def make_entry():
    """Factory for entries; ``day`` is an offset from 2026-01-01."""
    def _make(day=0, mood=3, sleep=7, exercise=0, screen=ScreenTime.LOW, **kwargs):
        return DailyEntry(
            date=BASE_DATE + timedelta(days=day),
            mood=mood,
            sleep_hours=sleep,
            exercise_minutes=exercise,
            screen_time=screen,
            **kwargs,
        )
    return _make


@pytest.fixture
def settings(monkeypatch):
    """The shared settings object, restored after each test."""
    current = get_settings()
    for name in ("require_sign_in", "seed_demo_data", "obfuscate_storage"):
        monkeypatch.setattr(current, name, getattr(current, name))
    return current


@pytest_asyncio.fixture
async def session_maker(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(session_maker):
    async with session_maker() as session:
        yield session


@pytest.fixture
def store(db_session):
    return EntryStore(db_session, Settings(obfuscate_storage=True))


@pytest_asyncio.fixture
async def client(session_maker):
    async def override_get_db():
        async with session_maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="https://test") as ac:
        yield ac
    app.dependency_overrides.clear()
