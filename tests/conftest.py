"""
Pytest configuration for chata-booking tests
"""
import sys
from datetime import datetime, timedelta
from pathlib import Path

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

# Ensure app is importable
sys.path.insert(0, str(Path(__file__).parent.parent))

from app.database import Base, configure_sqlite, seed_defaults  # noqa: E402
from app.models import Room  # noqa: E402
from app.schemas.settings import RoomSize  # noqa: E402


class FakeClock:
    """Naive UTC clock that only moves when told to"""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock():
    return FakeClock(datetime(2025, 5, 1, 12, 0))


@pytest_asyncio.fixture
async def engine():
    """Fresh in-memory database per test, one shared connection"""
    engine = create_async_engine("sqlite+aiosqlite://", poolclass=StaticPool)
    configure_sqlite(engine)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine):
    factory = async_sessionmaker(engine, expire_on_commit=False)
    async with factory() as session:
        await seed_defaults(session)
        # Room 7 is the room used in the hold examples
        session.add(Room(id="7", name="Pokoj 7", beds=2, size=RoomSize.SMALL))
        await session.commit()
    return factory


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def contact():
    return {
        "name": "Jana Nováková",
        "email": "jana@example.cz",
        "phone": "+420 601 234 567",
    }
