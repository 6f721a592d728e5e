import json
import logging

from sqlalchemy import event, select
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from app.core.config import settings

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    pass


def configure_sqlite(engine: AsyncEngine) -> None:
    """
    Take the SQLite write lock at BEGIN instead of at the first write.

    pysqlite's deferred transactions let two requests read the same state and
    then race to write; BEGIN IMMEDIATE serializes writers so the
    check-then-insert of one request cannot interleave with another's.
    """

    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        # Disable pysqlite's own BEGIN handling, we emit it below
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


engine = create_async_engine(settings.database_url)
if engine.dialect.name == "sqlite":
    configure_sqlite(engine)

AsyncSessionLocal = async_sessionmaker(engine, expire_on_commit=False)


async def get_db():
    async with AsyncSessionLocal() as session:
        yield session


DEFAULT_ROOMS = [
    ("12", "Pokoj 12", 2),
    ("13", "Pokoj 13", 3),
    ("14", "Pokoj 14", 4),
    ("22", "Pokoj 22", 2),
    ("23", "Pokoj 23", 3),
    ("24", "Pokoj 24", 4),
    ("42", "Pokoj 42", 2),
    ("43", "Pokoj 43", 2),
    ("44", "Pokoj 44", 4),
]

DEFAULT_PRICES = {
    "internal": {
        "small": {"empty": 250, "adult": 50, "child": 25},
        "large": {"empty": 350, "adult": 70, "child": 35},
    },
    "external": {
        "small": {"empty": 400, "adult": 100, "child": 50},
        "large": {"empty": 500, "adult": 120, "child": 60},
    },
}

DEFAULT_BULK_PRICES = {
    "base_price": 2000,
    "internal_adult": 100,
    "internal_child": 0,
    "external_adult": 250,
    "external_child": 50,
}


async def seed_defaults(session) -> None:
    """Rooms and tariffs for a fresh database (idempotent)."""
    from app.models import GlobalSetting, Room
    from app.schemas.settings import RoomSize

    if (await session.execute(select(Room).limit(1))).scalar_one_or_none() is None:
        for room_id, name, beds in DEFAULT_ROOMS:
            size = RoomSize.SMALL if beds <= 2 else RoomSize.LARGE
            session.add(Room(id=room_id, name=name, beds=beds, size=size))
        logger.info(f"Seeded {len(DEFAULT_ROOMS)} rooms")

    defaults = [
        ("prices", DEFAULT_PRICES, "Per-room tariffs by guest tier and room size"),
        ("bulk_prices", DEFAULT_BULK_PRICES, "Whole-property tariff"),
    ]
    for key, value, description in defaults:
        if await session.get(GlobalSetting, key) is None:
            session.add(
                GlobalSetting(key=key, value=json.dumps(value), description=description)
            )

    await session.commit()


async def init_db() -> None:
    # Models must be imported so their tables are registered on Base.metadata
    import app.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with AsyncSessionLocal() as session:
        await seed_defaults(session)

    logger.info("Database initialized")
