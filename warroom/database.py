"""Database engine, session management, and table creation."""

from sqlalchemy import event, text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from .config import WarRoomConfig
from .models.base import Base
from .utils.logging import get_logger

logger = get_logger("database")

_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def _enable_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def build_engine(database_url: str, echo: bool = False, **kwargs) -> AsyncEngine:
    """Create an async engine; SQLite connections get foreign key enforcement."""
    engine = create_async_engine(database_url, echo=echo, future=True, **kwargs)
    if engine.dialect.name == "sqlite":
        event.listen(engine.sync_engine, "connect", _enable_foreign_keys)
    return engine


def get_engine(config: WarRoomConfig) -> AsyncEngine:
    """Get or create the async database engine."""
    global _engine
    if _engine is None:
        _engine = build_engine(
            config.database_url,
            echo=config.debug,
            pool_pre_ping=True,
            connect_args={"timeout": 30},
        )
    return _engine


def get_session_factory(config: WarRoomConfig) -> async_sessionmaker[AsyncSession]:
    """Get or create the async session factory."""
    global _session_factory
    if _session_factory is None:
        _session_factory = async_sessionmaker(get_engine(config), expire_on_commit=False)
    return _session_factory


async def _enable_wal_mode(config: WarRoomConfig) -> None:
    """Enable WAL journal mode and performance PRAGMAs for SQLite."""
    if not config.db_wal_mode or not config.database_url.startswith("sqlite"):
        return
    if ":memory:" in config.database_url:
        return
    engine = get_engine(config)
    async with engine.begin() as conn:
        await conn.execute(text("PRAGMA journal_mode=WAL"))
        await conn.execute(text(f"PRAGMA busy_timeout={config.db_busy_timeout}"))
        await conn.execute(text(f"PRAGMA synchronous={config.db_synchronous}"))
    logger.info(
        "sqlite_pragmas_applied",
        busy_timeout=config.db_busy_timeout,
        synchronous=config.db_synchronous,
    )


async def create_tables(config: WarRoomConfig) -> None:
    """Create all database tables and apply performance PRAGMAs."""
    engine = get_engine(config)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    await _enable_wal_mode(config)


async def close_engine() -> None:
    """Close the database engine."""
    global _engine, _session_factory
    if _engine is not None:
        await _engine.dispose()
        _engine = None
        _session_factory = None
