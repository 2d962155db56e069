"""Engine, session factory and schema bootstrap for the gateway's store."""

from sqlalchemy import event, text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import StaticPool

from .config import settings


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def build_engine(database_url: str, echo: bool = False) -> AsyncEngine:
    """
    Create the async engine for ``database_url``.

    SQLite URLs share one connection across the process so an in-memory
    database survives between gateway calls, and enforce foreign keys like
    the server database does. Server URLs get a pre-pinged pool.
    """
    if database_url.startswith("sqlite"):
        sqlite_engine = create_async_engine(
            database_url,
            echo=echo,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )
        event.listen(sqlite_engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
        return sqlite_engine
    return create_async_engine(database_url, echo=echo, pool_pre_ping=True)


engine = build_engine(settings.database_url, echo=settings.debug)

# Each gateway call opens its own session; rows stay readable after commit
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)

Base = declarative_base()


async def init_db() -> None:
    """Create any missing tables. Migrations remain the source of truth for deployed schemas."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def ping_database() -> bool:
    async with engine.connect() as conn:
        result = await conn.execute(text("SELECT 1"))
        return result.scalar() == 1


async def close_db() -> None:
    await engine.dispose()
