"""
Async engine, session factory and the request-scoped session dependency.

PostgreSQL (asyncpg) is the production store; SQLite (aiosqlite) is supported
for single-host installs and tests. Both dialects provide the ON CONFLICT
upsert forms the services depend on.
"""

from typing import AsyncGenerator

from sqlalchemy import event
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from ticket_manager.core.config import get_settings
from ticket_manager.core.exceptions import StorageError
from ticket_manager.core.logging import get_logger
from ticket_manager.db.base import Base

logger = get_logger(__name__)
settings = get_settings()


def build_engine(url: str, echo: bool = False) -> AsyncEngine:
    if url.startswith("sqlite"):
        engine = create_async_engine(url, echo=echo)
        # SQLite ships with foreign keys disabled per connection
        event.listen(engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
        return engine

    return create_async_engine(
        url,
        echo=echo,
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        pool_timeout=settings.DB_POOL_TIMEOUT,
        pool_recycle=settings.DB_POOL_RECYCLE,
        pool_pre_ping=True,
    )


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


engine = build_engine(settings.DATABASE_URL, echo=settings.DB_ECHO)

AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    One session and one transaction per HTTP request.
    Commits when the endpoint returns, rolls back on any exception.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except SQLAlchemyError as e:
            await session.rollback()
            logger.error("session_commit_failed", error=str(e))
            raise StorageError(operation="commit") from e
        except Exception:
            await session.rollback()
            raise


async def init_db(bind: AsyncEngine = engine) -> None:
    """Create missing tables. Production schemas are managed by Alembic."""
    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("database_initialized", url=bind.url.render_as_string(hide_password=True))


async def close_db() -> None:
    await engine.dispose()
    logger.info("database_closed")


def upsert_insert(session: AsyncSession, model):
    """
    Dialect-specific INSERT construct for the session's bind, exposing
    on_conflict_do_nothing / on_conflict_do_update and `.excluded`.
    """
    dialect = session.get_bind().dialect.name
    if dialect == "postgresql":
        return postgresql.insert(model)
    if dialect == "sqlite":
        return sqlite.insert(model)
    raise StorageError(f"Unsupported database dialect: {dialect}", operation="upsert")
