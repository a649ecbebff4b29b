"""
RecipeBox Backend — Database Handle and Session Management
============================================================

What:  Async SQLAlchemy engine wrapper, declarative base, and FastAPI session dependency.
How:   A `Database` object owns the engine and session factory. It is created
       explicitly (in the lifespan or by the caller of create_app), stored on
       `app.state.database`, and disposed at shutdown.
Who:   Route handlers receive sessions via Depends(get_db_session).
When:  Engine is created at startup; sessions are created per-request.

Connection Pooling:
    pool_size / max_overflow / pool_pre_ping come from Settings.
    SQLite URLs skip pool sizing because aiosqlite uses a pool class
    that does not accept those arguments.
"""

from typing import AsyncGenerator, Optional

from fastapi import Request
from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from recipebox.config import Settings


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    Shares a single metadata object used by create_all() and by Alembic.
    """
    pass


class Database:
    """
    Explicit datastore handle with an open/close lifecycle.

    Lifecycle:
        1. Database(url) creates the engine and session factory (no I/O yet)
        2. connect() verifies connectivity and optionally creates tables
        3. session_factory() opens per-request AsyncSession objects
        4. dispose() closes every pooled connection
    """

    def __init__(
        self,
        url: str,
        *,
        pool_size: int = 20,
        max_overflow: int = 10,
        pool_pre_ping: bool = True,
        echo: bool = False,
    ):
        self.url = url
        engine_kwargs = {"echo": echo}
        if not url.startswith("sqlite"):
            engine_kwargs.update(
                pool_size=pool_size,
                max_overflow=max_overflow,
                pool_pre_ping=pool_pre_ping,
                pool_recycle=3600,
            )
        self.engine: AsyncEngine = create_async_engine(url, **engine_kwargs)

        # expire_on_commit=False: response models are built from ORM objects
        # after the dependency has committed
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        """Build a handle from application settings."""
        return cls(
            settings.database_url,
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_pre_ping=settings.db_pool_pre_ping,
            echo=settings.log_level == "DEBUG",
        )

    async def connect(self, create_tables: bool = False) -> None:
        """
        Open the handle: run a trivial query and optionally create all tables.

        Raises whatever the driver raises when the datastore is unreachable.
        """
        # Import models so they register with Base.metadata
        from recipebox.models import recipe, user  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.execute(text("SELECT 1"))
            if create_tables:
                await conn.run_sync(Base.metadata.create_all)

    async def ping(self) -> None:
        """Run SELECT 1; raises if the datastore is unreachable."""
        async with self.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))

    async def dispose(self) -> None:
        """Close all connections in the pool."""
        await self.engine.dispose()


# ── Session Dependency ────────────────────────────────────────────────────
async def get_db_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    How it works:
        1. Looks up the Database handle on app.state
        2. Yields a new session to the route handler
        3. On success: commits the transaction
        4. On error: rolls back and re-raises for the global error handler
        5. Always: closes the session (returns connection to pool)
    """
    database: Optional[Database] = getattr(request.app.state, "database", None)
    if database is None:
        raise RuntimeError("Database handle is not initialised on app.state")

    async with database.session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()
