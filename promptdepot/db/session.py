"""
db/session.py
-------------
Async SQLAlchemy engine and session factory, wrapped in a Database handle.

Design decisions:
  - One Database is built by create_application() and stored on app.state;
    nothing in the package holds a module-level engine.
  - PostgreSQL (asyncpg): pool_size=10, max_overflow=20, pool_pre_ping=True
    to survive DB restarts and idle timeouts.
  - SQLite (aiosqlite, local dev and tests): foreign keys are switched on
    for every connection so ON DELETE CASCADE and FK violations behave as
    on PostgreSQL, and BEGIN is emitted explicitly so SAVEPOINTs work.
    In-memory URLs share a single connection (StaticPool).
  - expire_on_commit=False: avoids lazy-load errors after commit in async
    context (attributes are already loaded, no implicit SELECT needed).
"""

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from promptdepot.db.base import Base


def _configure_sqlite(engine: AsyncEngine) -> None:
    @event.listens_for(engine.sync_engine, "connect")
    def on_connect(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()
        # Stop the driver from managing transactions itself; see on_begin.
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def on_begin(conn):
        conn.exec_driver_sql("BEGIN")


class Database:
    """Owns the engine and hands out request-scoped sessions."""

    def __init__(self, url: str, echo: bool = False) -> None:
        if url.startswith("sqlite"):
            engine_kwargs = {"connect_args": {"check_same_thread": False}}
            if ":memory:" in url or url.endswith("://"):
                engine_kwargs["poolclass"] = StaticPool
        else:
            engine_kwargs = {
                "pool_size": 10,
                "max_overflow": 20,
                "pool_pre_ping": True,
                "pool_recycle": 3600,  # Recycle connections every hour
            }

        self.engine = create_async_engine(url, echo=echo, **engine_kwargs)
        if self.engine.dialect.name == "sqlite":
            _configure_sqlite(self.engine)

        self.session_factory = async_sessionmaker(
            bind=self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

    async def create_all(self) -> None:
        import promptdepot.models  # noqa: F401  (populates Base.metadata)

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def dispose(self) -> None:
        await self.engine.dispose()
