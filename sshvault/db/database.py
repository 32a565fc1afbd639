"""Async SQLAlchemy engine, session factory and unit of work."""

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator

from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from sshvault.db.repository import Repository
from sshvault.exceptions import StorageError

logger = logging.getLogger(__name__)


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_engine(database_url: str, echo: bool = False) -> AsyncEngine:
    """Build the async engine. SQLite files get their parent directory created."""
    url = make_url(database_url)
    if url.get_backend_name() == "sqlite" and url.database and url.database != ":memory:":
        Path(url.database).parent.mkdir(parents=True, exist_ok=True)

    engine = create_async_engine(database_url, echo=echo)
    if url.get_backend_name() == "sqlite":
        event.listen(engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
    return engine


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def init_db(engine: AsyncEngine) -> None:
    """Create all tables. Called at startup."""
    from sshvault.db.models import Base
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


@asynccontextmanager
async def unit_of_work(session_factory: async_sessionmaker[AsyncSession]) -> AsyncIterator[Repository]:
    """One transaction: commits on clean exit, rolls back on any exception.

    Database failures surface as :class:`StorageError`; every other exception
    (validation, invalid operation) propagates unchanged after the rollback.

    Usage::

        async with unit_of_work(factory) as repo:
            await repo.set_position(connection_id, default_id, 1)
            await repo.delete_folder(old_id)
    """
    async with session_factory() as session:
        try:
            async with session.begin():
                yield Repository(session)
        except SQLAlchemyError as exc:
            logger.error("Transaction rolled back: %s", exc.__class__.__name__)
            raise StorageError(f"Storage failure: {exc.__class__.__name__}") from exc
