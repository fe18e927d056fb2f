"""Database initialization utilities."""

import logging

from sqlalchemy import inspect, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

import orderflow.models  # noqa: F401  (registers every table on Base.metadata)
from orderflow.core.database import Base, engine

logger = logging.getLogger(__name__)


async def init_db() -> None:
    """Create all tables from ORM metadata.

    Development convenience; deployed databases are migrated with
    ``alembic upgrade head``.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def drop_db() -> None:
    """Drop all tables. Development and tests only."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


async def check_db_connection() -> bool:
    """Verify database connectivity."""
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return True
    except (SQLAlchemyError, OSError) as exc:
        logger.warning("Database connectivity check failed: %s", exc)
        return False


async def table_has_data(session: AsyncSession, table_name: str) -> bool:
    """Check whether a table contains any rows.

    The name is interpolated into SQL, so it must be one of the tables that
    actually exist.
    """
    valid_tables = await session.run_sync(
        lambda sync_session: set(inspect(sync_session.bind).get_table_names())
    )
    if table_name not in valid_tables:
        raise ValueError(f"Unknown table: {table_name!r}")

    result = await session.execute(text(f"SELECT EXISTS (SELECT 1 FROM {table_name} LIMIT 1)"))
    return result.scalar() or False
