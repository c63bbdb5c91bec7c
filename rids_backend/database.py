"""
database.py — Async engine, session factory and the get_db() dependency.

Only this module creates the production engine. Tests build an in-memory
SQLite engine of their own and override get_db.

    from rids_backend.database import get_db
    async def handler(db: AsyncSession = Depends(get_db)): ...
"""
from collections.abc import AsyncGenerator

from sqlalchemy import JSON
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from rids_backend.config import settings

# JSONB on PostgreSQL, plain JSON anywhere else (SQLite in tests)
JSONType = JSON().with_variant(JSONB(), "postgresql")


class Base(DeclarativeBase):
    """Every RIDS table (rids_backend/models/) is declared on this base."""


engine = create_async_engine(
    settings.database_url,
    echo=settings.db_echo,
    pool_size=settings.db_pool_size,
    max_overflow=settings.db_max_overflow,
    pool_pre_ping=True,
)

SessionFactory = async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    One session per request. store.py only flushes; the transaction is
    committed here when the handler returns and rolled back if it raised.
    """
    async with SessionFactory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
