"""
Database session management with SQLAlchemy async
"""

from typing import Optional
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool
from core.config import settings


def create_engine(database_url: Optional[str] = None, pool_size: Optional[int] = None) -> AsyncEngine:
    """
    Create an async engine for the configured database.

    Without ``pool_size`` every session opens its own connection, which
    suits batch jobs. Record-at-a-time writers such as the database sink
    pass their worker count so concurrent writes reuse pooled connections.
    """
    url = database_url or settings.DATABASE_URL
    if pool_size is None:
        return create_async_engine(url, echo=False, poolclass=NullPool, future=True)
    return create_async_engine(
        url,
        echo=False,
        pool_size=max(pool_size, 1),
        max_overflow=pool_size,
        pool_pre_ping=True,
        future=True
    )

def create_session_factory(engine: AsyncEngine) -> async_sessionmaker:
    """Build a session factory bound to ``engine``"""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False
    )
