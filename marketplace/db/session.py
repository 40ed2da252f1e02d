"""
Database session and engine configuration.

This file sets up the async database connection using SQLAlchemy + asyncpg.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from marketplace.core.config import settings


# Create the async database engine
engine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,  # When DEBUG=True, SQL statements are logged
    future=True,
)

# Sessions are used to interact with the database (read, write, update, delete)
async_session_maker = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,  # Keeps data accessible after commit
)

async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Get a database session.

    One request is one unit of work: the session is committed when the
    endpoint returns and rolled back if it raises.

    Usage in a FastAPI endpoint:
        @router.get("/items")
        async def get_items(db: AsyncSession = Depends(get_db)):
            ...
    """
    async with async_session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


@asynccontextmanager
async def get_async_session_context() -> AsyncGenerator[AsyncSession, None]:
    """Context manager helper for async DB sessions (used by workers and scripts)."""
    async with async_session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()
