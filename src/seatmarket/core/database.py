"""
Database configuration and async session management
"""
from typing import AsyncGenerator
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import declarative_base

from seatmarket.core.config import settings

engine_options = {
    "echo": settings.DEBUG,  # Log SQL queries in debug mode
    "future": True,
    "pool_pre_ping": True,  # Verify connections before using
}
if not settings.DATABASE_URL.startswith("sqlite"):
    engine_options.update(
        pool_size=20,  # Default connection pool size
        max_overflow=40,  # Max connections beyond pool_size
    )

# Using asyncpg driver for PostgreSQL
engine = create_async_engine(settings.DATABASE_URL, **engine_options)

# Create async session factory
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,  # Don't expire objects after commit
    autocommit=False,
    autoflush=False,
)

# Create declarative base for models
Base = declarative_base()


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency for FastAPI to provide database sessions.

    Usage:
        @router.get("/events")
        async def list_events(db: AsyncSession = Depends(get_db)):
            result = await db.execute(select(Event))
            return result.scalars().all()
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()


async def init_db():
    """
    Initialize database tables.
    Only for development - use migrations in production.
    """
    async with engine.begin() as conn:
        # Import all models to register them with Base
        import seatmarket.models  # noqa: F401

        await conn.run_sync(Base.metadata.create_all)
