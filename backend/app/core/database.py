"""
Database engine and session handling for the cargo service.

Every unit of work (a request or a script run) gets its own AsyncSession; the
label batch commits per shipped order itself, the final commit here only
flushes what is left.
"""
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict

from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import declarative_base

from app.core.config import settings


def _pool_options() -> Dict[str, int]:
    # Local and test databases get a small pool
    if settings.ENVIRONMENT != "production":
        return {"pool_size": 2, "max_overflow": 5}
    return {
        "pool_size": settings.DB_POOL_SIZE,
        "max_overflow": settings.DB_MAX_OVERFLOW,
        "pool_recycle": settings.DB_POOL_RECYCLE,
    }


engine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
    pool_pre_ping=True,
    **_pool_options(),
)

AsyncSessionLocal = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

Base = declarative_base()


@asynccontextmanager
async def get_db_session() -> AsyncIterator[AsyncSession]:
    """
    Session scope outside the request cycle (health check, migrations).

        async with get_db_session() as db:
            await CargoLabelService(db).track_shipment(org, order_id)
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def get_db() -> AsyncIterator[AsyncSession]:
    """FastAPI dependency: one session per request."""
    async with get_db_session() as session:
        yield session
