# instabids/core/database.py
import logging

from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession
from sqlalchemy.orm import sessionmaker, declarative_base
from instabids.core.config import settings

logger = logging.getLogger(__name__)

# One engine per process; projects, bids, messages and aliases share the pool
engine = create_async_engine(
    settings.DATABASE_URL,
    pool_pre_ping=True, # hosted Postgres drops idle connections
    echo=settings.DB_ECHO,
)

AsyncSessionLocal = sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
)

Base = declarative_base()


async def get_db() -> AsyncSession:
    """FastAPI Dependency: one session per request"""
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()


async def dispose_engine() -> None:
    """Close every pooled connection; called when the app shuts down."""
    logger.info("Disposing database engine")
    await engine.dispose()
