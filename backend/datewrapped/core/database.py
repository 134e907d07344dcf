"""Database connection management"""
import asyncio
import logging
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import declarative_base
from sqlalchemy import text
import redis.asyncio as redis

from datewrapped.core.config import settings

logger = logging.getLogger(__name__)


def async_database_url(url: str) -> str:
    """Map a plain database URL onto its async driver"""
    if url.startswith("postgres://"):
        url = url.replace("postgres://", "postgresql://", 1)
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+asyncpg://", 1)
    if url.startswith("sqlite://"):
        return url.replace("sqlite://", "sqlite+aiosqlite://", 1)
    return url


def _engine_kwargs(url: str) -> dict:
    if url.startswith("sqlite"):
        return {}
    return {"pool_size": 10, "max_overflow": 20, "pool_pre_ping": True}


# SQLAlchemy Base
Base = declarative_base()

_DB_URL = async_database_url(settings.DATABASE_URL)

engine = create_async_engine(_DB_URL, echo=settings.DEBUG, **_engine_kwargs(_DB_URL))

AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False
)

redis_client = None


async def wait_for_database(max_retries: int = 30, delay: float = 2.0):
    """Block until the database answers, retrying with a fixed delay"""
    for attempt in range(max_retries):
        try:
            async with engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            logger.info(f"Database connected (attempt {attempt + 1})")
            return True
        except Exception as e:
            logger.warning(f"Waiting for database... ({attempt + 1}/{max_retries}): {e}")
            await asyncio.sleep(delay)
    raise RuntimeError("Database connection failed after max retries")


async def init_db():
    """Create tables and connect Redis"""
    global redis_client

    # models must be imported so their tables are registered on Base
    import datewrapped.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    if settings.REDIS_URL:
        try:
            client = redis.from_url(settings.REDIS_URL, decode_responses=True)
            await client.ping()
            redis_client = client
            logger.info("Redis connected")
        except Exception as e:
            logger.warning(f"Redis unavailable, using in-process fallbacks: {e}")
            redis_client = None


async def close_db():
    """Close all connections"""
    global redis_client

    if redis_client:
        await redis_client.aclose()
        redis_client = None

    await engine.dispose()


async def get_db() -> AsyncSession:
    """Request scoped session"""
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()


def get_redis_client():
    return redis_client
