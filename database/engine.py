import logging

from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy import BigInteger, Integer
from sqlalchemy.orm import DeclarativeBase

from core.config import settings

logger = logging.getLogger(__name__)


def _engine_options(url: str) -> dict:
    # SQLite (tests, local tooling) does not accept pool sizing arguments
    if url.startswith("sqlite"):
        return {}
    return {"pool_size": settings.database_pool_size, "pool_pre_ping": True}


db_engine = create_async_engine(
    settings.database_url,
    echo=settings.database_echo,
    **_engine_options(settings.database_url),
)


# Create async session maker to be used throughout the application
AsyncSessionLocal = async_sessionmaker(
    db_engine, class_=AsyncSession, expire_on_commit=False
)


# Base class for declarative models
class Base(DeclarativeBase):
    pass


# Dependency to get DB session
async def get_db():
    async with AsyncSessionLocal() as session:
        yield session


async def init_db():
    """Create all tables registered on the declarative base."""
    # Register every model on the metadata before create_all
    import database.models  # noqa: F401

    async with db_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database schema ready")


# Function to close database connections
async def close_db():
    """Close database engine and connections."""
    await db_engine.dispose()


# BIGINT on Postgres, INTEGER on SQLite so rowid autoincrement keeps working
BigIntPK = BigInteger().with_variant(Integer, "sqlite")
