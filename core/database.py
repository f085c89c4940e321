"""
Database session management with SQLAlchemy async
"""

from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import NullPool, StaticPool
from core.config import settings
import logging

logger = logging.getLogger(__name__)


def build_engine(database_url: str, echo: bool = False):
    """Create an async engine; in-memory SQLite shares one connection."""
    if database_url.startswith("sqlite") and (":memory:" in database_url or database_url.endswith("://")):
        return create_async_engine(
            database_url,
            echo=echo,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )

    return create_async_engine(
        database_url,
        echo=echo,
        poolclass=NullPool,  # For async, connection pooling handled differently
        future=True
    )


def build_session_maker(engine) -> async_sessionmaker:
    """Session factory used by the transaction manager and API routes"""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False
    )


# Create async engine
engine = build_engine(settings.DATABASE_URL, echo=settings.ENVIRONMENT == "development")

# Create session factory
async_session_maker = build_session_maker(engine)


async def create_tables(bind=None):
    """Create all tables registered on the declarative base"""
    from models.base import Base
    import models.user  # noqa: F401  (registers tbl_users)

    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables ensured")


async def get_session() -> AsyncSession:
    """Get database session"""
    async with async_session_maker() as session:
        yield session
