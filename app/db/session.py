from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from app.core.config import settings

# The points sweep can sit idle between runs; ping and recycle so it never picks up a dropped connection.
engine = create_async_engine(
    settings.database_url,
    echo=False,
    future=True,
    pool_pre_ping=True,
    pool_recycle=300,
)

# Services read attributes after commit (response building, counter refresh).
StudentSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
)

Base = declarative_base()


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Request-scoped session for the student/class/academic-year routers."""
    async with StudentSessionLocal() as session:
        yield session


async def create_tables() -> None:
    """Create the academic_years, classes, students and points_history tables if missing."""
    import app.core.models  # noqa: F401  registers every table on Base.metadata

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
