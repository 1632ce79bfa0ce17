import os
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import StaticPool

db_port = os.getenv("DB_PORT", "5432")
if db_port == "None" or not db_port:
    db_port = "5432"

# DATABASE_URL overrides the per-field settings (the test suite points it at SQLite)
ASYNC_DATABASE_URL = os.getenv("DATABASE_URL") or (
    f"postgresql+asyncpg://{os.getenv('DB_USER')}:{os.getenv('DB_PASSWORD')}"
    f"@{os.getenv('DB_HOST')}:{db_port}/{os.getenv('DB_NAME')}"
)

engine_options = {}
if ASYNC_DATABASE_URL.startswith("sqlite"):
    # In-memory SQLite lives as long as its one connection
    engine_options = {"poolclass": StaticPool, "connect_args": {"check_same_thread": False}}

async_engine = create_async_engine(ASYNC_DATABASE_URL, echo=False, **engine_options)
AsyncSessionLocal = async_sessionmaker(
    async_engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)

Base = declarative_base()


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Async dependency for FastAPI routes."""
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()


@asynccontextmanager
async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """Async context manager for database sessions (delayed jobs)."""
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception as error:
            await session.rollback()
            raise error
        finally:
            await session.close()
