"""Async SQLAlchemy engine, session factory and declarative base."""
from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from eventfeed.config import settings

# Allow "postgres://" URLs from hosted environments
database_url = settings.DATABASE_URL
if database_url.startswith("postgres://"):
    database_url = database_url.replace("postgres://", "postgresql+asyncpg://", 1)

engine = create_async_engine(database_url, echo=False)

AsyncSessionLocal = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

Base = declarative_base()


def get_session_factory() -> async_sessionmaker:
    """Session factory dependency; tests override this to point at a scratch database."""
    return AsyncSessionLocal


async def get_db(session_factory: async_sessionmaker = Depends(get_session_factory)):
    async with session_factory() as session:
        try:
            yield session
        finally:
            await session.close()
