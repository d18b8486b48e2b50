"""Database configuration and async SQLAlchemy setup.

The engine and session factory are built once in the application lifespan
and kept on ``app.state``; request handlers receive sessions via ``get_db``.
"""
from typing import AsyncIterator

from fastapi import Request
from sqlalchemy.ext.asyncio import create_async_engine, AsyncEngine, AsyncSession
from sqlalchemy.orm import sessionmaker, declarative_base

# Base class for models
Base = declarative_base()


def build_engine(database_url: str, echo: bool = False) -> AsyncEngine:
    """Create the async engine for ``database_url``."""
    if database_url.startswith("sqlite"):
        return create_async_engine(database_url, echo=echo, future=True)
    return create_async_engine(
        database_url,
        echo=echo,
        future=True,
        pool_pre_ping=True,
        pool_recycle=1800,
    )


def build_sessionmaker(engine: AsyncEngine) -> sessionmaker:
    """Create the async session factory bound to ``engine``."""
    return sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        future=True,
    )


async def get_db(request: Request) -> AsyncIterator[AsyncSession]:
    """Dependency to get database session."""
    session_factory = request.app.state.session_factory
    async with session_factory() as session:
        yield session
