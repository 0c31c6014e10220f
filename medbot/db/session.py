# medbot/db/session.py
from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel

from medbot import config
from .models import *  # ensure models are imported for metadata


# -------------------------
# Engine
# -------------------------

engine: AsyncEngine = create_async_engine(
    config.DATABASE_URL,
    echo=config.SQL_ECHO,
    pool_pre_ping=True,
)


# -------------------------
# Session factory (async)
# -------------------------

SessionLocal: async_sessionmaker[AsyncSession] = async_sessionmaker(
    bind=engine,
    expire_on_commit=False,
    autoflush=False,
)


# -------------------------
# Schema management
# -------------------------

async def init_db(bind: AsyncEngine = engine) -> None:
    """Create all tables if they do not exist."""
    async with bind.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)


async def drop_db(bind: AsyncEngine = engine) -> None:
    """Drop all tables (useful for test reset)."""
    async with bind.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)
