"""Async SQLAlchemy engine and session factory for the pipeline tables."""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from app.config import get_database_settings


class Base(DeclarativeBase):
  pass


_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def _database_url() -> str | None:
  """Return the configured DSN with the asyncpg driver forced for plain Postgres URLs."""
  dsn = get_database_settings().pg_dsn
  if dsn and dsn.startswith("postgresql://"):
    return "postgresql+asyncpg://" + dsn.removeprefix("postgresql://")
  return dsn


def get_db_engine() -> AsyncEngine | None:
  """Create the process-wide engine on first use; None when no DSN is configured."""
  global _engine
  if _engine is None:
    url = _database_url()
    if url:
      settings = get_database_settings()
      _engine = create_async_engine(url, echo=settings.debug, pool_pre_ping=True, connect_args={"timeout": settings.pg_connect_timeout})
  return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession] | None:
  global _session_factory
  if _session_factory is None:
    engine = get_db_engine()
    if engine is not None:
      _session_factory = async_sessionmaker(bind=engine, expire_on_commit=False, class_=AsyncSession)
  return _session_factory


def require_session_factory() -> async_sessionmaker[AsyncSession]:
  """Return the session factory or fail loudly when Postgres is not configured."""
  session_factory = get_session_factory()
  if session_factory is None:
    raise RuntimeError("Database connection is not configured (CERTFORGE_PG_DSN is missing).")
  return session_factory


async def dispose_engine() -> None:
  """Close pooled connections, if an engine was ever created."""
  global _engine, _session_factory
  if _engine is not None:
    await _engine.dispose()
  _engine = None
  _session_factory = None
