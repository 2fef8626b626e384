"""SQLAlchemy base configuration."""

from typing import Any

from sqlalchemy.ext.asyncio import AsyncAttrs, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase


class Base(AsyncAttrs, DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


def create_engine(
    database_url: str,
    echo: bool = False,
    connect_timeout: float | None = None,
    pool_timeout: float | None = None,
    **kwargs: Any,
):
    """Create async database engine.

    Args:
        database_url: PostgreSQL connection string (asyncpg format)
        echo: Enable SQL logging
        connect_timeout: Seconds allowed to open a connection (asyncpg ``timeout``)
        pool_timeout: Seconds allowed to check a connection out of the pool
    """
    if connect_timeout is not None:
        connect_args = dict(kwargs.pop("connect_args", {}))
        connect_args.setdefault("timeout", connect_timeout)
        kwargs["connect_args"] = connect_args
    if pool_timeout is not None:
        kwargs["pool_timeout"] = pool_timeout
    return create_async_engine(database_url, echo=echo, **kwargs)


def create_session_factory(engine):
    """Create async session factory."""
    return async_sessionmaker(engine, expire_on_commit=False)
