"""SQLModel engine creation for the durable record store.

This module provides:
- Engine creation with connection pooling and bounded timeouts
- Database initialization utilities

PostgreSQL is the production database. SQLite is supported for local
development and tests through the JSON fallbacks in custom_types.
"""

from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, create_engine


def create_store_engine(database_url: str, timeout_seconds: float = 10.0) -> Engine:
    """Create an engine whose connect and pool checkout are time-bounded.

    Args:
        database_url: SQLAlchemy URL (postgresql://... or sqlite://...)
        timeout_seconds: Upper bound on connecting or waiting for a pooled connection

    Returns:
        Configured SQLAlchemy engine
    """
    if database_url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False, "timeout": timeout_seconds}}
        # In-memory databases only exist per connection; share one
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        return create_engine(database_url, echo=False, **kwargs)

    # pool_pre_ping ensures connections are valid before use
    return create_engine(
        database_url,
        echo=False,  # Set to True for SQL debugging
        pool_pre_ping=True,
        pool_size=5,
        max_overflow=10,
        pool_timeout=timeout_seconds,
        connect_args={"connect_timeout": max(1, int(timeout_seconds))},
    )


def init_db(engine: Engine) -> None:
    """Create all tables.

    Should only be used for development/testing.
    Use Alembic migrations for production.
    """
    # Import all models to ensure they're registered with SQLModel
    from newsletter.db.models import Generation, VoiceProfile  # noqa: F401

    SQLModel.metadata.create_all(engine)


def drop_all_tables(engine: Engine) -> None:
    """Drop all tables. USE WITH CAUTION - data loss will occur."""
    SQLModel.metadata.drop_all(engine)
