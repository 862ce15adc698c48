"""
Database configuration and engine creation.

Engines are created on demand by the invoice store rather than at
import time, so the service can start without a reachable database.
"""

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

# Base class for declarative models
Base = declarative_base()


def create_db_engine(database_url: str, echo: bool = False) -> Engine:
    """
    Create a SQLAlchemy engine for the given URL.

    - pool_pre_ping: Verify connections are alive before using them
    - pool_size / max_overflow: Pool bounds for server databases
    - In-memory SQLite shares one connection across threads

    Args:
        database_url: SQLAlchemy connection URL.
        echo: Log every SQL statement.

    Returns:
        Engine: A new, not yet connected engine.
    """
    if database_url.startswith("sqlite"):
        kwargs: dict = {"connect_args": {"check_same_thread": False}}
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        return create_engine(database_url, echo=echo, **kwargs)

    return create_engine(
        database_url,
        pool_pre_ping=True,
        pool_size=5,
        max_overflow=10,
        echo=echo,
    )


def create_session_factory(engine: Engine) -> sessionmaker:
    """Create a session factory bound to the engine."""
    return sessionmaker(
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
        bind=engine,
    )


def init_db(engine: Engine) -> None:
    """
    Create all tables that do not exist yet.

    Note: In production, use Alembic migrations instead.
    """
    # Import models to ensure they are registered with Base
    from . import models_db  # noqa: F401

    Base.metadata.create_all(bind=engine)
