"""Database connection and session management."""

import logging

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)


def create_db_engine(database_url: str) -> Engine:
    """Create engine for the billing database.

    SQLite uses StaticPool so an in-memory database is shared by every
    session of the process; other backends get pre-ping to survive
    dropped connections.
    """
    if database_url.startswith("sqlite"):
        return create_engine(
            database_url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_engine(database_url, pool_pre_ping=True)


def create_session_factory(engine: Engine) -> sessionmaker:
    """Create session factory bound to engine."""
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


__all__ = [
    "create_db_engine",
    "create_session_factory",
]
