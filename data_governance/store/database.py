"""
Database bootstrap for the entity store.

Owns the declarative base shared by all documents and the helpers that turn a
connection string into a session factory.
"""

import logging
from typing import Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

logger = logging.getLogger(__name__)

Base = declarative_base()


def create_engine_for(database_url: str, echo: bool = False) -> Engine:
    """
    Create an engine with backend-specific pool settings.

    Args:
        database_url: SQLAlchemy connection string
        echo: Log emitted SQL

    Returns:
        Configured engine
    """
    if database_url.startswith("sqlite"):
        # SQLite doesn't support pool_size and max_overflow
        return create_engine(database_url, echo=echo)

    return create_engine(
        database_url,
        echo=echo,
        pool_pre_ping=True,
        pool_size=10,
        max_overflow=20,
    )


def init_database(
    database_url: str, echo: bool = False, engine: Optional[Engine] = None
) -> sessionmaker:  # type: ignore[type-arg]
    """
    Create all document tables and return a session factory.

    Args:
        database_url: SQLAlchemy connection string
        echo: Log emitted SQL
        engine: Pre-built engine to use instead of creating one

    Returns:
        Session factory bound to the engine
    """
    # Documents register themselves on Base when imported
    from . import documents  # noqa: F401

    engine = engine or create_engine_for(database_url, echo=echo)
    Base.metadata.create_all(bind=engine)
    logger.info(f"Entity store initialized at {engine.url!r}")

    return sessionmaker(autocommit=False, autoflush=False, bind=engine)
