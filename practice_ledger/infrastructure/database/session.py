"""Database session management with connection pooling"""

from functools import lru_cache
from typing import Generator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from practice_ledger.config import settings


@lru_cache(maxsize=None)
def get_engine(database_url: str | None = None) -> Engine:
    """Build the engine on first use so importing the app never opens a pool"""
    url = database_url or settings.database_url
    if url.startswith("sqlite"):
        return create_engine(url, connect_args={"check_same_thread": False})

    # Pool of up to 20 connections, recycled hourly
    return create_engine(
        url,
        pool_pre_ping=True,
        pool_size=10,
        max_overflow=10,
        pool_recycle=3600,
    )


def session_factory(database_url: str | None = None) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=get_engine(database_url))


def get_db() -> Generator[Session, None, None]:
    """Dependency injection for database sessions"""
    db = session_factory()()
    try:
        yield db
    finally:
        db.close()
