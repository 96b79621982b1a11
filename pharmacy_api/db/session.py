"""Database engine, session factory and the transactional unit of work."""
import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import NullPool

from pharmacy_api.core.config import settings

logger = logging.getLogger(__name__)


def build_engine(database_url: str) -> Engine:
    if database_url.startswith("sqlite"):
        # SQLite: NullPool for thread-safety; writers are serialised by the file lock
        return create_engine(
            database_url,
            connect_args={"check_same_thread": False},
            poolclass=NullPool,
        )
    # PostgreSQL/MySQL: QueuePool with sensible defaults
    return create_engine(
        database_url,
        pool_size=5,
        max_overflow=10,
        pool_timeout=30,
        pool_recycle=3600,
        pool_pre_ping=True,
    )


engine = build_engine(settings.DATABASE_URL)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@contextmanager
def unit_of_work(db: Session) -> Iterator[Session]:
    """
    Atomic boundary for one workflow.

    Commits when the block exits normally; rolls back and re-raises on any
    exception, so no partial stock change or log row survives a failure.
    Services below this boundary flush but never commit.
    """
    try:
        yield db
        db.commit()
    except Exception:
        logger.debug("Rolling back unit of work", exc_info=True)
        db.rollback()
        raise
