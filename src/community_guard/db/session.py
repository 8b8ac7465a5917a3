"""Database session configuration and the transactional unit of work."""

from __future__ import annotations

import logging
from collections.abc import Generator, Iterator
from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from community_guard.core.errors import ModerationError, TransactionFailureError
from community_guard.core.settings import settings

logger = logging.getLogger(__name__)

# Marker stored in Session.info while an outer unit of work is open.
_UNIT_OF_WORK_KEY = "community_guard.unit_of_work"


class Base(DeclarativeBase):
    """Declarative base shared by all ORM models."""


# Ensure model modules are imported so that metadata is populated when create_all runs.
import community_guard.models  # noqa: E402,F401

engine = create_engine(
    settings.effective_database_url,
    pool_pre_ping=True,
    echo=settings.sql_debug,
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Generator[Session, None, None]:
    """Yield a database session for dependency injection."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def unit_of_work(db: Session) -> Iterator[Session]:
    """Run a block of reads and writes as one atomic unit.

    The outermost block commits when it exits cleanly and rolls back on any
    exception. Blocks opened while another one is active join it, so an
    operation built from several component calls commits or fails as a whole.

    Raises:
        TransactionFailureError: If the store reports an error; the session has
            already been rolled back when this is raised.
    """
    if db.info.get(_UNIT_OF_WORK_KEY):
        yield db
        return

    db.info[_UNIT_OF_WORK_KEY] = True
    try:
        yield db
        db.commit()
    except ModerationError:
        db.rollback()
        raise
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Unit of work rolled back after a storage error")
        raise TransactionFailureError() from exc
    except Exception:
        db.rollback()
        raise
    finally:
        db.info.pop(_UNIT_OF_WORK_KEY, None)


def create_tables() -> None:
    """Create all database tables."""
    Base.metadata.create_all(bind=engine)


def drop_tables() -> None:
    """Drop all database tables."""
    Base.metadata.drop_all(bind=engine)
