"""Local store database session management."""

from __future__ import annotations

import logging
from collections.abc import Generator
from contextlib import contextmanager
from pathlib import Path

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from scorecraft.local.models import LocalBase

MEMORY_DATABASE = ":memory:"

log = logging.getLogger(__name__)


def get_local_engine(database: Path | str = MEMORY_DATABASE) -> Engine:
    """Create the SQLAlchemy engine for a local store and its tables.

    Args:
        database: SQLite file path, or ``":memory:"`` for a private
            in-memory database (kept on a single shared connection).

    Returns:
        SQLAlchemy engine with all tables created.
    """
    if str(database) == MEMORY_DATABASE:
        engine = create_engine(
            "sqlite://",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    else:
        db_path = Path(database).expanduser()
        db_path.parent.mkdir(parents=True, exist_ok=True)
        engine = create_engine(
            f"sqlite:///{db_path}",
            connect_args={
                "timeout": 30,
                "check_same_thread": False,
            },
        )
        log.debug("Opened local store at %s", db_path)

    LocalBase.metadata.create_all(engine)
    return engine


@contextmanager
def get_local_session(engine: Engine) -> Generator[Session, None, None]:
    """Session committing on success and rolling back on error."""
    session_factory = sessionmaker(bind=engine)
    session = session_factory()

    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
