"""Database connection, initialization and transaction helper."""

from contextlib import contextmanager
from typing import Iterator, Optional

from sqlalchemy import event
from sqlmodel import SQLModel, Session, create_engine

from bribebank.config import settings
from bribebank.services.outbox import Outbox

# Import all models so SQLModel registers them
import bribebank.models  # noqa: F401

engine = create_engine(
    f"sqlite:///{settings.db_path}",
    echo=settings.debug,
    connect_args={"check_same_thread": False},
)


@event.listens_for(engine, "connect")
def _set_sqlite_pragmas(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.execute("PRAGMA busy_timeout=5000")
    cursor.close()


def init_db() -> None:
    """Create all tables and enable WAL mode."""
    SQLModel.metadata.create_all(engine)

    # Enable WAL mode for better concurrent read performance
    with engine.connect() as conn:
        conn.exec_driver_sql("PRAGMA journal_mode=WAL")
        conn.exec_driver_sql("PRAGMA synchronous=NORMAL")
        conn.commit()


def get_session():
    """FastAPI dependency: yields a database session."""
    with Session(engine) as session:
        yield session


@contextmanager
def atomic(session: Session, outbox: Optional[Outbox] = None) -> Iterator[Session]:
    """Run a block as one transaction.

    Commits on success and marks the outbox committed so its side effects
    may be dispatched. Any exception rolls everything back and leaves the
    outbox uncommitted.
    """
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    if outbox is not None:
        outbox.mark_committed()
