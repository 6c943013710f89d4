import logging
from contextlib import contextmanager

from sqlalchemy import create_engine, event, text
from sqlalchemy.orm import Session, sessionmaker

from .config import settings

logger = logging.getLogger(__name__)


def _make_engine(url: str):
    if url.startswith("sqlite"):
        # check_same_thread=False: FastAPI serves sync routes from a thread pool
        engine = create_engine(url, connect_args={"check_same_thread": False})
        event.listen(engine, "connect", enable_sqlite_fk)
        return engine
    return create_engine(url, pool_pre_ping=True)


def enable_sqlite_fk(dbapi_connection, _):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


engine = _make_engine(settings.resolved_database_url)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine
)


# FastAPI dependency
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def _apply_timeout(db: Session, timeout_seconds: int) -> None:
    """Bound how long the current transaction may block on locks."""
    dialect = db.get_bind().dialect.name
    if dialect == "sqlite":
        db.execute(text(f"PRAGMA busy_timeout = {int(timeout_seconds * 1000)}"))
    elif dialect == "postgresql":
        db.execute(text(f"SET LOCAL lock_timeout = '{int(timeout_seconds)}s'"))
        db.execute(text(f"SET LOCAL statement_timeout = '{int(timeout_seconds)}s'"))


@contextmanager
def atomic(db: Session, timeout_seconds: int | None = None):
    """
    Run a read-then-write block as one transaction.

    Commits on success, rolls back and re-raises on any error, so a
    multi-slot write either lands completely or not at all.
    """
    timeout = timeout_seconds or settings.transaction_timeout
    try:
        _apply_timeout(db, timeout)
        yield db
        db.commit()
    except Exception:
        db.rollback()
        logger.debug("Transaction rolled back")
        raise
