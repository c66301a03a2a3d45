"""
core/db.py -- Shared SQLAlchemy engine setup for the repository layer.

auth/store.py and projects/store.py both talk to the same logical store. They
build their engines here so the SQLite specifics (WAL mode, cross-thread
connections) live in one place, and they open connections through
connect(), which is where driver exceptions become domain errors:

  IntegrityError        -> DuplicateKey   (unique constraint fired)
  other SQLAlchemyError -> OperationFailed (connectivity / transient fault)

That keeps "your input collided with existing data" distinct from "try again
later" all the way up to the HTTP response.

Layer rule: core/ is the kernel. No imports from api/, auth/, or projects/.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timezone

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from core.errors import DuplicateKey, OperationFailed

logger = logging.getLogger("ubiquitous.db")


def _set_sqlite_pragmas(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode and a busy timeout on every new connection.

    WAL lets readers proceed while a writer holds the lock. PRAGMAs are
    per-connection, so this runs from the pool's connect event.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")
    dbapi_conn.execute("PRAGMA busy_timeout=5000")


def make_engine(db_url: str) -> Engine:
    connect_args: dict = {}
    if db_url.startswith("sqlite"):
        # FastAPI runs sync handlers in a threadpool; the same pooled
        # connection may be used from different threads.
        connect_args["check_same_thread"] = False
    engine = create_engine(db_url, connect_args=connect_args)
    if db_url.startswith("sqlite"):
        event.listen(engine, "connect", _set_sqlite_pragmas)
    return engine


@contextmanager
def connect(engine: Engine) -> Iterator[Connection]:
    """Yield a connection, translating driver errors into domain errors.

    Uncommitted work is rolled back when the block exits, so a
    read-modify-write that raises halfway leaves nothing behind.
    """
    try:
        with engine.connect() as conn:
            yield conn
    except IntegrityError as exc:
        raise DuplicateKey(detail=str(exc.orig)) from exc
    except SQLAlchemyError as exc:
        logger.error("Store operation failed: %s", exc.__class__.__name__)
        raise OperationFailed() from exc


def ping(engine: Engine) -> bool:
    """Return True if the store answers a trivial query."""
    try:
        with engine.connect() as conn:
            conn.exec_driver_sql("SELECT 1")
    except SQLAlchemyError:
        return False
    return True


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()
