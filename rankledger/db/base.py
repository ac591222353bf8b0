"""
Database handle.

The durable backend is reached through an explicitly constructed
`Database` object with an `open` / `close` lifecycle. Nothing in the
package holds a process-wide connection: the application factory owns
one handle, and tests build an isolated handle per test.
"""
from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator, Optional

from fastapi import Request
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from rankledger.core.logging import get_logger

log = get_logger(__name__)


class Base(DeclarativeBase):
    pass


class Database:
    """Owns the engine and session factory for one backend URL."""

    def __init__(self, url: str, *, busy_timeout: float = 30.0, echo: bool = False):
        self.url = url
        self.busy_timeout = busy_timeout
        self.echo = echo
        self._engine: Optional[Engine] = None
        self._sessionmaker: Optional[sessionmaker[Session]] = None

    @property
    def is_sqlite(self) -> bool:
        return self.url.startswith("sqlite")

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            raise RuntimeError("Database is not open.")
        return self._engine

    def open(self) -> "Database":
        if self._engine is not None:
            return self
        connect_args = {}
        if self.is_sqlite:
            connect_args = {"check_same_thread": False, "timeout": self.busy_timeout}
        self._engine = create_engine(
            self.url,
            connect_args=connect_args,
            pool_pre_ping=not self.is_sqlite,
            echo=self.echo,
        )
        if self.is_sqlite:
            event.listen(self._engine, "connect", _sqlite_pragmas)
        self._sessionmaker = sessionmaker(
            autocommit=False, autoflush=False, expire_on_commit=False, bind=self._engine
        )
        log.info("database_opened", backend=self._engine.url.get_backend_name())
        return self

    def close(self) -> None:
        if self._engine is None:
            return
        self._engine.dispose()
        self._engine = None
        self._sessionmaker = None
        log.info("database_closed")

    def create_all(self) -> None:
        """Create missing tables (tests and local development; Alembic in production)."""
        import rankledger.models  # noqa: F401  registers the mappers

        Base.metadata.create_all(bind=self.engine)

    def drop_all(self) -> None:
        Base.metadata.drop_all(bind=self.engine)

    @contextmanager
    def session(self) -> Iterator[Session]:
        if self._sessionmaker is None:
            raise RuntimeError("Database is not open.")
        db = self._sessionmaker()
        try:
            yield db
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def __enter__(self) -> "Database":
        return self.open()

    def __exit__(self, *exc_info) -> None:
        self.close()


def _sqlite_pragmas(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys = ON")
    cursor.close()


def get_database(request: Request) -> Database:
    """FastAPI dependency: the handle owned by the running application."""
    return request.app.state.database
