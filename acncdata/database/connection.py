"""Database connection and session management."""

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Generator

from sqlalchemy import create_engine, event, inspect
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from .models import Base

logger = logging.getLogger(__name__)


def _sqlite_pragmas(engine: Engine) -> None:
    """Enable foreign keys and hand transaction control to SQLAlchemy.

    pysqlite's own transaction handling defers BEGIN and breaks SAVEPOINT,
    which the bulk loader relies on for per-row rollback.
    """

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys = ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")


class Store:
    """Owned handle on one SQLite database.

    The importer, the loader and the query layer each receive a Store
    rather than reaching for a module-level engine, so tests can run
    against throwaway in-memory databases.
    """

    def __init__(self, url: str, read_only: bool = False, **engine_kwargs):
        self.url = url
        self.read_only = read_only
        self.engine = create_engine(url, **engine_kwargs)
        if self.engine.dialect.name == "sqlite":
            _sqlite_pragmas(self.engine)
        self._session_factory = sessionmaker(
            autocommit=False,
            autoflush=False,
            bind=self.engine,
        )

    @classmethod
    def from_path(cls, path, read_only: bool = False) -> "Store":
        """Open a database file. Read-only stores never create the file."""
        path = Path(path)
        if read_only:
            url = f"sqlite:///file:{path.resolve().as_posix()}?mode=ro&uri=true"
        else:
            path.parent.mkdir(parents=True, exist_ok=True)
            url = f"sqlite:///{path}"
        return cls(url, read_only=read_only)

    @classmethod
    def in_memory(cls) -> "Store":
        """Private in-memory database shared by every session of this store."""
        return cls(
            "sqlite://",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )

    @contextmanager
    def session(self) -> Generator[Session, None, None]:
        """Get a database session context manager."""
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def ensure_schema(self) -> None:
        """Create all tables and indexes that do not exist yet."""
        if self.read_only:
            raise RuntimeError("Cannot create schema on a read-only store")
        Base.metadata.create_all(bind=self.engine)
        logger.debug("Schema ensured on %s", self.url)

    def drop_schema(self) -> None:
        """Drop all tables. Use with caution!"""
        if self.read_only:
            raise RuntimeError("Cannot drop schema on a read-only store")
        Base.metadata.drop_all(bind=self.engine)

    def has_schema(self) -> bool:
        """Check that every table exists. Raises if the database cannot be opened."""
        existing = set(inspect(self.engine).get_table_names())
        return set(Base.metadata.tables).issubset(existing)

    def dispose(self) -> None:
        self.engine.dispose()

    def __repr__(self) -> str:
        mode = "ro" if self.read_only else "rw"
        return f"<Store {self.url} ({mode})>"
