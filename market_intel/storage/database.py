"""
Storage - Database.

============================================================
RESPONSIBILITY
============================================================
Owns the SQLAlchemy engine and session factory for one URL.

- Creates tables on first connect
- Provides a commit-or-rollback transaction scope
- Wraps driver failures into StorageError

============================================================
"""

import logging
from contextlib import contextmanager
from typing import Generator, Optional

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from ..exceptions import StorageError
from .models import Base


logger = logging.getLogger(__name__)


def _is_memory_sqlite(url: str) -> bool:
    return url in ("sqlite://", "sqlite:///:memory:") or "mode=memory" in url


class Database:
    """
    Engine plus session factory.

    Usage:
        db = Database("sqlite:///market_intel.db")
        with db.transaction() as session:
            session.add(record)
    """

    def __init__(self, url: str, echo: bool = False) -> None:
        self._url = url
        self._engine: Optional[Engine] = None
        self._session_factory: Optional[sessionmaker] = None
        self._echo = echo

    @property
    def url(self) -> str:
        return self._url

    def connect(self) -> Engine:
        """
        Create the engine and tables if needed.

        Raises:
            StorageError: If the database cannot be reached
        """
        if self._engine is not None:
            return self._engine

        kwargs = {"echo": self._echo, "future": True}
        if self._url.startswith("sqlite"):
            kwargs["connect_args"] = {"check_same_thread": False}
            if _is_memory_sqlite(self._url):
                # One shared connection, otherwise every session sees an empty DB
                kwargs["poolclass"] = StaticPool

        try:
            engine = create_engine(self._url, **kwargs)
            Base.metadata.create_all(engine)
        except SQLAlchemyError as e:
            raise StorageError(
                f"Cannot initialise database: {e}",
                operation="connect",
            ) from e

        self._engine = engine
        self._session_factory = sessionmaker(
            bind=engine,
            autoflush=False,
            expire_on_commit=False,
        )
        logger.info(f"Database ready: {self._url.split('@')[-1]}")
        return engine

    @contextmanager
    def transaction(self, operation: str = "transaction") -> Generator[Session, None, None]:
        """
        Commit on success, roll back on any exception.

        Raises:
            StorageError: On any SQLAlchemy failure
        """
        self.connect()
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            logger.error(f"Database error in {operation}, rolled back: {e}")
            raise StorageError(str(e), operation=operation) from e
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def health_check(self) -> bool:
        try:
            with self.transaction("health_check") as session:
                session.execute(text("SELECT 1"))
            return True
        except StorageError:
            return False

    def dispose(self) -> None:
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None
            self._session_factory = None
