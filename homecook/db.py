# homecook/db.py
from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator

from fastapi import Request
from sqlalchemy import create_engine, event
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from .errors import DomainError, Internal

logger = logging.getLogger(__name__)

Base = declarative_base()


def _enable_sqlite_foreign_keys(dbapi_conn, _record) -> None:
    cur = dbapi_conn.cursor()
    cur.execute("PRAGMA foreign_keys=ON")
    cur.close()


class Database:
    """
    Owns the engine and hands out one Session per unit of work.
    Built explicitly (see create_app) and stored on app.state, never imported as a global.
    """

    def __init__(self, url: str, echo: bool = False) -> None:
        kwargs = {"echo": echo, "future": True}
        if url.startswith("sqlite"):
            kwargs["connect_args"] = {"check_same_thread": False}
            # In-memory sqlite: every session must share the one connection
            if url in {"sqlite://", "sqlite:///:memory:"}:
                kwargs["poolclass"] = StaticPool

        self.url = url
        self.engine = create_engine(url, **kwargs)
        if url.startswith("sqlite"):
            event.listen(self.engine, "connect", _enable_sqlite_foreign_keys)

        self._sessionmaker = sessionmaker(bind=self.engine, autoflush=False, expire_on_commit=True)

    def create_all(self) -> None:
        # models must be imported so their tables are registered on Base
        from . import models  # noqa: F401

        Base.metadata.create_all(bind=self.engine)

    def session(self) -> Session:
        return self._sessionmaker()

    def dispose(self) -> None:
        self.engine.dispose()


def get_db(request: Request) -> Iterator[Session]:
    db = request.app.state.database.session()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def transaction(db: Session, what: str) -> Iterator[Session]:
    """
    Commit on success, roll back on any failure.
    Domain errors pass through untouched; persistence failures surface as Internal.
    """
    try:
        yield db
        db.commit()
    except DomainError:
        db.rollback()
        raise
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Persistence failure while %s", what)
        raise Internal(f"Error {what}") from e
