from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import Callable, Dict, Iterator, Optional

from sqlalchemy import MetaData, Table, create_engine, insert, make_url, text
from sqlalchemy.engine import URL, Connection, Engine
from sqlalchemy.exc import ArgumentError, SQLAlchemyError

from .errors import QueryError, StoreConnectionError
from .persistence import RecordSpec
from .schema import record_table

LOGGER = logging.getLogger("json2db.db")

PSYCOPG_DRIVER = "postgresql+psycopg"


def normalize_url(connection_string: str) -> URL:
    """Parse a connection string, routing bare PostgreSQL URLs to psycopg."""
    try:
        url = make_url(connection_string)
    except ArgumentError as exc:
        raise StoreConnectionError(f"Invalid connection string: {exc}") from exc
    if url.drivername in {"postgresql", "postgres"}:
        url = url.set(drivername=PSYCOPG_DRIVER)
    return url


def display_url(connection_string: str) -> str:
    try:
        return make_url(connection_string).render_as_string(hide_password=True)
    except ArgumentError:
        return "<invalid connection string>"


class Session:
    """One live connection to a destination store."""

    def __init__(self, connection_string: str) -> None:
        self._display = display_url(connection_string)
        url = normalize_url(connection_string)
        self._metadata = MetaData()
        self._tables: Dict[str, Table] = {}
        self._in_transaction = False
        self._connection: Optional[Connection] = None

        try:
            self._engine: Engine = create_engine(url)
        except (SQLAlchemyError, ImportError) as exc:
            raise StoreConnectionError(
                f"Cannot create engine for {self._display}: {exc}"
            ) from exc

        try:
            connection = self._engine.connect()
            connection.execute(text("SELECT 1"))
            connection.commit()
        except SQLAlchemyError as exc:
            self._engine.dispose()
            raise StoreConnectionError(
                f"Cannot connect to {self._display}: {exc}"
            ) from exc
        self._connection = connection
        LOGGER.info("Connected to %s", self._display)

    @property
    def connection(self) -> Connection:
        if self._connection is None:
            raise StoreConnectionError(f"Session for {self._display} is closed")
        return self._connection

    def _table(self, name: str) -> Table:
        table = self._tables.get(name)
        if table is None:
            table = record_table(name, self._metadata)
            self._tables[name] = table
        return table

    def execute(self, record: RecordSpec) -> None:
        """Insert one record as a single auto-committed statement.

        Inside :meth:`transaction` the statement joins the open transaction
        instead.
        """
        stmt = insert(self._table(record.table)).values(**record.values())
        conn = self.connection
        try:
            if self._in_transaction:
                conn.execute(stmt)
            else:
                with conn.begin():
                    conn.execute(stmt)
        except SQLAlchemyError as exc:
            raise QueryError(f"Insert into {record.table} failed: {exc}") from exc

    def ensure_table(self, name: str) -> None:
        table = self._table(name)
        conn = self.connection
        try:
            if self._in_transaction:
                table.create(conn, checkfirst=True)
            else:
                with conn.begin():
                    table.create(conn, checkfirst=True)
        except SQLAlchemyError as exc:
            raise QueryError(f"Cannot create table {name}: {exc}") from exc
        LOGGER.debug("Ensured table %s on %s", name, self._display)

    @contextmanager
    def transaction(self) -> Iterator["Session"]:
        """Group every :meth:`execute` in the block into one transaction."""
        if self._in_transaction:
            yield self
            return
        conn = self.connection
        self._in_transaction = True
        try:
            with conn.begin():
                yield self
        except SQLAlchemyError as exc:
            raise QueryError(f"Transaction on {self._display} failed: {exc}") from exc
        finally:
            self._in_transaction = False

    def close(self) -> None:
        if self._connection is not None:
            self._connection.close()
            self._connection = None
            self._engine.dispose()
            LOGGER.debug("Closed session for %s", self._display)


class ConnectionFactory:
    """Hands out one cached :class:`Session` per connection string.

    The factory owns every session it creates and closes all of them when
    the ``with`` block exits, whatever the reason.
    """

    def __init__(self, session_cls: Callable[[str], Session] = Session) -> None:
        self._session_cls = session_cls
        self._sessions: Dict[str, Session] = {}
        self._lock = threading.Lock()
        self._closed = False

    def __enter__(self) -> "ConnectionFactory":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def get_session(self, connection_string: str) -> Session:
        with self._lock:
            if self._closed:
                raise StoreConnectionError("Connection factory is already closed")
            session = self._sessions.get(connection_string)
            if session is None:
                LOGGER.info("Opening session for %s", display_url(connection_string))
                # A failed construction raises before caching, so the next
                # request retries.
                session = self._session_cls(connection_string)
                self._sessions[connection_string] = session
            return session

    def close(self) -> None:
        with self._lock:
            sessions = list(self._sessions.values())
            self._sessions.clear()
            self._closed = True
        for session in sessions:
            try:
                session.close()
            except SQLAlchemyError as exc:
                LOGGER.warning("Failed to close session cleanly: %s", exc)
