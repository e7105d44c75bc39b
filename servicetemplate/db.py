"""Database access: a small connection pool over DB-API drivers, mapping of
driver errors to domain errors, keyset pagination and query instrumentation."""

from __future__ import annotations

import logging
import queue
import re
import sqlite3
import threading
import time
from collections import Counter
from collections.abc import Callable, Iterator, Sequence
from contextlib import contextmanager
from typing import Any, TypeVar

from .domain import ConflictError, DomainError, NotFoundError, Page, PageCursor, PageInput

T = TypeVar("T")

_log = logging.getLogger(__name__)

_UNIQUE_VIOLATION = "23505"
_FOREIGN_KEY_VIOLATION = "23503"

_PLACEHOLDER = re.compile(r"\$(\d+)")
_MARKERS = {"qmark": "?", "format": "%s", "pyformat": "%s"}


class DatabaseError(Exception):
    """A database operation failed for a reason the domain does not model."""


class NoRowsError(DatabaseError):
    """A query that must return one row returned none."""

    def __init__(self, message: str = "no rows in result set") -> None:
        super().__init__(message)


class Pool:
    """A bounded pool of DB-API connections accepting ``$N`` placeholders.

    ``connect`` is called with no arguments whenever a new connection is needed.
    Every query is instrumented: it is logged with its span name and duration,
    and counted in ``operations`` by ``(operation, failed)``.
    """

    def __init__(
        self,
        connect: Callable[[], Any],
        *,
        max_conns: int = 4,
        paramstyle: str = "qmark",
    ) -> None:
        if paramstyle not in _MARKERS:
            raise ValueError(f"unsupported paramstyle {paramstyle!r}")
        if max_conns < 1:
            raise ValueError("max_conns must be at least 1")
        self._connect = connect
        self._marker = _MARKERS[paramstyle]
        self._slots = threading.BoundedSemaphore(max_conns)
        self._idle: queue.LifoQueue[Any] = queue.LifoQueue()
        self._closed = False
        self._lock = threading.Lock()
        self.max_conns = max_conns
        self.operations: Counter[tuple[str, bool]] = Counter()

    def __enter__(self) -> Pool:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        """Close every idle connection and refuse further use."""
        self._closed = True
        while True:
            try:
                conn = self._idle.get_nowait()
            except queue.Empty:
                return
            conn.close()

    def ping(self) -> None:
        """Check that the database answers a trivial query."""
        with self._connection() as conn:
            cur = conn.cursor()
            try:
                cur.execute("SELECT 1")
                cur.fetchall()
            finally:
                cur.close()

    def query(self, sql: str, *args: Any) -> list[tuple]:
        """Run a query and return all of its rows."""
        return self._run(sql, args, lambda cur: [tuple(r) for r in cur.fetchall()])

    def query_row(self, sql: str, *args: Any) -> tuple:
        """Run a query and return its first row; raise NoRowsError if it has none."""
        rows = self.query(sql, *args)
        if not rows:
            raise NoRowsError()
        return rows[0]

    def execute(self, sql: str, *args: Any) -> int:
        """Run a statement and return the number of rows it affected."""
        return self._run(sql, args, lambda cur: cur.rowcount)

    @contextmanager
    def _connection(self) -> Iterator[Any]:
        if self._closed:
            raise DatabaseError("pool is closed")
        with self._slots:
            try:
                conn = self._idle.get_nowait()
            except queue.Empty:
                conn = self._connect()
            try:
                yield conn
            except BaseException:
                try:
                    conn.rollback()
                except Exception:
                    conn.close()
                    raise
                self._release(conn)
                raise
            conn.commit()
            self._release(conn)

    def _release(self, conn: Any) -> None:
        if self._closed:
            conn.close()
        else:
            self._idle.put(conn)

    def _bind(self, sql: str, args: Sequence[Any]) -> tuple[str, list[Any]]:
        ordered: list[Any] = []

        def substitute(match: re.Match[str]) -> str:
            index = int(match.group(1)) - 1
            if not 0 <= index < len(args):
                raise DatabaseError(f"placeholder ${index + 1} has no argument")
            ordered.append(args[index])
            return self._marker

        return _PLACEHOLDER.sub(substitute, sql), ordered

    def _run(self, sql: str, args: Sequence[Any], consume: Callable[[Any], T]) -> T:
        sql = sql.strip()
        span = db_span_name(sql)
        operation = sql_verb(sql)
        text, params = self._bind(sql, args)
        start = time.perf_counter()
        failed = False
        try:
            with self._connection() as conn:
                cur = conn.cursor()
                try:
                    cur.execute(text, params)
                    return consume(cur)
                finally:
                    cur.close()
        except Exception:
            failed = True
            raise
        finally:
            duration = time.perf_counter() - start
            with self._lock:
                self.operations[(operation, failed)] += 1
            _log.debug(
                "%s took %.6fs",
                span,
                duration,
                extra={"db_system": "postgresql", "db_operation": operation, "error": failed},
            )


def _error_code(err: BaseException) -> str | None:
    code = getattr(err, "sqlstate", None) or getattr(err, "pgcode", None)
    if code:
        return str(code)
    if isinstance(err, sqlite3.IntegrityError):
        message = str(err)
        if message.startswith("UNIQUE constraint failed"):
            return _UNIQUE_VIOLATION
        if message.startswith("FOREIGN KEY constraint failed"):
            return _FOREIGN_KEY_VIOLATION
    return None


def _error_detail(err: BaseException) -> str:
    diag = getattr(err, "diag", None)
    detail = getattr(diag, "message_detail", None) if diag is not None else None
    return str(detail) if detail else str(err)


def map_error(err: BaseException) -> Exception:
    """Translate a driver error into the matching domain error."""
    if isinstance(err, DomainError):
        return err
    if isinstance(err, NoRowsError):
        return NotFoundError()
    code = _error_code(err)
    if code == _UNIQUE_VIOLATION:
        return ConflictError(_error_detail(err))
    if code == _FOREIGN_KEY_VIOLATION:
        return NotFoundError("referenced resource does not exist")
    return DatabaseError(f"database: {err}")


def paginate(items: Sequence[T], ids: Sequence[int], page: PageInput) -> Page[T]:
    """Trim an over-fetched result and derive next/prev cursors.

    Results of a ``before`` query arrive in descending order and are returned
    in ascending order.
    """
    items = list(items)
    ids = list(ids)
    next_cursor: PageCursor | None = None
    prev_cursor: PageCursor | None = None

    if page.before is not None:
        has_more = len(items) > page.size
        items = items[: page.size][::-1]
        ids = ids[: page.size][::-1]
        if items:
            next_cursor = PageCursor(ids[-1])
            if has_more:
                prev_cursor = PageCursor(ids[0])
        return Page(items=items, next=next_cursor, prev=prev_cursor)

    if len(items) > page.size:
        next_cursor = PageCursor(ids[page.size - 1])
        items = items[: page.size]
        ids = ids[: page.size]
    if page.after is not None and items:
        prev_cursor = PageCursor(ids[0])
    return Page(items=items, next=next_cursor, prev=prev_cursor)


def db_span_name(sql: str) -> str:
    """Name a query span "{VERB} {table}" where the table is evident, else "{VERB}"."""
    fields = sql.split()
    if not fields:
        return "db.query"
    verb = fields[0].upper()
    if verb == "INSERT" and len(fields) >= 3 and fields[1].upper() == "INTO":
        return "INSERT " + fields[2]
    if verb == "UPDATE" and len(fields) >= 2:
        return "UPDATE " + fields[1]
    if verb == "DELETE" and len(fields) >= 3 and fields[1].upper() == "FROM":
        return "DELETE " + fields[2]
    return verb


def sql_verb(sql: str) -> str:
    """Return the upper-cased SQL command keyword."""
    index = sql.find(" ")
    if index > 0:
        return sql[:index].upper()
    return sql.upper()