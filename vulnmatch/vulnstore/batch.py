"""Pipelined statement batches over a single driver connection.

A :class:`Batch` is a strict FIFO protocol: queue N invocations, send them,
drain exactly N result cursors in queue order, then close. Every step checks
the protocol state so that a caller which drains too many or too few results
gets an error instead of silently reading another statement's rows.
"""

from __future__ import annotations

import asyncio
import time
import weakref
from collections import deque
from collections.abc import Iterator, Mapping, Sequence
from typing import Any, Protocol

import structlog

from vulnmatch.core.config import DEFAULT_BATCH_TIMEOUT
from vulnmatch.core.entities import IndexRecord
from vulnmatch.vulnstore import BatchCloseError, BatchProtocolError, BatchSendError
from vulnmatch.vulnstore.matchers import Matcher, value_of

log = structlog.get_logger("vulnmatch.vulnstore")

Row = Mapping[str, Any]


class PreparedQuery(Protocol):
    """The part of ``asyncpg.prepared_stmt.PreparedStatement`` a batch uses."""

    async def fetch(self, *args: Any) -> list[Row]: ...


class DriverConnection(Protocol):
    """The part of ``asyncpg.Connection`` the store uses."""

    def transaction(self) -> Any: ...

    async def prepare(self, query: str, *, name: str | None = None) -> PreparedQuery: ...


# Server-side statements prepared per driver connection: name -> (sql, statement).
_prepared: weakref.WeakKeyDictionary[Any, dict[str, tuple[str, PreparedQuery]]] = (
    weakref.WeakKeyDictionary()
)


async def prepare_named(conn: DriverConnection, name: str, sql: str) -> PreparedQuery:
    """Prepare *sql* on *conn* under *name*.

    Named statements live as long as the server session, so a connection that
    already holds *name* for the same text reuses it instead of preparing a
    duplicate. asyncpg rejects a second prepare under a name the session
    already holds, so the statement outlives the transaction that prepared it.
    """
    statements = _prepared.setdefault(conn, {})
    cached = statements.get(name)
    if cached is not None and cached[0] == sql:
        return cached[1]
    stmt = await conn.prepare(sql, name=name)
    statements[name] = (sql, stmt)
    return stmt


def bind_args(record: IndexRecord, matchers: Sequence[Matcher]) -> list[str]:
    """Bind values for one record: source name, package name, then one per matcher."""
    pkg = record.package
    source_name = pkg.source.name if pkg.source is not None else ""
    args = [source_name, pkg.name]
    args.extend(value_of(record, m) for m in matchers)
    return args


class ResultCursor:
    """Rows returned by one queued statement."""

    def __init__(self, index: int, rows: Sequence[Row]) -> None:
        self.index = index
        self._rows = rows
        self._pos = 0

    def __iter__(self) -> Iterator[Row]:
        while self._pos < len(self._rows):
            row = self._rows[self._pos]
            self._pos += 1
            yield row

    @property
    def exhausted(self) -> bool:
        return self._pos >= len(self._rows)


async def _run_to_completion(task: asyncio.Future) -> Any:
    """Await *task*, deferring any cancellation of the caller until it finishes."""
    caller_cancelled = False
    while not task.done():
        try:
            await asyncio.wait({task})
        except asyncio.CancelledError:
            if not caller_cancelled:
                log.warning("vulnstore.batch_cancel_deferred")
            caller_cancelled = True
    if caller_cancelled:
        if not task.cancelled():
            task.exception()  # retrieved; the caller sees the cancellation
        raise asyncio.CancelledError()
    return task.result()


class Batch:
    """A queue of prepared statement invocations sent as one unit."""

    _QUEUEING = "queueing"
    _SENT = "sent"
    _FAILED = "failed"
    _CLOSED = "closed"

    def __init__(self) -> None:
        self._queued: list[tuple[PreparedQuery, tuple[Any, ...]]] = []
        self._pending: deque[ResultCursor] = deque()
        self._issued: list[ResultCursor] = []
        self._state = self._QUEUEING

    def __len__(self) -> int:
        return len(self._queued)

    def queue(self, stmt: PreparedQuery, args: Sequence[Any]) -> None:
        if self._state != self._QUEUEING:
            raise BatchProtocolError(f"cannot queue onto a {self._state} batch")
        self._queued.append((stmt, tuple(args)))

    async def _execute(self) -> list[Sequence[Row]]:
        results: list[Sequence[Row]] = []
        for stmt, args in self._queued:
            results.append(await stmt.fetch(*args))
        return results

    async def send(self, timeout: float = DEFAULT_BATCH_TIMEOUT) -> None:
        """Send every queued statement and buffer their results.

        The round trip runs under its own *timeout* and is not interrupted by
        cancelling the calling task: the cancellation is re-raised once the
        batch has completed or timed out, leaving the connection in a
        consistent protocol state.
        """
        if self._state != self._QUEUEING:
            raise BatchProtocolError(f"cannot send a {self._state} batch")
        if timeout <= 0:
            raise ValueError("batch timeout must be positive")

        started = time.monotonic()
        task = asyncio.ensure_future(asyncio.wait_for(self._execute(), timeout))
        try:
            results = await _run_to_completion(task)
        except asyncio.TimeoutError as exc:
            self._state = self._FAILED
            raise BatchSendError(
                f"batch of {len(self._queued)} statements did not complete within {timeout}s"
            ) from exc
        except asyncio.CancelledError:
            self._state = self._FAILED
            raise
        except Exception as exc:
            self._state = self._FAILED
            raise BatchSendError(f"failed to send batch of {len(self._queued)} statements") from exc

        self._pending = deque(ResultCursor(i, rows) for i, rows in enumerate(results))
        self._state = self._SENT
        log.debug(
            "vulnstore.batch_sent",
            statements=len(self._queued),
            elapsed_ms=round((time.monotonic() - started) * 1000, 1),
        )

    def next(self) -> ResultCursor | None:
        """Return the cursor of the next queued statement, or None once all are drained."""
        if self._state != self._SENT:
            raise BatchProtocolError(f"cannot read results of a {self._state} batch")
        if not self._pending:
            return None
        cursor = self._pending.popleft()
        self._issued.append(cursor)
        return cursor

    def close(self) -> None:
        """Finish the batch.

        Raises :class:`BatchCloseError` if a queued statement's cursor was
        never drained or a drained cursor still holds unread rows.
        """
        if self._state == self._CLOSED:
            return
        state, self._state = self._state, self._CLOSED
        if state == self._QUEUEING and self._queued:
            raise BatchCloseError(f"batch of {len(self._queued)} statements closed before send")
        if self._pending:
            raise BatchCloseError(
                f"{len(self._pending)} of {len(self._queued)} queued statements were never drained"
            )
        for cursor in self._issued:
            if not cursor.exhausted:
                raise BatchCloseError(f"rows of statement {cursor.index} were not fully consumed")
