"""VulnStore — pooled entry point for batched vulnerability lookups."""

from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy.ext.asyncio import AsyncEngine

from vulnmatch.core.entities import GetOpts, IndexRecord, Vulnerability
from vulnmatch.vulnstore.batch import DEFAULT_BATCH_TIMEOUT
from vulnmatch.vulnstore.builder import build_query
from vulnmatch.vulnstore.get import get_vulnerabilities


class VulnStore:
    """Runs each lookup on its own pooled connection and transaction.

    ``batch_timeout`` bounds the send/drain round trip of every lookup. It is
    independent of the caller: cancelling a lookup while its batch is in
    flight only takes effect once the batch finishes or the timeout expires.
    """

    def __init__(self, engine: AsyncEngine, batch_timeout: float = DEFAULT_BATCH_TIMEOUT) -> None:
        if batch_timeout <= 0:
            raise ValueError("batch_timeout must be positive")
        self._engine = engine
        self._batch_timeout = batch_timeout

    async def get(
        self, records: Sequence[IndexRecord], opts: GetOpts
    ) -> dict[int, list[Vulnerability]]:
        """Return matched vulnerabilities keyed by package id."""
        # Unknown matchers fail here, before a connection is checked out.
        build_query(opts.matchers)
        async with self._engine.connect() as conn:
            raw = await conn.get_raw_connection()
            return await get_vulnerabilities(
                raw.driver_connection,
                records,
                opts,
                batch_timeout=self._batch_timeout,
            )
