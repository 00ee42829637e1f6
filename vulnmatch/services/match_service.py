"""MatchService — configured vulnerability matching for index records."""

from __future__ import annotations

from collections.abc import Iterable, Sequence

import structlog

from vulnmatch.core.config import StoreSettings
from vulnmatch.core.entities import GetOpts, IndexRecord, Vulnerability
from vulnmatch.vulnstore.builder import dedupe_matchers
from vulnmatch.vulnstore.matchers import Matcher
from vulnmatch.vulnstore.store import VulnStore

log = structlog.get_logger("vulnmatch.service")


class MatchService:
    """Stateless service matching index records with a fixed matcher policy."""

    def __init__(self, store: VulnStore, matchers: Iterable[Matcher | str]) -> None:
        # Raises UnknownMatcherError on misconfiguration, before any lookup runs.
        self._opts = GetOpts(matchers=dedupe_matchers(matchers))
        self._store = store

    @classmethod
    def from_settings(cls, store: VulnStore, settings: StoreSettings) -> MatchService:
        return cls(store, settings.matchers)

    @property
    def matchers(self) -> tuple[Matcher, ...]:
        return self._opts.matchers

    async def match(self, records: Sequence[IndexRecord]) -> dict[int, list[Vulnerability]]:
        """Return vulnerabilities per package id for *records*."""
        results = await self._store.get(records, self._opts)
        log.info(
            "match.done",
            records=len(records),
            affected_packages=len(results),
            vulnerabilities=sum(len(vs) for vs in results.values()),
        )
        return results
