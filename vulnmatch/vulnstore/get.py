"""Batched vulnerability lookup for index records."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

import structlog

from vulnmatch.core.entities import (
    Distribution,
    GetOpts,
    IndexRecord,
    Package,
    Repository,
    Vulnerability,
)
from vulnmatch.vulnstore import (
    BatchProtocolError,
    CommitError,
    PrepareError,
    ScanError,
    TransactionError,
)
from vulnmatch.vulnstore.batch import (
    DEFAULT_BATCH_TIMEOUT,
    Batch,
    DriverConnection,
    Row,
    bind_args,
    prepare_named,
)
from vulnmatch.vulnstore.builder import build_query
from vulnmatch.vulnstore.fingerprint import fingerprint

log = structlog.get_logger("vulnmatch.vulnstore")


def _text(row: Row, column: str, *, nullable: bool = False) -> str:
    try:
        value = row[column]
    except (KeyError, IndexError) as exc:
        raise ScanError(f"failed to scan vulnerability: missing column {column!r}") from exc
    if value is None and nullable:
        return ""
    if not isinstance(value, str):
        raise ScanError(
            f"failed to scan vulnerability: column {column!r} holds {type(value).__name__}"
        )
    return value


def scan_vulnerability(row: Row) -> Vulnerability:
    """Turn one result row into a :class:`Vulnerability`.

    Package, distribution and repository are allocated per row. A NULL
    ``fixed_in_version`` means unfixed and scans as the empty string; any
    other missing or non-text column raises :class:`ScanError`.
    """
    try:
        raw_id = row["id"]
    except (KeyError, IndexError) as exc:
        raise ScanError("failed to scan vulnerability: missing column 'id'") from exc
    if raw_id is None or isinstance(raw_id, bool):
        raise ScanError("failed to scan vulnerability: invalid id")

    return Vulnerability(
        id=str(raw_id),
        name=_text(row, "name"),
        description=_text(row, "description"),
        links=_text(row, "links"),
        severity=_text(row, "severity"),
        package=Package(
            name=_text(row, "package_name"),
            version=_text(row, "package_version"),
            kind=_text(row, "package_kind"),
        ),
        dist=Distribution(
            did=_text(row, "dist_id"),
            name=_text(row, "dist_name"),
            version=_text(row, "dist_version"),
            version_code_name=_text(row, "dist_version_code_name"),
            version_id=_text(row, "dist_version_id"),
            arch=_text(row, "dist_arch"),
            cpe=_text(row, "dist_cpe"),
            pretty_name=_text(row, "dist_pretty_name"),
        ),
        repo=Repository(
            name=_text(row, "repo_name"),
            key=_text(row, "repo_key"),
            uri=_text(row, "repo_uri"),
        ),
        fixed_in_version=_text(row, "fixed_in_version", nullable=True),
    )


def assemble(batch: Batch, records: Sequence[IndexRecord]) -> dict[int, list[Vulnerability]]:
    """Drain one cursor per record, in queue order, into a package-id keyed mapping.

    Records sharing a package id append into the same list. A package id
    only gets an entry once a row matched.
    """
    results: dict[int, list[Vulnerability]] = {}
    for i, record in enumerate(records):
        cursor = batch.next()
        if cursor is None:
            raise BatchProtocolError(f"batch ran out of results at record {i} of {len(records)}")
        for row in cursor:
            v = scan_vulnerability(row)
            results.setdefault(record.package.id, []).append(v)
    return results


async def _rollback(tx: Any) -> None:
    try:
        await tx.rollback()
    except Exception:
        log.warning("vulnstore.rollback_failed", exc_info=True)


async def get_vulnerabilities(
    conn: DriverConnection,
    records: Sequence[IndexRecord],
    opts: GetOpts,
    *,
    batch_timeout: float = DEFAULT_BATCH_TIMEOUT,
) -> dict[int, list[Vulnerability]]:
    """Look up the vulnerabilities affecting every record in one transaction.

    The query is built and validated before any I/O. One statement per record
    is queued into a single batch; its results are drained in queue order.
    Any failure rolls the transaction back and no partial mapping is returned.
    """
    built = build_query(opts.matchers)
    name = fingerprint(built.sql)
    log.debug(
        "vulnstore.query_built",
        name=name,
        matchers=[m.value for m in built.matchers],
    )

    tx = conn.transaction()
    try:
        await tx.start()
    except Exception as exc:
        raise TransactionError("failed to begin transaction") from exc

    try:
        try:
            stmt = await prepare_named(conn, name, built.sql)
        except Exception as exc:
            raise PrepareError(f"failed to prepare statement {name}") from exc

        batch = Batch()
        for record in records:
            batch.queue(stmt, bind_args(record, built.matchers))
        await batch.send(batch_timeout)

        results = assemble(batch, records)
        batch.close()
    except BaseException:
        await _rollback(tx)
        raise

    try:
        await tx.commit()
    except Exception as exc:
        raise CommitError("failed to commit transaction") from exc

    log.debug(
        "vulnstore.get_done",
        records=len(records),
        matched_packages=len(results),
        vulnerabilities=sum(len(vs) for vs in results.values()),
    )
    return results
