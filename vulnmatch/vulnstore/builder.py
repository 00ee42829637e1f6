"""Match query builder.

The query selects every vuln row whose package name equals either the
record's source package name or its own package name, further constrained by
one equality per requested matcher::

    SELECT ... FROM vuln
    WHERE (vuln.package_name = $1 OR vuln.package_name = $2)
      AND vuln.dist_id = $3
      AND vuln.dist_version_id = $4

``$1`` is the source package name and ``$2`` the package name. Matcher binds
follow, in the order of :attr:`BuiltQuery.matchers`.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from sqlalchemy import Select, bindparam, or_, select
from sqlalchemy.dialects.postgresql.asyncpg import PGDialect_asyncpg
from sqlalchemy.exc import SQLAlchemyError

from vulnmatch.models.vulnerability import Vulnerability
from vulnmatch.vulnstore import QueryBuildError
from vulnmatch.vulnstore.matchers import Matcher, column_for, parse_matcher

# Scan order of the result columns; see get.scan_vulnerability.
RESULT_COLUMNS = (
    Vulnerability.id,
    Vulnerability.name,
    Vulnerability.description,
    Vulnerability.links,
    Vulnerability.severity,
    Vulnerability.package_name,
    Vulnerability.package_version,
    Vulnerability.package_kind,
    Vulnerability.dist_id,
    Vulnerability.dist_name,
    Vulnerability.dist_version,
    Vulnerability.dist_version_code_name,
    Vulnerability.dist_version_id,
    Vulnerability.dist_arch,
    Vulnerability.dist_cpe,
    Vulnerability.repo_name,
    Vulnerability.repo_key,
    Vulnerability.repo_uri,
    Vulnerability.dist_pretty_name,
    Vulnerability.fixed_in_version,
)

_DIALECT = PGDialect_asyncpg(paramstyle="numeric_dollar")


@dataclass(frozen=True)
class BuiltQuery:
    """Rendered SQL plus the matchers whose binds follow the package binds."""

    sql: str
    matchers: tuple[Matcher, ...]


def dedupe_matchers(matchers: Iterable[Matcher | str]) -> tuple[Matcher, ...]:
    """Validate *matchers* and return them deduplicated in vocabulary order.

    Raises :class:`UnknownMatcherError` on the first value outside the vocabulary.
    """
    requested = {parse_matcher(m) for m in matchers}
    return tuple(m for m in Matcher if m in requested)


def _select(matchers: tuple[Matcher, ...]) -> Select:
    stmt = select(*RESULT_COLUMNS).where(
        or_(
            Vulnerability.package_name == bindparam("package_source_name"),
            Vulnerability.package_name == bindparam("package_name"),
        )
    )
    for m in matchers:
        stmt = stmt.where(column_for(m) == bindparam(m.value))
    return stmt


def build_query(matchers: Iterable[Matcher | str]) -> BuiltQuery:
    """Build the match query for *matchers*.

    Equal matcher sets produce equal results regardless of order or
    duplicates. An empty set is valid and matches on package name alone.
    """
    deduped = dedupe_matchers(matchers)
    try:
        sql = str(_select(deduped).compile(dialect=_DIALECT))
    except SQLAlchemyError as exc:
        raise QueryBuildError("failed to render match query") from exc
    return BuiltQuery(sql=sql, matchers=deduped)
