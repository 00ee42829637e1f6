"""Matcher vocabulary — distribution attributes usable in a match clause."""

from __future__ import annotations

import enum

from sqlalchemy.orm import InstrumentedAttribute

from vulnmatch.core.entities import IndexRecord
from vulnmatch.models.vulnerability import Vulnerability
from vulnmatch.vulnstore import UnknownMatcherError


class Matcher(str, enum.Enum):
    """Closed set of match constraints.

    Declaration order is the canonical order used when building queries.
    """

    DISTRIBUTION_DID = "distribution_did"
    DISTRIBUTION_NAME = "distribution_name"
    DISTRIBUTION_VERSION = "distribution_version"
    DISTRIBUTION_VERSION_CODE_NAME = "distribution_version_code_name"
    DISTRIBUTION_VERSION_ID = "distribution_version_id"
    DISTRIBUTION_ARCH = "distribution_arch"
    DISTRIBUTION_CPE = "distribution_cpe"
    DISTRIBUTION_PRETTY_NAME = "distribution_pretty_name"


# matcher -> (vuln table column, Distribution attribute)
_BINDINGS: dict[Matcher, tuple[InstrumentedAttribute[str], str]] = {
    Matcher.DISTRIBUTION_DID: (Vulnerability.dist_id, "did"),
    Matcher.DISTRIBUTION_NAME: (Vulnerability.dist_name, "name"),
    Matcher.DISTRIBUTION_VERSION: (Vulnerability.dist_version, "version"),
    Matcher.DISTRIBUTION_VERSION_CODE_NAME: (
        Vulnerability.dist_version_code_name,
        "version_code_name",
    ),
    Matcher.DISTRIBUTION_VERSION_ID: (Vulnerability.dist_version_id, "version_id"),
    Matcher.DISTRIBUTION_ARCH: (Vulnerability.dist_arch, "arch"),
    Matcher.DISTRIBUTION_CPE: (Vulnerability.dist_cpe, "cpe"),
    Matcher.DISTRIBUTION_PRETTY_NAME: (Vulnerability.dist_pretty_name, "pretty_name"),
}


def parse_matcher(value: Matcher | str) -> Matcher:
    """Return the :class:`Matcher` for *value*.

    Raises :class:`UnknownMatcherError` for anything outside the vocabulary.
    """
    if isinstance(value, Matcher):
        return value
    try:
        return Matcher(value)
    except ValueError as exc:
        raise UnknownMatcherError(f"unknown matcher: {value!r}") from exc


def column_for(matcher: Matcher) -> InstrumentedAttribute[str]:
    """Vuln table column constrained by *matcher*."""
    return _BINDINGS[matcher][0]


def value_of(record: IndexRecord, matcher: Matcher) -> str:
    """Distribution attribute of *record* bound for *matcher*.

    A record without a distribution binds the empty string, which only
    matches vulnerabilities recorded without that attribute.
    """
    if record.distribution is None:
        return ""
    return getattr(record.distribution, _BINDINGS[matcher][1])
