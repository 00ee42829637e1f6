"""Domain entities shared by the indexer and the vulnerability store."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from vulnmatch.vulnstore.matchers import Matcher


@dataclass
class Package:
    """A package observed in a layer.

    ``source`` is the source package the binary was built from, when the
    package manager records one.
    """

    id: int = 0
    name: str = ""
    version: str = ""
    kind: str = ""
    source: Package | None = None


@dataclass
class Distribution:
    did: str = ""
    name: str = ""
    version: str = ""
    version_code_name: str = ""
    version_id: str = ""
    arch: str = ""
    cpe: str = ""
    pretty_name: str = ""


@dataclass
class Repository:
    name: str = ""
    key: str = ""
    uri: str = ""


@dataclass(frozen=True)
class IndexRecord:
    """A package together with the distribution and repository it was found under."""

    package: Package
    distribution: Distribution | None = None
    repository: Repository | None = None


@dataclass
class Vulnerability:
    """One row of the vulnerability table, with owned sub-objects."""

    id: str = ""
    name: str = ""
    description: str = ""
    links: str = ""
    severity: str = ""
    package: Package = field(default_factory=Package)
    dist: Distribution = field(default_factory=Distribution)
    repo: Repository = field(default_factory=Repository)
    fixed_in_version: str = ""


@dataclass(frozen=True)
class GetOpts:
    """Per-call options for a vulnerability lookup.

    ``matchers`` may hold :class:`~vulnmatch.vulnstore.matchers.Matcher`
    members or their string spellings, in any order and with duplicates.
    """

    matchers: tuple[Matcher | str, ...] = ()
