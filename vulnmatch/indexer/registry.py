"""Scanner registry — distribution scanners keyed by name."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from vulnmatch.core.entities import Distribution
from vulnmatch.indexer.models import Layer


@runtime_checkable
class DistributionScanner(Protocol):
    """Interface that every distribution scanner must satisfy.

    ``scan`` returns None when the layer holds none of the files the scanner
    looks at, and an empty list when the files exist but match nothing.
    """

    name: str
    version: str
    kind: str

    def scan(self, layer: Layer) -> list[Distribution] | None: ...


SCANNER_REGISTRY: dict[str, DistributionScanner] = {}


def register_scanner(scanner: DistributionScanner) -> None:
    """Register a scanner instance by its name."""
    SCANNER_REGISTRY[scanner.name] = scanner
