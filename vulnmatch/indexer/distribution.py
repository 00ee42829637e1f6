"""Distribution identification and index record assembly for a layer."""

from __future__ import annotations

from collections.abc import Iterable, Sequence

import structlog

# Ensure scanners are registered before any layer is identified.
import vulnmatch.indexer.scanners  # noqa: F401
from vulnmatch.core.entities import Distribution, IndexRecord, Package, Repository
from vulnmatch.indexer.models import Layer
from vulnmatch.indexer.registry import SCANNER_REGISTRY, DistributionScanner

log = structlog.get_logger("vulnmatch.indexer")


def identify_distribution(
    layer: Layer, scanners: Iterable[DistributionScanner] | None = None
) -> Distribution | None:
    """Return the first distribution any scanner finds in *layer*.

    Defaults to every registered scanner, in registration order.
    """
    if scanners is None:
        scanners = SCANNER_REGISTRY.values()
    for scanner in scanners:
        found = scanner.scan(layer)
        if found:
            log.debug(
                "indexer.distribution_found",
                scanner=scanner.name,
                layer=layer.hash,
                did=found[0].did,
                version_id=found[0].version_id,
            )
            return found[0]
    return None


def index_records(
    layer: Layer,
    packages: Sequence[Package],
    repository: Repository | None = None,
    scanners: Iterable[DistributionScanner] | None = None,
) -> list[IndexRecord]:
    """Pair every package found in *layer* with the layer's distribution."""
    dist = identify_distribution(layer, scanners)
    return [IndexRecord(package=pkg, distribution=dist, repository=repository) for pkg in packages]
