"""RHEL distribution scanner.

Matches both the PRETTY_NAME of ``etc/os-release``
(``Red Hat Enterprise Linux Server 7.7 (Maipo)``) and the release string of
``etc/redhat-release`` (``Red Hat Enterprise Linux Server release 7.7 (Maipo)``).
"""

from __future__ import annotations

import re

import structlog

from vulnmatch.core.entities import Distribution
from vulnmatch.indexer.models import Layer, LayerFileNotFoundError
from vulnmatch.indexer.registry import register_scanner

log = structlog.get_logger("vulnmatch.indexer")

OS_RELEASE_PATH = "etc/os-release"
RH_RELEASE_PATH = "etc/redhat-release"

_RELEASES = (3, 4, 5, 6, 7, 8)

_RHEL_PATTERNS = [
    (release, re.compile(rf"Red Hat Enterprise Linux (Server)?\s*(release)?\s*{release}(\.\d)?"))
    for release in _RELEASES
]


def release_distribution(release: int) -> Distribution:
    """The canonical distribution for a RHEL major release."""
    return Distribution(
        did="rhel",
        name="Red Hat Enterprise Linux Server",
        version=str(release),
        version_id=str(release),
        cpe=f"cpe:/o:redhat:enterprise_linux:{release}",
        pretty_name=f"Red Hat Enterprise Linux Server {release}",
    )


class RhelDistributionScanner:
    name = "rhel"
    version = "v0.0.1"
    kind = "distribution"

    def scan(self, layer: Layer) -> list[Distribution] | None:
        """Look for a RHEL release in the layer's release files.

        Returns None if neither file exists and an empty list if the files
        exist but no release pattern matches.
        """
        log.debug("scanner.start", scanner=self.name, layer=layer.hash)
        try:
            files = layer.files(OS_RELEASE_PATH, RH_RELEASE_PATH)
        except LayerFileNotFoundError:
            log.debug("scanner.no_release_file", scanner=self.name, layer=layer.hash)
            return None

        for content in files.values():
            dist = self.parse(content.decode("utf-8", errors="replace"))
            if dist is not None:
                return [dist]
        return []

    @staticmethod
    def parse(text: str) -> Distribution | None:
        for release, pattern in _RHEL_PATTERNS:
            if pattern.search(text):
                return release_distribution(release)
        return None


register_scanner(RhelDistributionScanner())
