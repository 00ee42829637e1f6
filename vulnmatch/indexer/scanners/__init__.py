"""Distribution scanners — auto-registered on import."""

from vulnmatch.indexer.scanners import rhel  # noqa: F401
