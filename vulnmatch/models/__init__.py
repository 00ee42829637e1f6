"""SQLAlchemy ORM models — one file per table."""

from vulnmatch.models.vulnerability import Vulnerability

__all__ = [
    "Vulnerability",
]
