"""VulnerabilityDAO — vuln table writes and bookkeeping reads."""

from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from vulnmatch.core import entities
from vulnmatch.dao.base import BaseDAO
from vulnmatch.models.vulnerability import Vulnerability


def _row_values(v: entities.Vulnerability, updater: str) -> dict[str, Any]:
    return {
        "updater": updater,
        "name": v.name,
        "description": v.description,
        "links": v.links,
        "severity": v.severity,
        "package_name": v.package.name,
        "package_version": v.package.version,
        "package_kind": v.package.kind,
        "dist_id": v.dist.did,
        "dist_name": v.dist.name,
        "dist_version": v.dist.version,
        "dist_version_code_name": v.dist.version_code_name,
        "dist_version_id": v.dist.version_id,
        "dist_arch": v.dist.arch,
        "dist_cpe": v.dist.cpe,
        "dist_pretty_name": v.dist.pretty_name,
        "repo_name": v.repo.name,
        "repo_key": v.repo.key,
        "repo_uri": v.repo.uri,
        "fixed_in_version": v.fixed_in_version,
    }


class VulnerabilityDAO(BaseDAO[Vulnerability]):
    model = Vulnerability

    async def bulk_insert(
        self,
        session: AsyncSession,
        vulns: list[entities.Vulnerability],
        *,
        updater: str = "",
    ) -> list[Vulnerability]:
        """Insert *vulns* as rows attributed to *updater*.

        The database assigns ids; the passed entities are left untouched.
        """
        return await self.bulk_create(session, [_row_values(v, updater) for v in vulns])

    async def count_by_package(self, session: AsyncSession, package_name: str) -> int:
        """Count vulns recorded against *package_name*."""
        query = select(Vulnerability).where(Vulnerability.package_name == package_name)
        return await self.count(session, query)
