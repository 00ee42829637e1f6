"""Tests for VulnerabilityDAO against a mocked AsyncSession."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from vulnmatch.core.entities import Distribution, Package, Vulnerability
from vulnmatch.dao.vulnerability_dao import VulnerabilityDAO
from vulnmatch.models.vulnerability import Vulnerability as VulnerabilityRow


@pytest.fixture
def session():
    sess = MagicMock()
    sess.flush = AsyncMock()
    sess.execute = AsyncMock()
    return sess


class TestBulkInsert:
    async def test_rows_carry_entity_fields(self, session):
        vuln = Vulnerability(
            name="CVE-1234",
            severity="Important",
            package=Package(name="bash", kind="binary"),
            dist=Distribution(did="rhel", version_id="8"),
            fixed_in_version="4.4.19-12.el8",
        )

        [row] = await VulnerabilityDAO().bulk_insert(session, [vuln], updater="rhel-oval")

        assert isinstance(row, VulnerabilityRow)
        assert row.updater == "rhel-oval"
        assert row.package_name == "bash"
        assert row.dist_id == "rhel"
        assert row.dist_version_id == "8"
        assert row.fixed_in_version == "4.4.19-12.el8"
        session.add_all.assert_called_once_with([row])
        session.flush.assert_awaited_once()

    async def test_empty(self, session):
        assert await VulnerabilityDAO().bulk_insert(session, []) == []


class TestCount:
    async def test_count_by_package(self, session):
        session.execute.return_value = MagicMock(scalar_one=MagicMock(return_value=3))

        assert await VulnerabilityDAO().count_by_package(session, "bash") == 3

        query = session.execute.await_args.args[0]
        sql = str(query)
        assert "count(" in sql
        assert "package_name" in sql

    async def test_count_all(self, session):
        session.execute.return_value = MagicMock(scalar_one=MagicMock(return_value=0))
        assert await VulnerabilityDAO().count(session) == 0
        assert "vuln" in str(session.execute.await_args.args[0])
