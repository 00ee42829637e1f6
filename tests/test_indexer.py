"""Tests for distribution scanning and index record assembly."""

from __future__ import annotations

import pytest

from vulnmatch.core.entities import Distribution, Package, Repository
from vulnmatch.indexer.distribution import identify_distribution, index_records
from vulnmatch.indexer.models import Layer, LayerFileNotFoundError
from vulnmatch.indexer.registry import SCANNER_REGISTRY, DistributionScanner
from vulnmatch.indexer.scanners.rhel import RhelDistributionScanner, release_distribution

OS_RELEASE_8 = b"""NAME="Red Hat Enterprise Linux"
VERSION="8.3 (Ootpa)"
ID="rhel"
VERSION_ID="8.3"
PRETTY_NAME="Red Hat Enterprise Linux 8.3 (Ootpa)"
"""


class _StaticScanner:
    name = "static"
    version = "v1"
    kind = "distribution"

    def __init__(self, result):
        self.result = result

    def scan(self, layer):
        return self.result


class TestLayer:
    def test_files_found(self):
        layer = Layer(hash="sha256:aa", contents={"etc/os-release": b"x"})
        assert layer.files("/etc/os-release", "etc/redhat-release") == {"etc/os-release": b"x"}

    def test_files_missing(self):
        with pytest.raises(LayerFileNotFoundError):
            Layer(hash="sha256:aa").files("etc/os-release")


class TestRhelScanner:
    def test_registered(self):
        assert isinstance(SCANNER_REGISTRY["rhel"], RhelDistributionScanner)
        assert isinstance(SCANNER_REGISTRY["rhel"], DistributionScanner)

    @pytest.mark.parametrize(
        "text,release",
        [
            ("Red Hat Enterprise Linux Server release 7.7 (Maipo)", 7),
            ("Red Hat Enterprise Linux Server 7.7 (Maipo)", 7),
            ("Red Hat Enterprise Linux release 8.2 (Ootpa)", 8),
            ("Red Hat Enterprise Linux Server release 6.10 (Santiago)", 6),
            ("Red Hat Enterprise Linux Server release 5.11 (Tikanga)", 5),
            ("Red Hat Enterprise Linux AS release 4 (Nahant Update 9)", None),
        ],
    )
    def test_parse(self, text, release):
        dist = RhelDistributionScanner.parse(text)
        if release is None:
            assert dist is None
        else:
            assert dist == release_distribution(release)

    def test_release_distribution(self):
        dist = release_distribution(8)
        assert dist.did == "rhel"
        assert dist.version_id == "8"
        assert dist.cpe == "cpe:/o:redhat:enterprise_linux:8"
        assert dist.pretty_name == "Red Hat Enterprise Linux Server 8"

    def test_scan_os_release(self):
        layer = Layer(hash="sha256:aa", contents={"etc/os-release": OS_RELEASE_8})
        assert RhelDistributionScanner().scan(layer) == [release_distribution(8)]

    def test_scan_no_release_files(self):
        layer = Layer(hash="sha256:aa", contents={"usr/bin/bash": b"\x7fELF"})
        assert RhelDistributionScanner().scan(layer) is None

    def test_scan_non_rhel(self):
        layer = Layer(hash="sha256:aa", contents={"etc/os-release": b'ID="debian"\n'})
        assert RhelDistributionScanner().scan(layer) == []


class TestIdentify:
    def test_first_match_wins(self):
        a = Distribution(did="a")
        b = Distribution(did="b")
        layer = Layer(hash="sha256:aa")
        found = identify_distribution(
            layer,
            [_StaticScanner(None), _StaticScanner([]), _StaticScanner([a]), _StaticScanner([b])],
        )
        assert found is a

    def test_nothing_found(self):
        assert identify_distribution(Layer(hash="sha256:aa"), [_StaticScanner(None)]) is None

    def test_default_scanners(self):
        layer = Layer(
            hash="sha256:aa",
            contents={"etc/redhat-release": b"Red Hat Enterprise Linux Server release 7.9 (Maipo)"},
        )
        assert identify_distribution(layer) == release_distribution(7)

    def test_index_records(self):
        layer = Layer(hash="sha256:aa", contents={"etc/os-release": OS_RELEASE_8})
        repo = Repository(name="rhel-8-baseos")
        packages = [Package(id=1, name="bash"), Package(id=2, name="zsh")]

        records = index_records(layer, packages, repo)

        assert [r.package.id for r in records] == [1, 2]
        assert all(r.distribution == release_distribution(8) for r in records)
        assert all(r.repository is repo for r in records)
