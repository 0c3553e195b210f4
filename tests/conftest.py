"""Pytest configuration and shared fixtures.

This module contains fixtures used across all test modules.
"""

import pytest
from pkgvault.archive.reader import build_archive
from pkgvault.models.package import PackageId, PackageType
from pkgvault.registry.registry import PackageRegistry
from pkgvault.stores.memory import MemoryStore

ID_A = PackageId.of("my_packages", "test_a", "1.0")
ID_B = PackageId.of("my_packages", "test_b", "1.0")
ID_C = PackageId.of("my_packages", "test_c", "1.0")
ID_MIXED = PackageId.of("my_packages", "test_mixed", "1.0")


@pytest.fixture
def id_a() -> PackageId:
    """Id of package A (depends on B and C)."""
    return ID_A


@pytest.fixture
def id_b() -> PackageId:
    """Id of package B (depends on C)."""
    return ID_B


@pytest.fixture
def id_c() -> PackageId:
    """Id of package C (no dependencies)."""
    return ID_C


@pytest.fixture
def id_mixed() -> PackageId:
    """Id of the mixed-scope package."""
    return ID_MIXED


@pytest.fixture
def archive_a() -> bytes:
    """Package A depending on B (any version) and C in [1.0,2.0)."""
    return build_archive(
        ID_A,
        files={"/libs/test_a/a.txt": "package a\n"},
        dependencies=["my_packages:test_b", "my_packages:test_c:[1.0,2.0)"],
        filter_roots=["/libs/test_a"],
        package_type=PackageType.APPLICATION,
        description="Test package A",
    )


@pytest.fixture
def archive_b() -> bytes:
    """Package B depending on C (any version)."""
    return build_archive(
        ID_B,
        files={"/libs/test_b/b.txt": "package b\n"},
        dependencies=["my_packages:test_c"],
        filter_roots=["/libs/test_b"],
        package_type=PackageType.APPLICATION,
    )


@pytest.fixture
def archive_c() -> bytes:
    """Package C without dependencies."""
    return build_archive(
        ID_C,
        files={"/libs/test_c/c.txt": "package c\n"},
        filter_roots=["/libs/test_c"],
        package_type=PackageType.APPLICATION,
    )


@pytest.fixture
def archive_mixed() -> bytes:
    """Mixed package with content under /libs (application) and /tmp (content)."""
    return build_archive(
        ID_MIXED,
        files={
            "/libs/foo/a.txt": "application content\n",
            "/tmp/foo/b.txt": "other content\n",
        },
        filter_roots=["/libs/foo", "/tmp/foo"],
        package_type=PackageType.MIXED,
    )


@pytest.fixture
def registry() -> PackageRegistry:
    """Empty in-memory registry."""
    return PackageRegistry()


@pytest.fixture
def store() -> MemoryStore:
    """Empty in-memory target store."""
    return MemoryStore()


@pytest.fixture
def isolated_dirs(tmp_path, monkeypatch) -> dict:
    """Point every XDG directory at a temporary location."""
    dirs = {
        "config": tmp_path / "config",
        "data": tmp_path / "data",
        "state": tmp_path / "state",
    }
    monkeypatch.setenv("XDG_CONFIG_HOME", str(dirs["config"]))
    monkeypatch.setenv("XDG_DATA_HOME", str(dirs["data"]))
    monkeypatch.setenv("XDG_STATE_HOME", str(dirs["state"]))
    return dirs


@pytest.fixture
def archive_files(tmp_path, archive_a, archive_b, archive_c, archive_mixed) -> dict:
    """Fixture archives written to disk, keyed by package name."""
    directory = tmp_path / "archives"
    directory.mkdir()
    files = {}
    for name, data in (
        ("test_a", archive_a),
        ("test_b", archive_b),
        ("test_c", archive_c),
        ("test_mixed", archive_mixed),
    ):
        path = directory / f"{name}-1.0.zip"
        path.write_bytes(data)
        files[name] = path
    return files
