"""Unit tests for the pack command."""

from pathlib import Path

from pkgvault.archive.reader import read_archive
from pkgvault.cli.commands.pack import _default_filter_roots
from pkgvault.cli.main import app
from pkgvault.models.package import Dependency, PackageType
from typer.testing import CliRunner

runner = CliRunner()


def _content(tmp_path: Path) -> Path:
    source = tmp_path / "src"
    (source / "libs" / "foo").mkdir(parents=True)
    (source / "libs" / "foo" / "a.txt").write_text("a", encoding="utf-8")
    (source / "tmp").mkdir()
    (source / "tmp" / "b.txt").write_text("b", encoding="utf-8")
    return source


class TestPackCommand:
    """Tests for pkgvault pack."""

    def test_pack_directory(self, tmp_path: Path) -> None:
        """Files are packed with store paths, dependencies and derived filter."""
        output = tmp_path / "out.zip"

        result = runner.invoke(
            app,
            [
                "pack",
                "g:foo:1.0",
                "-s",
                str(_content(tmp_path)),
                "-o",
                str(output),
                "-d",
                "g:bar:[1.0,2.0)",
                "-t",
                "mixed",
                "--description",
                "Foo",
            ],
        )

        assert result.exit_code == 0, result.output
        archive = read_archive(output.read_bytes())
        assert str(archive.id) == "g:foo:1.0"
        assert archive.package_type == PackageType.MIXED
        assert archive.dependencies == (Dependency.parse("g:bar:[1.0,2.0)"),)
        assert archive.filter.root_paths() == ["/libs/foo", "/tmp"]
        assert [entry.path for entry in archive.entries()] == ["/libs/foo/a.txt", "/tmp/b.txt"]

    def test_explicit_filter(self, tmp_path: Path) -> None:
        output = tmp_path / "out.zip"
        result = runner.invoke(
            app, ["pack", "g:foo:1.0", "-s", str(_content(tmp_path)), "-o", str(output), "-f", "/libs"]
        )
        assert result.exit_code == 0
        assert read_archive(output.read_bytes()).filter.root_paths() == ["/libs"]

    def test_missing_source(self, tmp_path: Path) -> None:
        result = runner.invoke(app, ["pack", "g:foo:1.0", "-s", str(tmp_path / "none")])
        assert result.exit_code == 1
        assert "Source directory not found" in result.output

    def test_invalid_dependency(self, tmp_path: Path) -> None:
        result = runner.invoke(app, ["pack", "g:foo:1.0", "-s", str(_content(tmp_path)), "-d", "nogroup"])
        assert result.exit_code == 1
        assert "Invalid dependency" in result.output

    def test_empty_source(self, tmp_path: Path) -> None:
        (tmp_path / "empty").mkdir()
        result = runner.invoke(app, ["pack", "g:foo:1.0", "-s", str(tmp_path / "empty")])
        assert result.exit_code == 1


class TestDefaultFilterRoots:
    """Tests for filter root derivation."""

    def test_two_levels(self) -> None:
        assert _default_filter_roots(["/libs/foo/a", "/libs/foo/b", "/libs/bar/c", "/etc/x"]) == [
            "/libs/foo",
            "/libs/bar",
            "/etc",
        ]
