"""Package archive reading and writing."""

from pkgvault.archive.reader import ArchiveEntry, PackageArchive, build_archive, read_archive
from pkgvault.archive.stream import ReplayableStream

__all__ = ["ArchiveEntry", "PackageArchive", "ReplayableStream", "build_archive", "read_archive"]
