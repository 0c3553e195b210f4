"""pkgvault - versioned content package registry and installer."""

__version__ = "0.1.0"
