"""Core infrastructure: errors, listeners, paths, settings and history state."""
