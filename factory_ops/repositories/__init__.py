"""Data access layer: one repository per domain, all built on BaseRepository."""
