"""
Data models for storage layer.

Defines the cache and project records persisted in SQLite.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class CacheEntry:
    """One cached upstream response.

    At most one entry exists per key; a newer write replaces it. Stale
    entries are never deleted, only overwritten by the next successful fetch.
    """
    key: str
    value: str  # serialized JSON
    written_at: int  # epoch milliseconds


@dataclass(frozen=True)
class ProjectSummary:
    """Listing row for a saved project."""
    id: str
    name: str
    updated_at: int


@dataclass(frozen=True)
class ProjectRecord:
    """A saved prompt document owned by one session."""
    id: str
    session_id: str
    name: str
    payload: dict
    updated_at: int
