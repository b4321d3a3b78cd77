"""Snapshot persistence layer.

Provides SQLite database management, the typed snapshot store, and the
retry-protected reserve fetcher that feeds it.
"""

from reserve_sampler.data.database import SnapshotDatabase
from reserve_sampler.data.fetcher import ReserveFetcher
from reserve_sampler.data.store import SnapshotStore

__all__ = [
    "ReserveFetcher",
    "SnapshotDatabase",
    "SnapshotStore",
]
