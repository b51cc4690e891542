"""Local storage for deal snapshots and generated summaries."""

from deal_updates.store.snapshot_store import SnapshotRecord, SnapshotStore
from deal_updates.store.summary_cache import SummaryCacheStore

__all__ = [
    "SnapshotRecord",
    "SnapshotStore",
    "SummaryCacheStore",
]
