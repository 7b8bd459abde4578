"""
Per-user running counters and their reconciliation.

The counters are adjusted incrementally on every upload and delete. The
read-modify-write is not atomic, so concurrent adjustments for one user can
lose updates; ``recompute`` derives the same values from a full scan of the
user's documents and is the source of truth.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Optional

from src.database.models.user_stats import UserStats
from src.database.stores import DocumentStore, StatsStore
from src.utils.helpers import BestEffortResult, run_best_effort, utc_now

logger = logging.getLogger(__name__)

COUNTER_FIELDS = ("document_count", "chunk_count", "total_size")


@dataclass
class StatsSnapshot:
    """Aggregates derived from a full scan of a user's documents."""

    document_count: int = 0
    chunk_count: int = 0
    total_size: int = 0
    oldest_document: Optional[datetime] = None
    newest_document: Optional[datetime] = None

    def matches(self, stats: UserStats) -> bool:
        return all(getattr(self, name) == getattr(stats, name) for name in COUNTER_FIELDS)


class StatsAggregator:
    def __init__(self, stats_store: StatsStore, document_store: DocumentStore):
        self.stats_store = stats_store
        self.document_store = document_store

    async def get(self, user_id: str) -> UserStats:
        """Return the cached counters, zeros when none were written yet."""
        return await self.stats_store.load(user_id) or UserStats(user_id=user_id)

    async def adjust(self, user_id: str, field: str, delta: int) -> UserStats:
        return await self.apply(user_id, {field: delta})

    async def apply(self, user_id: str, deltas: Dict[str, int]) -> UserStats:
        """Add ``deltas`` to the counters, clamping each at zero."""
        unknown = set(deltas) - set(COUNTER_FIELDS)
        if unknown:
            raise ValueError(f"Unknown stats fields: {sorted(unknown)}")

        stats = await self.get(user_id)
        for name, delta in deltas.items():
            setattr(stats, name, max(0, getattr(stats, name) + delta))
        stats.last_updated = utc_now()
        await self.stats_store.save(user_id, stats)
        return stats

    async def apply_best_effort(
        self, user_id: str, deltas: Dict[str, int]
    ) -> BestEffortResult:
        """Like ``apply`` but never raises; failures are logged only."""
        return await run_best_effort(
            f"stats update for {user_id}", self.apply(user_id, deltas)
        )

    async def recompute(self, user_id: str) -> StatsSnapshot:
        snapshot = StatsSnapshot()
        async for document in self.document_store.iter(user_id):
            snapshot.document_count += 1
            snapshot.chunk_count += document.chunk_count
            snapshot.total_size += document.file_size

            created = document.created_at
            if snapshot.oldest_document is None or created < snapshot.oldest_document:
                snapshot.oldest_document = created
            if snapshot.newest_document is None or created > snapshot.newest_document:
                snapshot.newest_document = created
        return snapshot

    async def reconcile(self, user_id: str) -> StatsSnapshot:
        """Recompute from documents and overwrite the cache when it drifted.

        Reading or writing the cache is best-effort; the scan is not.
        """
        snapshot = await self.recompute(user_id)

        try:
            cached = await self.get(user_id)
        except Exception as e:
            logger.warning(f"Could not read cached stats for {user_id}: {e}")
            return snapshot

        if not snapshot.matches(cached):
            logger.warning(
                f"Stats drift for {user_id}: cache "
                f"({cached.document_count}, {cached.chunk_count}, {cached.total_size}) "
                f"vs scan ({snapshot.document_count}, {snapshot.chunk_count}, "
                f"{snapshot.total_size})"
            )
            corrected = UserStats(
                user_id=user_id,
                document_count=snapshot.document_count,
                chunk_count=snapshot.chunk_count,
                total_size=snapshot.total_size,
            )
            await run_best_effort(
                f"stats reconciliation for {user_id}",
                self.stats_store.save(user_id, corrected),
            )
        return snapshot
