from datetime import datetime

from pydantic import Field

from src.constants import USER_STATS_RECORD_ID
from src.database.record_model import StoredRecord
from src.utils.helpers import utc_now


class UserStats(StoredRecord):
    """Running per-user counters.

    This is a cache of aggregates derivable from the user's documents, not a
    source of truth. See ``StatsAggregator.recompute``.
    """

    id: str = Field(default=USER_STATS_RECORD_ID)
    user_id: str = Field(..., description="Owning user ID")

    document_count: int = Field(default=0, ge=0)
    chunk_count: int = Field(default=0, ge=0)
    total_size: int = Field(default=0, ge=0, description="Cumulative bytes")

    last_updated: datetime = Field(default_factory=utc_now)
