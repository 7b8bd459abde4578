"""
Keyed record persistence scoped by owner.

Every record lives under the key ``{owner_id}/{record_id}``; listing returns
the records of exactly one owner, so one user's listing never observes
another user's records.
"""

import asyncio
import copy
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, AsyncIterator, Dict, List, Optional, Sequence, Tuple

from motor.motor_asyncio import AsyncIOMotorCollection
from pymongo import ASCENDING

logger = logging.getLogger(__name__)

RawRecord = Dict[str, Any]


def make_key(owner_id: str, record_id: str) -> str:
    """Join owner and record id. Record ids may not contain a slash."""
    if "/" in record_id:
        raise ValueError(f"Record id may not contain '/': {record_id!r}")
    return f"{owner_id}/{record_id}"


def split_key(key: str) -> Tuple[str, str]:
    # owner ids may contain slashes, record ids never do
    owner_id, _, record_id = key.rpartition("/")
    return owner_id, record_id


@dataclass
class BatchItemResult:
    """Outcome of one item of a fan-out batch."""

    record_id: str
    ok: bool
    error: Optional[Exception] = None


class RecordStore(ABC):
    """Abstract keyed store; implementations only differ in the substrate."""

    name: str = "records"

    @abstractmethod
    async def put(self, owner_id: str, record_id: str, data: RawRecord) -> None:
        """Upsert a record. Returning normally means the write happened."""

    @abstractmethod
    async def get(self, owner_id: str, record_id: str) -> Optional[RawRecord]:
        """Return the raw record or None when absent."""

    @abstractmethod
    def list(self, owner_id: str) -> AsyncIterator[Tuple[str, RawRecord]]:
        """Yield ``(key, raw)`` for every record of ``owner_id``.

        The iterator is forward-only and must be drained per use.
        """

    @abstractmethod
    async def delete(self, owner_id: str, record_id: str) -> bool:
        """Delete a record, returning whether it existed."""

    async def put_many(
        self, owner_id: str, items: Sequence[Tuple[str, RawRecord]]
    ) -> List[BatchItemResult]:
        """Write all items concurrently and report each outcome."""
        outcomes = await asyncio.gather(
            *(self.put(owner_id, record_id, data) for record_id, data in items),
            return_exceptions=True,
        )
        return self._collect(
            "put", owner_id, [record_id for record_id, _ in items], outcomes
        )

    async def delete_many(
        self, owner_id: str, record_ids: Sequence[str]
    ) -> List[BatchItemResult]:
        """Delete all records concurrently and report each outcome."""
        outcomes = await asyncio.gather(
            *(self.delete(owner_id, record_id) for record_id in record_ids),
            return_exceptions=True,
        )
        return self._collect("delete", owner_id, list(record_ids), outcomes)

    def _collect(
        self,
        operation: str,
        owner_id: str,
        record_ids: List[str],
        outcomes: List[Any],
    ) -> List[BatchItemResult]:
        results = []
        for record_id, outcome in zip(record_ids, outcomes):
            if isinstance(outcome, Exception):
                logger.warning(
                    f"{self.name}: {operation} failed for {make_key(owner_id, record_id)}: {outcome}"
                )
                results.append(BatchItemResult(record_id, ok=False, error=outcome))
            else:
                results.append(BatchItemResult(record_id, ok=True))
        return results


class MongoRecordStore(RecordStore):
    """Record store backed by one MongoDB collection.

    The document ``_id`` is the full key and ``owner_id`` is stored alongside
    so a listing is a single indexed query.
    """

    def __init__(self, collection: AsyncIOMotorCollection):
        self.collection = collection
        self.name = collection.name

    async def ensure_indexes(self) -> None:
        await self.collection.create_index([("owner_id", ASCENDING)])

    async def put(self, owner_id: str, record_id: str, data: RawRecord) -> None:
        key = make_key(owner_id, record_id)
        document = {**data, "_id": key, "owner_id": owner_id}
        await self.collection.replace_one({"_id": key}, document, upsert=True)

    async def get(self, owner_id: str, record_id: str) -> Optional[RawRecord]:
        document = await self.collection.find_one({"_id": make_key(owner_id, record_id)})
        return self._strip(document) if document else None

    async def list(self, owner_id: str) -> AsyncIterator[Tuple[str, RawRecord]]:
        cursor = self.collection.find({"owner_id": owner_id}).sort("_id", ASCENDING)
        async for document in cursor:
            key = document["_id"]
            yield key, self._strip(document)

    async def delete(self, owner_id: str, record_id: str) -> bool:
        result = await self.collection.delete_one({"_id": make_key(owner_id, record_id)})
        return result.deleted_count > 0

    @staticmethod
    def _strip(document: RawRecord) -> RawRecord:
        return {k: v for k, v in document.items() if k not in ("_id", "owner_id")}


class InMemoryRecordStore(RecordStore):
    """Process-local record store for local runs and tests."""

    def __init__(self, name: str = "memory"):
        self.name = name
        self._records: Dict[str, RawRecord] = {}

    async def put(self, owner_id: str, record_id: str, data: RawRecord) -> None:
        self._records[make_key(owner_id, record_id)] = copy.deepcopy(data)

    async def get(self, owner_id: str, record_id: str) -> Optional[RawRecord]:
        data = self._records.get(make_key(owner_id, record_id))
        return copy.deepcopy(data) if data is not None else None

    async def list(self, owner_id: str) -> AsyncIterator[Tuple[str, RawRecord]]:
        # snapshot so deletes during iteration are safe
        keys = [key for key in self._records if split_key(key)[0] == owner_id]
        for key in keys:
            data = self._records.get(key)
            if data is not None:
                yield key, copy.deepcopy(data)

    async def delete(self, owner_id: str, record_id: str) -> bool:
        return self._records.pop(make_key(owner_id, record_id), None) is not None

    def __len__(self) -> int:
        return len(self._records)
