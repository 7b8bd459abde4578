"""
Typed stores on top of ``RecordStore``.

A ``TypedStore`` converts between raw records and their pydantic models.
Listing skips records that fail to parse and logs them, so one malformed
record never aborts a scan.
"""

import logging
from dataclasses import dataclass
from typing import AsyncIterator, Generic, List, Optional, Sequence, Type, TypeVar

from src.constants import (
    CHUNKS_COLLECTION,
    DOCUMENTS_COLLECTION,
    USER_STATS_COLLECTION,
    USER_STATS_RECORD_ID,
)
from src.database.models.chunk import ChunkRecord
from src.database.models.document import DocumentRecord
from src.database.models.user_stats import UserStats
from src.database.mongo import AsyncMongoDBManager
from src.database.record_model import StoredRecord
from src.database.record_store import (
    BatchItemResult,
    InMemoryRecordStore,
    MongoRecordStore,
    RecordStore,
    split_key,
)
from src.utils.errors import RecordSchemaError
from src.utils.helpers import chunk_id_prefix

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=StoredRecord)


class TypedStore(Generic[T]):
    model: Type[T]

    def __init__(self, records: RecordStore):
        self.records = records

    async def save(self, owner_id: str, record: T) -> None:
        await self.records.put(owner_id, record.id, record.to_dict())

    async def find(self, owner_id: str, record_id: str) -> Optional[T]:
        """Return the parsed record, None when absent.

        Raises:
            RecordSchemaError: if the stored record cannot be parsed.
        """
        data = await self.records.get(owner_id, record_id)
        if data is None:
            return None
        return self.model.from_dict(data, key=f"{owner_id}/{record_id}")

    async def iter(self, owner_id: str) -> AsyncIterator[T]:
        async for key, data in self.records.list(owner_id):
            try:
                yield self.model.from_dict(data, key=key)
            except RecordSchemaError as e:
                logger.warning(
                    f"Skipping record in {self.records.name}: {e.message}: {e.reason}"
                )

    async def all(self, owner_id: str) -> List[T]:
        return [record async for record in self.iter(owner_id)]

    async def remove(self, owner_id: str, record_id: str) -> bool:
        return await self.records.delete(owner_id, record_id)

    async def save_many(
        self, owner_id: str, records: Sequence[T]
    ) -> List[BatchItemResult]:
        return await self.records.put_many(
            owner_id, [(record.id, record.to_dict()) for record in records]
        )

    async def remove_many(
        self, owner_id: str, record_ids: Sequence[str]
    ) -> List[BatchItemResult]:
        return await self.records.delete_many(owner_id, record_ids)


class DocumentStore(TypedStore[DocumentRecord]):
    model = DocumentRecord


class ChunkStore(TypedStore[ChunkRecord]):
    model = ChunkRecord

    async def ids_for_document(self, owner_id: str, document_id: str) -> List[str]:
        """Scan the owner's chunk keys for ``document_id``.

        Works from the keys, so chunks that no longer parse are still found.
        """
        prefix = chunk_id_prefix(document_id)
        ids = []
        async for key, _ in self.records.list(owner_id):
            _, record_id = split_key(key)
            if record_id.startswith(prefix):
                ids.append(record_id)
        return ids


class StatsStore(TypedStore[UserStats]):
    model = UserStats

    async def load(self, user_id: str) -> Optional[UserStats]:
        return await self.find(user_id, USER_STATS_RECORD_ID)


@dataclass
class RagStores:
    """The three stores the engine works against."""

    documents: DocumentStore
    chunks: ChunkStore
    stats: StatsStore

    @classmethod
    def from_records(
        cls, documents: RecordStore, chunks: RecordStore, stats: RecordStore
    ) -> "RagStores":
        return cls(
            documents=DocumentStore(documents),
            chunks=ChunkStore(chunks),
            stats=StatsStore(stats),
        )

    @classmethod
    def in_memory(cls) -> "RagStores":
        return cls.from_records(
            InMemoryRecordStore(DOCUMENTS_COLLECTION),
            InMemoryRecordStore(CHUNKS_COLLECTION),
            InMemoryRecordStore(USER_STATS_COLLECTION),
        )

    @classmethod
    async def from_mongo(cls, manager: AsyncMongoDBManager) -> "RagStores":
        record_stores = [
            MongoRecordStore(manager.get_collection(name))
            for name in (DOCUMENTS_COLLECTION, CHUNKS_COLLECTION, USER_STATS_COLLECTION)
        ]
        for store in record_stores:
            await store.ensure_indexes()
        return cls.from_records(*record_stores)
