from typing import Iterable, List, Optional, Sequence

from src.database.record_store import InMemoryRecordStore, RawRecord
from src.database.stores import RagStores
from src.schemas.documents import UploadChunk, UploadDocumentRequest

TEST_USER_ID = "auth0|test-user"


def make_upload(
    filename: str = "sop.txt",
    embeddings: Sequence[Sequence[float]] = ((1.0, 0.0),),
    texts: Optional[Sequence[str]] = None,
    mime_type: str = "text/plain",
    size: int = 100,
    category: Optional[str] = None,
    tags: Optional[List[str]] = None,
) -> UploadDocumentRequest:
    """Build an upload request with one chunk per embedding."""
    texts = texts or [f"chunk {i} of {filename}" for i in range(len(embeddings))]
    metadata = {"tags": tags or []}
    if category:
        metadata["category"] = category
    return UploadDocumentRequest(
        filename=filename,
        type=mime_type,
        size=size,
        text=" ".join(texts),
        chunks=[
            UploadChunk(
                index=i,
                text=text,
                word_count=len(text.split()),
                character_count=len(text),
                embedding=list(embedding),
            )
            for i, (text, embedding) in enumerate(zip(texts, embeddings))
        ],
        metadata=metadata,
    )


def upload_payload(
    filename: str = "sop.txt",
    embeddings: Sequence[Sequence[float]] = ((1.0, 0.0),),
    **metadata,
) -> dict:
    """The same as ``make_upload`` but as the camelCase JSON body."""
    return {
        "filename": filename,
        "type": "application/pdf",
        "size": 2048,
        "text": "full text",
        "chunks": [
            {
                "index": i,
                "text": f"chunk {i}",
                "wordCount": 2,
                "characterCount": 7,
                "embedding": list(embedding),
            }
            for i, embedding in enumerate(embeddings)
        ],
        "metadata": metadata,
    }


class FlakyRecordStore(InMemoryRecordStore):
    """In-memory store whose writes, deletes and reads fail for chosen record ids."""

    def __init__(
        self,
        name: str = "flaky",
        fail_put: Iterable[str] = (),
        fail_delete: Iterable[str] = (),
        fail_get: Iterable[str] = (),
        fail_list: bool = False,
    ):
        super().__init__(name)
        self.fail_list = fail_list
        self.fail_put = set(fail_put)
        self.fail_delete = set(fail_delete)
        self.fail_get = set(fail_get)

    def _matches(self, record_id: str, patterns: set) -> bool:
        return "*" in patterns or any(record_id.endswith(p) for p in patterns)

    async def put(self, owner_id: str, record_id: str, data: RawRecord) -> None:
        if self._matches(record_id, self.fail_put):
            raise ConnectionError(f"write refused for {record_id}")
        await super().put(owner_id, record_id, data)

    async def delete(self, owner_id: str, record_id: str) -> bool:
        if self._matches(record_id, self.fail_delete):
            raise ConnectionError(f"delete refused for {record_id}")
        return await super().delete(owner_id, record_id)

    async def get(self, owner_id: str, record_id: str):
        if self._matches(record_id, self.fail_get):
            raise ConnectionError(f"read refused for {record_id}")
        return await super().get(owner_id, record_id)

    async def list(self, owner_id: str):
        if self.fail_list:
            raise ConnectionError(f"listing refused for {owner_id}")
        async for item in super().list(owner_id):
            yield item


def flaky_stores(documents=None, chunks=None, stats=None) -> RagStores:
    """In-memory stores with any of the three swapped for a flaky one."""
    return RagStores.from_records(
        documents if documents is not None else InMemoryRecordStore("documents"),
        chunks if chunks is not None else InMemoryRecordStore("chunks"),
        stats if stats is not None else InMemoryRecordStore("stats"),
    )
