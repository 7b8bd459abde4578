import pytest

from src.schemas.documents import SearchOptions, UploadMetadata, UploadTextRequest
from src.services.document import DocumentService
from src.utils.errors import (
    DocumentNotFoundError,
    InvalidRequestError,
    PartialFailureError,
    StorageError,
)
from tests.utils.utils import TEST_USER_ID, FlakyRecordStore, flaky_stores, make_upload

USER = TEST_USER_ID


@pytest.mark.asyncio
async def test_upload_stores_document_chunks_and_stats(service, stores):
    response = await service.upload(
        USER,
        make_upload(
            filename="sop-001.pdf",
            embeddings=[[1.0, 0.0], [0.0, 1.0]],
            mime_type="application/pdf",
            size=2048,
            tags=["sop"],
        ),
    )

    assert response.id.startswith("doc_")
    assert response.chunk_count == 2

    document = await stores.documents.find(USER, response.id)
    assert document.filename == "sop-001.pdf"
    assert document.file_type == "pdf"
    assert document.file_size == 2048
    assert document.chunk_count == 2
    assert document.metadata.category == "general"
    assert document.metadata.tags == ["sop"]

    chunks = await stores.chunks.all(USER)
    assert sorted(chunk.id for chunk in chunks) == [
        f"{response.id}_chunk_0",
        f"{response.id}_chunk_1",
    ]
    assert all(chunk.document_id == response.id for chunk in chunks)

    stats = await stores.stats.load(USER)
    assert (stats.document_count, stats.chunk_count, stats.total_size) == (1, 2, 2048)


@pytest.mark.parametrize(
    "mime_type, file_type",
    [
        ("application/pdf", "pdf"),
        ("application/msword", "doc"),
        (
            "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
            "docx",
        ),
        ("text/plain", "txt"),
        ("image/png", "txt"),
        (None, "txt"),
    ],
)
@pytest.mark.asyncio
async def test_file_type_from_mime(service, stores, mime_type, file_type):
    response = await service.upload(USER, make_upload(mime_type=mime_type))

    document = await stores.documents.find(USER, response.id)
    assert document.file_type == file_type


@pytest.mark.asyncio
async def test_extra_metadata_is_kept(service, stores):
    request = make_upload()
    request.metadata = UploadMetadata(category="quality", site="Basel")

    response = await service.upload(USER, request)

    document = await stores.documents.find(USER, response.id)
    assert document.metadata.category == "quality"
    assert document.metadata.model_dump()["site"] == "Basel"


@pytest.mark.asyncio
async def test_document_ids_are_unique(service):
    first = await service.upload(USER, make_upload())
    second = await service.upload(USER, make_upload())

    assert first.id != second.id


@pytest.mark.asyncio
async def test_chunk_failure_rolls_back_upload(complete):
    stores = flaky_stores(chunks=FlakyRecordStore("chunks", fail_put=["_chunk_1"]))
    service = DocumentService(stores, complete)

    with pytest.raises(PartialFailureError) as exc_info:
        await service.upload(
            USER, make_upload(embeddings=[[1.0, 0.0], [0.0, 1.0], [1.0, 1.0]])
        )

    assert len(exc_info.value.failed_ids) == 1
    assert exc_info.value.failed_ids[0].endswith("_chunk_1")
    assert await stores.documents.all(USER) == []
    assert await stores.chunks.all(USER) == []
    assert await stores.stats.load(USER) is None


@pytest.mark.asyncio
async def test_document_write_failure_propagates(complete):
    stores = flaky_stores(documents=FlakyRecordStore("documents", fail_put=["*"]))
    service = DocumentService(stores, complete)

    with pytest.raises(StorageError) as exc_info:
        await service.upload(USER, make_upload())

    assert isinstance(exc_info.value.error, ConnectionError)
    assert await stores.chunks.all(USER) == []


@pytest.mark.asyncio
async def test_stats_failure_does_not_fail_upload(complete):
    stores = flaky_stores(stats=FlakyRecordStore("stats", fail_put=["*"]))
    service = DocumentService(stores, complete)

    response = await service.upload(USER, make_upload())

    assert await stores.documents.find(USER, response.id) is not None
    assert len(await stores.chunks.all(USER)) == 1


@pytest.mark.asyncio
async def test_delete_cascades_to_chunks(service, stores):
    kept = await service.upload(USER, make_upload(filename="kept.txt"))
    removed = await service.upload(
        USER,
        make_upload(filename="removed.txt", embeddings=[[1.0, 0.0], [0.0, 1.0]], size=50),
    )

    response = await service.delete(USER, removed.id)

    assert response.document_id == removed.id
    assert response.filename == "removed.txt"
    assert response.deleted_chunks == 2
    assert response.failed_chunks == 0
    assert await stores.documents.find(USER, removed.id) is None
    assert {chunk.document_id for chunk in await stores.chunks.all(USER)} == {kept.id}
    found = await service.search(USER, [1.0, 0.0], SearchOptions(threshold=0.0))
    assert removed.id not in {r.document_id for r in found.results}

    stats = await stores.stats.load(USER)
    assert (stats.document_count, stats.chunk_count, stats.total_size) == (1, 1, 100)


@pytest.mark.asyncio
async def test_delete_unknown_document(service):
    with pytest.raises(DocumentNotFoundError) as exc_info:
        await service.delete(USER, "doc_missing")

    assert exc_info.value.status_code == 404


@pytest.mark.asyncio
async def test_delete_is_scoped_to_owner(service):
    response = await service.upload(USER, make_upload())

    with pytest.raises(DocumentNotFoundError):
        await service.delete("someone-else", response.id)


@pytest.mark.asyncio
async def test_delete_requires_id(service):
    with pytest.raises(InvalidRequestError):
        await service.delete(USER, "  ")


@pytest.mark.asyncio
async def test_delete_reports_failed_chunks(complete):
    chunks = FlakyRecordStore("chunks")
    stores = flaky_stores(chunks=chunks)
    service = DocumentService(stores, complete)
    uploaded = await service.upload(
        USER, make_upload(embeddings=[[1.0, 0.0], [0.0, 1.0]])
    )
    chunks.fail_delete = {"_chunk_0"}

    response = await service.delete(USER, uploaded.id)

    assert response.deleted_chunks == 1
    assert response.failed_chunks == 1
    assert await stores.documents.find(USER, uploaded.id) is None


@pytest.mark.asyncio
async def test_delete_survives_stats_failure(complete):
    stats = FlakyRecordStore("stats")
    stores = flaky_stores(stats=stats)
    service = DocumentService(stores, complete)
    uploaded = await service.upload(USER, make_upload())
    stats.fail_put = {"*"}

    response = await service.delete(USER, uploaded.id)

    assert response.deleted_chunks == 1
    assert await stores.documents.all(USER) == []


@pytest.mark.asyncio
async def test_stats_never_go_negative(service, stores):
    uploaded = await service.upload(USER, make_upload(size=100))
    await stores.stats.remove(USER, "rag_stats")

    await service.delete(USER, uploaded.id)

    stats = await stores.stats.load(USER)
    assert (stats.document_count, stats.chunk_count, stats.total_size) == (0, 0, 0)


@pytest.mark.asyncio
async def test_upload_text_chunks_server_side(service, stores):
    text = " ".join(
        f"Step {i}: verify the cleaning record for line {i}." for i in range(200)
    )

    response = await service.upload_text(
        USER, UploadTextRequest(filename="cleaning.txt", text=text)
    )

    assert response.chunk_count > 1
    chunks = sorted(await stores.chunks.all(USER), key=lambda chunk: chunk.index)
    assert [chunk.index for chunk in chunks] == list(range(response.chunk_count))
    assert all(chunk.embedding == [] for chunk in chunks)
    assert all(len(chunk.text) <= 1000 for chunk in chunks)

    document = await stores.documents.find(USER, response.id)
    assert document.file_size == len(text.encode("utf-8"))
    assert document.text_content == text


@pytest.mark.asyncio
async def test_upload_text_rejects_blank_text(service):
    with pytest.raises(InvalidRequestError):
        await service.upload_text(
            USER, UploadTextRequest(filename="empty.txt", text="   \n ")
        )


@pytest.mark.asyncio
async def test_delete_unreadable_document(service, stores):
    uploaded = await service.upload(
        USER, make_upload(embeddings=[[1.0, 0.0], [0.0, 1.0]])
    )
    await stores.documents.records.put(
        USER, uploaded.id, {"schema_version": 1, "id": uploaded.id}
    )

    response = await service.delete(USER, uploaded.id)

    assert response.filename == "Unknown"
    assert response.deleted_chunks == 2
    assert await stores.documents.records.get(USER, uploaded.id) is None
    assert await stores.chunks.all(USER) == []


@pytest.mark.asyncio
async def test_delete_document_read_failure(complete):
    documents = FlakyRecordStore("documents")
    stores = flaky_stores(documents=documents)
    service = DocumentService(stores, complete)
    uploaded = await service.upload(USER, make_upload())
    documents.fail_get = {"*"}

    with pytest.raises(StorageError):
        await service.delete(USER, uploaded.id)

    assert len(await stores.chunks.all(USER)) == 1


@pytest.mark.asyncio
async def test_delete_id_with_slash_is_not_found(service):
    with pytest.raises(DocumentNotFoundError):
        await service.delete(USER, "doc_1/other")
