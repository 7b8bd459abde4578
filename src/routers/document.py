"""Document endpoints: upload, list, delete and stats for the current user."""

import logging
from fastapi import APIRouter, Depends, Path, status

from src.dependencies import get_document_service
from src.middlewares.auth import get_current_user_id
from src.schemas.documents import (
    DeleteResponse,
    DocumentListResponse,
    StatsResponse,
    UploadDocumentRequest,
    UploadResponse,
    UploadTextRequest,
)
from src.services.document import DocumentService

# Setup
router = APIRouter(prefix="/rag")
logger = logging.getLogger(__name__)


@router.post(
    "/documents",
    response_model=UploadResponse,
    status_code=status.HTTP_201_CREATED,
)
async def upload_document(
    request: UploadDocumentRequest,
    user_id: str = Depends(get_current_user_id),
    document_service: DocumentService = Depends(get_document_service),
):
    """
    Store a document whose chunks and vectors were computed upstream.

    :param request: Document payload with its chunks.\n
    :type request: UploadDocumentRequest\n
    :param user_id: Authenticated user id injected by dependency.\n
    :type user_id: str\n
    :return: The new document id, filename and chunk count.\n
    :rtype: UploadResponse\n
    :raises HTTPException:\n
        - 422: Missing filename or chunks, or non-contiguous chunk indices.\n
        - 500: A chunk write failed and the upload was rolled back.
    """
    logger.info(
        f"Upload of {request.filename} ({len(request.chunks)} chunks) by {user_id}"
    )
    return await document_service.upload(user_id, request)


@router.post(
    "/documents/text",
    response_model=UploadResponse,
    status_code=status.HTTP_201_CREATED,
)
async def upload_text_document(
    request: UploadTextRequest,
    user_id: str = Depends(get_current_user_id),
    document_service: DocumentService = Depends(get_document_service),
):
    """Store a plain-text document, chunked server-side without vectors."""
    logger.info(f"Text upload of {request.filename} by {user_id}")
    return await document_service.upload_text(user_id, request)


@router.get("/documents", response_model=DocumentListResponse)
async def list_documents(
    user_id: str = Depends(get_current_user_id),
    document_service: DocumentService = Depends(get_document_service),
):
    """List the user's documents, newest first."""
    return await document_service.list_documents(user_id)


@router.delete("/documents/{document_id}", response_model=DeleteResponse)
async def delete_document(
    document_id: str = Path(..., description="Document ID"),
    user_id: str = Depends(get_current_user_id),
    document_service: DocumentService = Depends(get_document_service),
):
    """
    Delete a document and all of its chunks.

    :param document_id: Document identifier.\n
    :type document_id: str\n
    :return: Confirmation with the deleted filename.\n
    :rtype: DeleteResponse\n
    :raises HTTPException:\n
        - 404: Document not found for this user.
    """
    return await document_service.delete(user_id, document_id)


@router.get("/stats", response_model=StatsResponse)
async def get_stats(
    user_id: str = Depends(get_current_user_id),
    document_service: DocumentService = Depends(get_document_service),
):
    """Document, chunk and byte totals derived from a live scan."""
    return await document_service.get_stats(user_id)
