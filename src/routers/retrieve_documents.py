from fastapi import APIRouter, Depends

from src.dependencies import get_document_service
from src.middlewares.auth import get_current_user_id
from src.schemas.documents import SearchRequest, SearchResponse, TextSearchRequest
from src.services.document import DocumentService

router = APIRouter(prefix="/rag")


@router.post("/search", response_model=SearchResponse)
async def search_documents(
    request: SearchRequest,
    user_id: str = Depends(get_current_user_id),
    document_service: DocumentService = Depends(get_document_service),
):
    """Rank the user's chunks against a query embedding."""
    return await document_service.search(
        user_id, request.query_embedding, request.options
    )


@router.post("/search/text", response_model=SearchResponse)
async def search_documents_by_text(
    request: TextSearchRequest,
    user_id: str = Depends(get_current_user_id),
    document_service: DocumentService = Depends(get_document_service),
):
    """Rank the user's chunks by keyword overlap with a query string."""
    return await document_service.search_text(user_id, request.query, request.options)
