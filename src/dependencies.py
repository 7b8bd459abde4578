from fastapi import Request

from src.services.document import DocumentService


def get_document_service(request: Request) -> DocumentService:
    """The DocumentService built by the application lifespan."""
    return request.app.state.document_service
