"""
Error taxonomy for the RAG engine.

Every error raised by the engine derives from ``RagError`` and carries the
HTTP status the API layer should answer with, a short machine readable
error code and the component it originated from.
"""

from enum import Enum
from typing import List, Optional


class Component(str, Enum):
    """Components where errors can occur."""

    STORE = "STORE"
    INGESTION = "INGESTION"
    RETRIEVAL = "RETRIEVAL"
    STATS = "STATS"
    ANSWER = "ANSWER"


class RagError(Exception):
    """Base class for errors surfaced to callers of the engine."""

    status_code: int = 500
    error_code: str = "internal_error"

    def __init__(self, message: str, component: Optional[Component] = None):
        self.message = message
        self.component = component
        super().__init__(message)


class DocumentNotFoundError(RagError):
    status_code = 404
    error_code = "not_found"

    def __init__(self, document_id: str):
        self.document_id = document_id
        super().__init__("Document not found", Component.INGESTION)


class InvalidRequestError(RagError):
    status_code = 400
    error_code = "validation_error"


class PartialFailureError(RagError):
    """One or more items of a fan-out batch failed in a primary path."""

    status_code = 500
    error_code = "partial_failure"

    def __init__(
        self,
        message: str,
        failed_ids: List[str],
        component: Optional[Component] = None,
    ):
        self.failed_ids = failed_ids
        super().__init__(message, component)


class UpstreamServiceError(RagError):
    status_code = 502
    error_code = "upstream_failure"

    def __init__(self, message: str, error: Optional[Exception] = None):
        self.error = error
        super().__init__(message, Component.ANSWER)


class StorageError(RagError):
    """The persistence substrate failed in a primary read or write."""

    error_code = "storage_failure"

    def __init__(self, message: str, error: Optional[Exception] = None):
        self.error = error
        super().__init__(message, Component.STORE)


class RecordSchemaError(RagError):
    """A persisted record could not be parsed into its schema.

    ``reason`` holds the validation details and stays out of ``message``,
    which may reach API callers.
    """

    error_code = "record_schema_error"

    def __init__(self, key: str, reason: str):
        self.key = key
        self.reason = reason
        super().__init__(f"Malformed record {key}", Component.STORE)
