from fastapi.middleware.cors import CORSMiddleware
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
import logging
from typing import Optional
from src.config import (
    CORS_ALLOWED_ORIGINS,
    SERVER_HOST,
    SERVER_PORT,
    Config,
    configure_logging,
)
from contextlib import asynccontextmanager

from src.core.llm_manager import LLMManager
from src.database.mongo import AsyncMongoDBManager
from src.database.stores import RagStores
from src.services.document import DocumentService
from src.services.generate_answer import CompletionFn
from src.utils.errors import RagError

from src.routers import (
    health_check_router,
    document_router,
    retrieve_router,
    answer_router,
)

configure_logging(level=logging.INFO)
logger = logging.getLogger(__name__)


def register_routers(app: FastAPI):
    # Health
    app.include_router(health_check_router, tags=["Health"])

    # Documents
    app.include_router(document_router, tags=["Documents"])

    # Retrieval
    app.include_router(retrieve_router, tags=["Search"])

    # Answer
    app.include_router(answer_router, tags=["Answer"])


def register_exception_handlers(app: FastAPI):
    @app.exception_handler(RagError)
    async def rag_error_handler(request: Request, exc: RagError):
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.message, "error": exc.error_code},
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.error(
            f"{request.method} {request.url.path} failed: {exc}", exc_info=exc
        )
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error", "error": RagError.error_code},
        )


def create_app(
    debug=False,
    stores: Optional[RagStores] = None,
    complete: Optional[CompletionFn] = None,
    config: Optional[Config] = None,
    **kwargs,
):
    """Create and configure the FastAPI app instance.

    ``stores`` and ``complete`` default to MongoDB-backed stores and the
    OpenAI chat model; both are created and released by the app lifespan.
    """

    logging.info("Creating FastAPI app...")

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        mongo_manager = None
        rag_stores = stores
        if rag_stores is None:
            mongo_manager = AsyncMongoDBManager()
            await mongo_manager.connect()
            logging.info("Database connection established")
            rag_stores = await RagStores.from_mongo(mongo_manager)

        app_config = config or Config()
        completion = complete or LLMManager(app_config).complete
        app.state.document_service = DocumentService(
            rag_stores, completion, app_config
        )
        try:
            yield
        finally:
            if mongo_manager is not None:
                await mongo_manager.close()
                logging.info("Database connection closed")

    app = FastAPI(debug=debug, lifespan=lifespan, **kwargs)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get(path="/")
    def main_page():
        return "AcceleraQA RAG engine"

    register_exception_handlers(app)
    register_routers(app)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("server:app", host=SERVER_HOST, port=SERVER_PORT)
