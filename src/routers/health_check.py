from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

router = APIRouter()


@router.get("/health")
def health_check():
    """Liveness check; never touches the stores."""
    return {"status": "healthy"}


@router.get("/health/ready")
def readiness_check(request: Request):
    """Readiness check: 503 until the lifespan has built the document service."""
    if getattr(request.app.state, "document_service", None) is None:
        return JSONResponse(status_code=503, content={"status": "starting"})
    return {"status": "ready"}
