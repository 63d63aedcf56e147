"""Health check endpoints. Liveness has no dependencies; readiness reports Firestore and storage."""

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from tripzi.infrastructure.firebase.client import get_firestore_client
from tripzi.schemas.health import HealthResponse, ReadinessResponse

router = APIRouter()


@router.get("", response_model=HealthResponse)
def health_check() -> HealthResponse:
    """Return simple ok status for liveness."""
    return HealthResponse()


@router.get(
    "/ready",
    response_model=ReadinessResponse,
    responses={503: {"description": "Firestore or storage not initialized", "model": ReadinessResponse}},
)
def readiness_check(request: Request) -> ReadinessResponse | JSONResponse:
    """Return 200 when both the Firestore client and the storage backend are up; 503 otherwise."""
    firestore_ok = get_firestore_client() is not None
    storage_ok = getattr(request.app.state, "storage", None) is not None
    if firestore_ok and storage_ok:
        return ReadinessResponse(firestore=True, storage=True)
    return JSONResponse(
        status_code=503,
        content=ReadinessResponse(
            status="not_ready", firestore=firestore_ok, storage=storage_ok
        ).model_dump(),
    )
