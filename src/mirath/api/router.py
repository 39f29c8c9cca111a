"""Root API router: probes plus the versioned module routers."""

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from sqlalchemy import text

from mirath.api.dependencies import DBSession
from mirath.modules import discover_modules


api_router = APIRouter()

# Probes are not versioned
health_router = APIRouter(prefix="/health", tags=["health"])


@health_router.get("/live", summary="Liveness probe")
async def liveness() -> dict[str, str]:
    return {"status": "alive"}


@health_router.get(
    "/ready",
    summary="Readiness probe",
    description="Returns 503 when the membership store cannot be queried.",
)
async def readiness(db: DBSession) -> JSONResponse:
    """Check that permission lookups can reach the database."""
    try:
        await db.execute(text("SELECT 1"))
    except Exception as exc:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "degraded", "checks": {"database": type(exc).__name__}},
        )
    return JSONResponse(content={"status": "ready", "checks": {"database": "ok"}})


v1_router = APIRouter(prefix="/api/v1")
for module_router in discover_modules():
    v1_router.include_router(module_router)

api_router.include_router(health_router)
api_router.include_router(v1_router)
