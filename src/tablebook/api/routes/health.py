from __future__ import annotations

from fastapi import APIRouter, Response, status

from tablebook.api.dependencies import POSTGRES_BACKEND, storage_backend
from tablebook.infrastructure.cache.redis_client import ping_redis, redis_configured
from tablebook.infrastructure.db.session import ping_database

router = APIRouter()


@router.get("/health/live")
def live() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/health/ready")
def ready(response: Response) -> dict[str, object]:
    checks: dict[str, bool] = {}
    if storage_backend() == POSTGRES_BACKEND:
        checks["postgres"] = ping_database(timeout_seconds=1.0)
    if redis_configured():
        checks["redis"] = ping_redis(timeout_seconds=1.0)

    if all(checks.values()):
        return {"status": "ok"}

    response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    return {"status": "unavailable", "checks": checks}
