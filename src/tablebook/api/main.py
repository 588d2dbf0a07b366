from __future__ import annotations

import logging
import os
import time

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_client import Counter, Histogram
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from tablebook.api.error_handling import register_exception_handlers
from tablebook.api.middleware.auth import TokenAuthMiddleware
from tablebook.api.middleware.request_id import RequestIDMiddleware
from tablebook.api.routes.auth import router as auth_router
from tablebook.api.routes.health import router as health_router
from tablebook.api.routes.metrics import router as metrics_router
from tablebook.api.routes.reservations import router as reservations_router
from tablebook.api.routes.users import router as users_router
from tablebook.application.ports.security import TokenService
from tablebook.infrastructure.auth.jwt_tokens import get_token_service
from tablebook.infrastructure.observability.logging_config import configure_logging
from tablebook.infrastructure.observability.otel import configure_otel

logger = logging.getLogger("tablebook.api.access")

REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total number of HTTP requests",
    ["method", "path", "status_code"],
)
REQUEST_LATENCY = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "path"],
)

_DEV_ORIGINS = "http://localhost:3000,http://localhost:5173"


def _cors_allow_origins() -> list[str]:
    # The token travels in a cookie, so origins must be explicit (no "*").
    env = os.getenv("APP_ENV", "dev").lower()
    default_value = _DEV_ORIGINS if env in {"dev", "test"} else ""
    raw_value = os.getenv("CORS_ALLOW_ORIGINS", default_value)
    return [origin.strip() for origin in raw_value.split(",") if origin.strip()]


def _route_path(request: Request) -> str:
    route = request.scope.get("route")
    return getattr(route, "path", request.url.path)


class AccessLogMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        started = time.perf_counter()
        method = request.method
        try:
            response = await call_next(request)
        except Exception:
            duration_ms = (time.perf_counter() - started) * 1000
            path = _route_path(request)
            REQUEST_COUNT.labels(method=method, path=path, status_code="500").inc()
            REQUEST_LATENCY.labels(method=method, path=path).observe(duration_ms / 1000)
            logger.exception(
                "request_error",
                extra={
                    "method": method,
                    "path": request.url.path,
                    "status_code": 500,
                    "duration_ms": round(duration_ms, 2),
                },
            )
            raise

        duration_ms = (time.perf_counter() - started) * 1000
        path = _route_path(request)
        REQUEST_COUNT.labels(method=method, path=path, status_code=str(response.status_code)).inc()
        REQUEST_LATENCY.labels(method=method, path=path).observe(duration_ms / 1000)
        logger.info(
            "request_complete",
            extra={
                "method": method,
                "path": request.url.path,
                "status_code": response.status_code,
                "duration_ms": round(duration_ms, 2),
            },
        )
        return response


def create_app(token_service: TokenService | None = None) -> FastAPI:
    configure_logging()

    app = FastAPI(title="Tablebook Backend", version="0.1.0")
    app.state.token_service = token_service or get_token_service()
    register_exception_handlers(app)
    app.include_router(health_router)
    app.include_router(metrics_router)
    app.include_router(auth_router)
    app.include_router(users_router)
    app.include_router(reservations_router)

    app.add_middleware(TokenAuthMiddleware)
    app.add_middleware(AccessLogMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=_cors_allow_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-Id"],
    )

    configure_otel(app)
    return app


app = create_app()
