"""
FastAPI application factory.
"""

from __future__ import annotations

from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse

from blooddrive import __version__
from blooddrive.api.middleware import setup_cors, setup_security_headers
from blooddrive.api.observability import ObservabilityMiddleware, generate_request_id, get_request_id
from blooddrive.api.routes import admin_campaigns as admin_campaigns_routes
from blooddrive.api.routes import admin_locations as admin_locations_routes
from blooddrive.api.routes import auth as auth_routes
from blooddrive.api.routes import campaigns as campaigns_routes
from blooddrive.api.routes import donors as donors_routes
from blooddrive.api.state import AppState
from blooddrive.backend import Backend
from blooddrive.exceptions import BloodDriveError, exception_to_http_status
from blooddrive.logging_config import get_logger

logger = get_logger(__name__)


def create_app(*, backend: Backend | None = None) -> FastAPI:
    app = FastAPI(
        title="BloodDrive API",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.state.state = AppState(backend=backend or Backend())

    setup_cors(app)
    setup_security_headers(app)

    # Observability middleware (must be added last to wrap all others)
    app.add_middleware(ObservabilityMiddleware)

    @app.get("/v1/health")
    def health(response: Response) -> dict:
        response.headers["Cache-Control"] = "no-store"
        return {"ok": True, "version": __version__}

    app.include_router(auth_routes.router)
    app.include_router(auth_routes.callback_router)
    app.include_router(campaigns_routes.router)
    app.include_router(campaigns_routes.registrations_router)
    app.include_router(donors_routes.router)
    app.include_router(admin_campaigns_routes.router)
    app.include_router(admin_locations_routes.router)

    def _error_headers(request: Request) -> dict[str, str]:
        rid = request.headers.get("x-request-id") or get_request_id() or generate_request_id()
        return {"X-Request-ID": rid, "Cache-Control": "no-store"}

    @app.exception_handler(BloodDriveError)
    def _domain_error(request: Request, exc: BloodDriveError) -> JSONResponse:
        headers = _error_headers(request)
        exc.request_id = headers["X-Request-ID"]
        status = exception_to_http_status(exc)
        if status >= 500:
            exc.log()
        else:
            logger.info(
                "request_rejected",
                extra={"error_code": exc.error_code, "status_code": status, "path": request.url.path},
            )
        return JSONResponse(status_code=status, content=exc.to_dict(), headers=headers)

    @app.exception_handler(Exception)
    def _unhandled(request: Request, exc: Exception) -> JSONResponse:
        # ObservabilityMiddleware logs the traceback; the client gets a stable envelope.
        headers = _error_headers(request)
        return JSONResponse(
            status_code=500,
            content={
                "error": "internal_error",
                "message": "An unexpected error occurred. Please try again.",
                "request_id": headers["X-Request-ID"],
            },
            headers=headers,
        )

    return app


app = create_app()
