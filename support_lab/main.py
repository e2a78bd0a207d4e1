"""
Support Lab - FastAPI application
"""
import time
import traceback
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from support_lab.config import Settings, get_settings
from support_lab.errors import SupportLabError
from support_lab.middleware.logging_middleware import LoggingMiddleware
from support_lab.models.schemas import ErrorResponse
from support_lab.repositories.ticket_repository import TicketRepository
from support_lab.routes import debug, health, metrics, status as status_routes, storage, tickets
from support_lab.services.database import Database
from support_lab.services.external_status import ExternalStatusClient, StatusHistory
from support_lab.services.health import HealthAggregator
from support_lab.services.storage import ObjectStorage
from support_lab.utils.logger import get_logger

logger = get_logger(__name__)

VERSION = "1.0.0"

GENERIC_MESSAGE = "An unexpected error occurred"


def _error_response(status_code: int, body: ErrorResponse) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json", exclude_none=True))


def register_exception_handlers(app: FastAPI, settings: Settings) -> None:
    """Every failure leaves as a well-formed ErrorResponse"""

    @app.exception_handler(SupportLabError)
    async def handle_service_error(request: Request, exc: SupportLabError):
        message = exc.message
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.message} ({exc.detail})")
        if exc.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR and not settings.is_development:
            message = GENERIC_MESSAGE

        return _error_response(
            exc.status_code,
            ErrorResponse(
                error=exc.error,
                message=message,
                detail=exc.detail if settings.is_development else None
            )
        )

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError):
        problems = [
            f"{'.'.join(str(part) for part in err.get('loc', ()))}: {err.get('msg')}"
            for err in exc.errors()
        ]
        return _error_response(
            status.HTTP_400_BAD_REQUEST,
            ErrorResponse(error="Bad Request", message="Invalid request", detail=problems)
        )

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_error(request: Request, exc: StarletteHTTPException):
        if exc.status_code == status.HTTP_404_NOT_FOUND:
            logger.warning(f"404 Not Found: {request.method} {request.url.path}")
            return JSONResponse(
                status_code=status.HTTP_404_NOT_FOUND,
                content={
                    "error": "Not Found",
                    "path": request.url.path,
                    "method": request.method,
                    "message": "The requested endpoint does not exist",
                }
            )
        return _error_response(
            exc.status_code,
            ErrorResponse(error=str(exc.detail), message=str(exc.detail))
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error(f"Unhandled error: {exc}", exc_info=exc)
        detail = None
        if settings.is_development:
            detail = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
        return _error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            ErrorResponse(
                error="Internal Server Error",
                message=str(exc) if settings.is_development else GENERIC_MESSAGE,
                detail=detail
            )
        )


def create_app(
    settings: Optional[Settings] = None,
    database: Optional[Database] = None,
    status_client: Optional[ExternalStatusClient] = None,
    object_storage: Optional[ObjectStorage] = None,
    ticket_repository: Optional[TicketRepository] = None,
) -> FastAPI:
    """
    Build the application and its components

    Components are constructed from the given settings unless passed in.
    The database pool is not opened here; the lifecycle controller connects
    and validates it before the server starts accepting requests.
    """
    settings = settings or get_settings()
    database = database or Database(settings)
    status_client = status_client or ExternalStatusClient()

    app = FastAPI(
        title="Support Lab",
        description="Support ticket API with health monitoring and debugging scenarios",
        version=VERSION
    )

    app.state.settings = settings
    app.state.database = database
    app.state.ticket_repository = ticket_repository or TicketRepository(database)
    app.state.status_client = status_client
    app.state.status_history = StatusHistory()
    app.state.storage = object_storage or ObjectStorage(settings)
    app.state.health = HealthAggregator(
        database=database,
        status_client=status_client,
        external_api_url=settings.external_api_url,
        probe_timeout_ms=settings.health_probe_timeout_ms,
        started_at=time.time()
    )

    # Middleware order matters: last added runs first
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(LoggingMiddleware)

    register_exception_handlers(app, settings)

    app.include_router(health.router)
    app.include_router(metrics.router)
    app.include_router(tickets.router)
    app.include_router(status_routes.router)
    app.include_router(storage.router)

    if settings.enable_debug_endpoints:
        app.include_router(debug.router)
        logger.info("Debug endpoints enabled")
    else:
        logger.info("Debug endpoints disabled")

    @app.get("/")
    async def root():
        return {
            "name": "Support Lab",
            "version": VERSION,
            "endpoints": {
                "health": ["GET /health", "GET /health/full", "GET /metrics"],
                "tickets": [
                    "GET /api/tickets",
                    "GET /api/tickets/{id}",
                    "POST /api/tickets",
                    "PATCH /api/tickets/{id}",
                    "GET /api/tickets/stats",
                ],
                "status": [
                    "GET /api/status",
                    "GET /api/status/history",
                    "POST /api/status/notify/{ticket_id}",
                    "GET /api/status/test/{code}",
                ],
                "storage": [
                    "GET /api/storage/test-connection",
                    "GET /api/storage/files",
                    "POST /api/storage/files",
                    "GET /api/storage/files/{key}",
                    "DELETE /api/storage/files/{key}",
                ],
                "debug": "enabled" if settings.enable_debug_endpoints else "disabled",
            },
        }

    return app
