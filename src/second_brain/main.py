"""
FastAPI application entry point.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from second_brain import __version__
from second_brain.assistant.factory import create_llm_gateway
from second_brain.assistant.gateway import LLMGateway
from second_brain.assistant.models import LLMError
from second_brain.assistant.router import router as assistant_router
from second_brain.auth.router import router as auth_router
from second_brain.calls.router import router as calls_router
from second_brain.config import Settings, get_settings
from second_brain.reminders.router import router as reminders_router
from second_brain.shared.correlation import CorrelationIdMiddleware
from second_brain.shared.database import DatabaseManager
from second_brain.shared.exceptions import AppException, PersistenceError, UpstreamProviderError
from second_brain.shared.logging import get_logger, setup_logging
from second_brain.telephony.config import TelephonyConfig, get_telephony_config
from second_brain.telephony.factory import create_telephony_provider
from second_brain.telephony.interface import TelephonyProvider, TelephonyProviderError

logger = get_logger(__name__)


def _error_response(exc: AppException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": exc.message, "code": exc.code},
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    setup_logging(app.state.settings)
    settings: Settings = app.state.settings
    db_manager: DatabaseManager = app.state.db_manager

    logger.info("Application starting", extra={"env": settings.app_env})

    if settings.db_create_schema:
        await db_manager.create_schema()

    yield

    logger.info("Shutting down application")
    for name in app.state.owned_resources:
        getattr(app.state, name).close()
    await db_manager.close()
    logger.info("Application shutdown complete")


def register_exception_handlers(app: FastAPI) -> None:
    """Map domain exceptions to ``{"success": false, "error", "code"}`` bodies."""

    @app.exception_handler(AppException)
    async def _app_exception(request: Request, exc: AppException) -> JSONResponse:
        log = logger.error if exc.status_code >= 500 else logger.info
        log(
            "Request failed",
            extra={
                "endpoint": request.url.path,
                "code": exc.code,
                "status_code": exc.status_code,
                "details": exc.details,
            },
            exc_info=exc if exc.status_code >= 500 else None,
        )
        return _error_response(exc)

    @app.exception_handler(RequestValidationError)
    async def _request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
        errors = [
            {
                "field": ".".join(str(loc) for loc in error["loc"]),
                "message": error["msg"],
                "type": error["type"],
            }
            for error in exc.errors()
        ]
        logger.info(
            "Request validation failed",
            extra={"endpoint": request.url.path, "errors": errors},
        )
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={
                "success": False,
                "error": "Request validation failed",
                "code": "VALIDATION_ERROR",
            },
        )

    @app.exception_handler(SQLAlchemyError)
    async def _database_error(request: Request, exc: SQLAlchemyError) -> JSONResponse:
        logger.error(
            "Database error",
            extra={"endpoint": request.url.path},
            exc_info=exc,
        )
        return _error_response(PersistenceError())

    @app.exception_handler(TelephonyProviderError)
    async def _telephony_error(request: Request, exc: TelephonyProviderError) -> JSONResponse:
        logger.error(
            "Unhandled telephony provider error",
            extra={"endpoint": request.url.path, "error_code": exc.error_code},
            exc_info=exc,
        )
        return _error_response(UpstreamProviderError())

    @app.exception_handler(LLMError)
    async def _llm_error(request: Request, exc: LLMError) -> JSONResponse:
        logger.error(
            "Unhandled LLM error",
            extra={"endpoint": request.url.path, "error_type": type(exc).__name__},
            exc_info=exc,
        )
        return _error_response(UpstreamProviderError())

    @app.exception_handler(Exception)
    async def _unhandled(request: Request, exc: Exception) -> JSONResponse:
        logger.error(
            "Unhandled error",
            extra={"endpoint": request.url.path, "method": request.method},
            exc_info=exc,
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"success": False, "error": "Internal server error", "code": "INTERNAL_ERROR"},
        )


def create_app(
    settings: Settings | None = None,
    telephony_provider: TelephonyProvider | None = None,
    llm_gateway: LLMGateway | None = None,
    db_manager: DatabaseManager | None = None,
    telephony_config: TelephonyConfig | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Collaborators not passed in are built from configuration; those built
    here are closed on shutdown.
    """
    settings = settings or get_settings()
    telephony_config = telephony_config or get_telephony_config()

    owned_resources: list[str] = []
    if telephony_provider is None:
        telephony_provider = create_telephony_provider(telephony_config)
        owned_resources.append("telephony_provider")
    if llm_gateway is None:
        llm_gateway = create_llm_gateway(settings)
        owned_resources.append("llm_gateway")

    app = FastAPI(
        title="Second Brain API",
        description="Phone-verified AI assistant with voice calls and reminders",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
    )

    app.state.settings = settings
    app.state.telephony_config = telephony_config
    app.state.telephony_provider = telephony_provider
    app.state.llm_gateway = llm_gateway
    app.state.db_manager = db_manager or DatabaseManager(settings=settings)
    app.state.owned_resources = owned_resources

    register_exception_handlers(app)

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(CorrelationIdMiddleware)

    # Include routers
    app.include_router(auth_router)
    app.include_router(calls_router)
    app.include_router(assistant_router)
    app.include_router(reminders_router)

    @app.get("/health")
    async def health_check() -> dict[str, str]:
        return {"status": "healthy"}

    @app.get("/api")
    async def api_root() -> dict[str, str]:
        return {"message": "Welcome to the Second Brain API"}

    return app


app = create_app()
