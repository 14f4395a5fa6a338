from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from schoolfees import __version__
from schoolfees.api.v1.router import router as api_v1_router
from schoolfees.config.logging import setup_logging
from schoolfees.config.settings import Settings, settings as default_settings
from schoolfees.core.exceptions import (
    BaseAppException,
    ErrorCode,
    handle_database_exception,
)
from schoolfees.core.logging import get_logger
from schoolfees.core.middleware import register_middlewares
from schoolfees.db.init_db import init_db
from schoolfees.db.session import Database
from schoolfees.schemas.common.base import ErrorDetail, ErrorResponse, HealthResponse

logger = get_logger(__name__)


def _error_body(
    request: Request,
    code: str,
    message: str,
    details: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    body = ErrorResponse(
        error=ErrorDetail(
            code=code,
            message=message,
            details=jsonable_encoder(details or {}),
            timestamp=datetime.now(timezone.utc),
        ),
        request_id=getattr(request.state, "request_id", None),
    )
    return jsonable_encoder(body)


def register_exception_handlers(app: FastAPI) -> None:
    """Map every failure onto the JSON error envelope."""

    @app.exception_handler(BaseAppException)
    async def app_exception_handler(request: Request, exc: BaseAppException) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error(f"{exc.error_code.value}: {exc.message}", extra={"path": request.url.path})
        else:
            logger.info(
                f"Request rejected: {exc.error_code.value}",
                extra={"path": request.url.path, "status_code": exc.status_code},
            )
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(request, exc.error_code.value, exc.message, exc.details),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        field_errors = [
            {
                "field": ".".join(str(part) for part in err.get("loc", ()) if part != "body"),
                "message": err.get("msg"),
                "type": err.get("type"),
            }
            for err in exc.errors()
        ]
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content=_error_body(
                request,
                ErrorCode.VALIDATION_ERROR.value,
                "Request validation failed",
                {"field_errors": field_errors},
            ),
        )

    @app.exception_handler(SQLAlchemyError)
    async def database_exception_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
        logger.exception("Unhandled database error", extra={"path": request.url.path})
        app_exc = handle_database_exception(exc)
        return JSONResponse(
            status_code=app_exc.status_code,
            content=_error_body(request, app_exc.error_code.value, app_exc.message, app_exc.details),
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error", extra={"path": request.url.path})
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=_error_body(request, ErrorCode.INTERNAL_ERROR.value, "Internal server error"),
        )


def create_app(
    config: Optional[Settings] = None,
    database: Optional[Database] = None,
) -> FastAPI:
    """
    Application factory for the FastAPI app.

    - Configures title, version, debug mode from Settings.
    - Registers CORS, core middleware, and exception handlers.
    - Includes the versioned API router under API_V1_STR.

    A pre-built ``database`` may be injected (tests do this); otherwise one
    is created on startup from the settings and disposed on shutdown.
    """
    config = config or default_settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        setup_logging(config)
        owns_database = database is None
        db = database or Database(config=config)
        app.state.db = db

        if config.AUTO_CREATE_TABLES:
            init_db(db.engine)

        logger.info(
            "Application started",
            extra={"environment": config.ENVIRONMENT, "version": config.API_VERSION},
        )
        try:
            yield
        finally:
            if owns_database:
                db.dispose()
            logger.info("Application stopped")

    app = FastAPI(
        title=config.APP_NAME,
        debug=config.DEBUG,
        version=config.API_VERSION,
        docs_url=None if config.is_production() else "/docs",
        redoc_url=None if config.is_production() else "/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    app.state.settings = config
    if database is not None:
        app.state.db = database

    origins = config.cors_origin_list
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=origins != ["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_middlewares(app)
    register_exception_handlers(app)

    @app.get("/health", response_model=HealthResponse, tags=["Health"])
    def health(request: Request) -> HealthResponse:
        database_state = "ok"
        try:
            with request.app.state.db.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except SQLAlchemyError as e:
            logger.warning(f"Health check could not reach the database: {e}")
            database_state = "unavailable"

        return HealthResponse(
            status="ok" if database_state == "ok" else "degraded",
            app=config.APP_NAME,
            version=__version__,
            environment=config.ENVIRONMENT,
            database=database_state,
        )

    app.include_router(api_v1_router, prefix=config.API_V1_STR)
    return app


app = create_app()
