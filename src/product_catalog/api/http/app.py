"""FastAPI application factory and setup."""

import asyncio
import time
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse

from src.product_catalog.api.http.app_data import ApplicationDependencies
from src.product_catalog.api.http.deps import REQUEST_TIMEOUT_DETAIL
from src.product_catalog.api.http.routers.health import router as health_router
from src.product_catalog.api.http.routers.service.product import (
    router as product_router,
)
from src.product_catalog.api.utils.app_startup import configure_logging
from src.product_catalog.core.services import DbManageService, DbSessionService
from src.product_catalog.runtime.config.config_data import ConfigData
from src.product_catalog.runtime.context import get_config


# --- Security middleware ---
class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, environment: str = "development"):
        super().__init__(app)
        self._environment = environment

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        response.headers.setdefault("X-Frame-Options", "DENY")
        response.headers.setdefault(
            "Referrer-Policy", "strict-origin-when-cross-origin"
        )
        # HSTS only in prod
        if self._environment == "production":
            response.headers.setdefault(
                "Strict-Transport-Security",
                "max-age=31536000; includeSubDomains; preload",
            )
        return response


def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", None) or "-"


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    request_id = _request_id(request)
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "request_id": request_id},
        headers={"X-Request-ID": request_id},
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    request_id = _request_id(request)
    logger.bind(status_code=422, error_type=type(exc).__name__).warning(
        "request.validation_error"
    )
    return JSONResponse(
        status_code=422,
        content={"detail": jsonable_errors(exc), "request_id": request_id},
        headers={"X-Request-ID": request_id},
    )


async def database_exception_handler(
    request: Request, exc: SQLAlchemyError
) -> JSONResponse:
    request_id = _request_id(request)
    logger.bind(status_code=500, error_type=type(exc).__name__).opt(
        exception=exc
    ).error("request.database_error")
    return JSONResponse(
        status_code=500,
        content={"detail": "Database error", "request_id": request_id},
        headers={"X-Request-ID": request_id},
    )


def jsonable_errors(exc: RequestValidationError) -> list[dict]:
    """Strip non-serializable context (e.g. exception instances) from validation errors."""
    return [
        {key: value for key, value in error.items() if key in ("type", "loc", "msg")}
        for error in exc.errors()
    ]


def create_app(config: ConfigData | None = None) -> FastAPI:
    """Build the application for ``config`` (defaults to the process configuration)."""
    config = config or get_config()
    configure_logging(config)
    environment = config.app.environment

    # --- Lifecycle hooks ---
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Schema setup runs once per process, before the first request
        logger.info("Starting up application in {} environment", environment)
        database_service = DbSessionService(config)
        try:
            database_manage_service = DbManageService(config, database_service)
            seeded = database_manage_service.initialize()
            logger.info("Database ready ({} seed products inserted)", seeded)

            app.state.app_dependencies = ApplicationDependencies(
                config=config,
                database_service=database_service,
                database_manage_service=database_manage_service,
            )
            yield
        finally:
            logger.info("Shutting down application")
            database_service.dispose()

    app = FastAPI(
        title="Product Catalog API",
        lifespan=lifespan,
        docs_url=None if environment == "production" else "/docs",
        redoc_url=None if environment == "production" else "/redoc",
    )

    app.add_middleware(SecurityHeadersMiddleware, environment=environment)

    # --- CORS configuration ---
    cors = config.app.cors
    if environment == "production" and "*" in cors.origins:
        raise RuntimeError(
            "CORS misconfigured: cannot use '*' with allow_credentials=True in production"
        )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors.origins,
        allow_credentials=cors.allow_credentials,
        allow_methods=cors.allow_methods,
        allow_headers=cors.allow_headers,
    )

    # --- Request logging middleware ---
    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id
        timeout = config.app.request_timeout_seconds
        request.state.deadline = time.monotonic() + timeout

        xff = request.headers.get("x-forwarded-for")
        client_ip = (
            xff.split(",")[0].strip()
            if xff
            else request.client.host
            if request.client
            else "unknown"
        )

        base_ctx = {
            "request_id": request_id,
            "method": request.method,
            "path": request.url.path,
            "client_ip": client_ip,
            "user_agent": request.headers.get("user-agent", "unknown"),
        }

        start = time.perf_counter()

        # Everything that logs within this block inherits base_ctx
        with logger.contextualize(**base_ctx):
            try:
                logger.info("request.start")
                response = await asyncio.wait_for(
                    call_next(request), timeout=timeout
                )

                duration_ms = (time.perf_counter() - start) * 1000
                logger.bind(
                    status_code=response.status_code,
                    duration_ms=round(duration_ms, 1),
                ).info("request.end")

                response.headers.setdefault("X-Request-ID", request_id)
                return response

            except TimeoutError:
                duration_ms = (time.perf_counter() - start) * 1000
                logger.bind(
                    status_code=504,
                    duration_ms=round(duration_ms, 1),
                ).error("request.timeout")
                return JSONResponse(
                    status_code=504,
                    content={"detail": REQUEST_TIMEOUT_DETAIL, "request_id": request_id},
                    headers={"X-Request-ID": request_id},
                )

            except Exception as exc:
                duration_ms = (time.perf_counter() - start) * 1000
                logger.bind(
                    status_code=500,
                    duration_ms=round(duration_ms, 1),
                    error_type=type(exc).__name__,
                ).exception("request.error")
                return JSONResponse(
                    status_code=500,
                    content={"detail": "Internal Server Error", "request_id": request_id},
                    headers={"X-Request-ID": request_id},
                )

    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(SQLAlchemyError, database_exception_handler)

    # --- Router registration ---
    app.include_router(health_router)
    app.include_router(product_router)

    return app


app = create_app()

__all__ = ["app", "create_app"]
