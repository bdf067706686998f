"""Project Tracker API application."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from project_tracker.api.v1.router import api_router
from project_tracker.core.config import settings
from project_tracker.core.database import create_tables, engine
from project_tracker.core.exceptions import AppException
from project_tracker.middleware.logging import RequestLoggingMiddleware

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
for noisy in ("sqlalchemy", "sqlalchemy.engine"):
    logging.getLogger(noisy).setLevel(logging.WARNING)

logger = logging.getLogger(__name__)

DESCRIPTION = """
Students pair up as partners, ask a teacher to be their project incharge and
report daily progress. Teachers set targets and comment on updates; the
administrator manages projects directly.

Send `Authorization: Bearer <token>` on every call except login, registration
and refresh. The token's role selects which of `/student`, `/teacher` and
`/admin` may be used.

Failures return `{"success": false, "error": {"code", "message", "details"}}`.
"""


def _error_body(code: str, message: str, details: dict | None = None) -> dict:
    return {
        "success": False,
        "error": {"code": code, "message": message, "details": details or {}},
    }


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")
    if settings.AUTO_CREATE_TABLES:
        create_tables()
        logger.info("Created missing tables")
    yield
    engine.dispose()
    logger.info(f"{settings.APP_NAME} stopped")


def register_exception_handlers(app: FastAPI) -> None:
    """Render every failure with the shared error envelope."""

    @app.exception_handler(AppException)
    async def app_exception_handler(request: Request, exc: AppException):
        # Partial writes and internal errors need a trace in the logs
        if exc.status_code >= 500:
            logger.warning(f"{exc.code} on {request.url.path}: {exc.message} {exc.details}")
        return JSONResponse(status_code=exc.status_code, content=exc.detail)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        body = _error_body(
            "VALIDATION_ERROR",
            "Request validation failed",
            {"errors": jsonable_encoder(exc.errors())},
        )
        return JSONResponse(status_code=400, content=body)

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        body = _error_body("INTERNAL_ERROR", "An internal server error occurred")
        return JSONResponse(status_code=500, content=body)


def create_application() -> FastAPI:
    """Build the tracker API with its middleware, handlers and routes."""
    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description=DESCRIPTION,
        openapi_url=f"{settings.API_V1_PREFIX}/openapi.json",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_exception_handlers(app)

    @app.get("/health", tags=["Health"])
    def health_check():
        return {
            "status": "healthy",
            "app": settings.APP_NAME,
            "version": settings.APP_VERSION,
        }

    app.include_router(api_router, prefix=settings.API_V1_PREFIX)
    return app


app = create_application()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "project_tracker.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
    )
