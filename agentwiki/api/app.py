"""
AgentWiki - FastAPI Application

Application factory with lifespan management and error mapping.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from agentwiki import __version__
from agentwiki.api.container import AgentWikiApp
from agentwiki.api.routes import agents, articles, events, governance
from agentwiki.config import get_settings
from agentwiki.exceptions import AgentWikiError, VerificationError
from agentwiki.monitoring.logging import LoggingContextMiddleware, configure_logging

logger = structlog.get_logger(__name__)


def create_app(
    wiki_app: AgentWikiApp | None = None,
    title: str = "AgentWiki",
    docs_url: str | None = "/docs",
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        wiki_app: Prebuilt container (a fresh one from settings if omitted)
        title: API title for documentation
        docs_url: Swagger UI URL (None to disable)

    Returns:
        Configured FastAPI application
    """
    container = wiki_app or AgentWikiApp()
    settings = container.settings

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        await container.initialize()
        try:
            yield
        finally:
            await container.shutdown()

    app = FastAPI(
        title=title,
        version=__version__,
        description="Agent-authored wiki with on-chain deposits and threshold voting",
        docs_url=docs_url if settings.app_env != "production" else None,
        redoc_url=None,
        debug=settings.debug,
        lifespan=lifespan,
    )
    app.state.wiki = container

    cors_origins = settings.cors_origins_list
    if cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=cors_origins,
            allow_credentials=False,
            allow_methods=["GET", "POST", "PATCH", "OPTIONS"],
            allow_headers=["Content-Type", "X-API-Key", "X-Correlation-ID"],
        )
    app.add_middleware(LoggingContextMiddleware)

    # =========================================================================
    # Exception Handlers
    # =========================================================================

    @app.exception_handler(AgentWikiError)
    async def agentwiki_error_handler(request: Request, exc: AgentWikiError) -> JSONResponse:
        content: dict[str, Any] = {
            "success": False,
            "error": exc.message,
            "code": exc.code,
        }
        headers = None
        if isinstance(exc, VerificationError):
            content["reason"] = exc.reason.value
            content["retryable"] = exc.retryable
            if exc.retryable:
                headers = {"Retry-After": "5"}

        if exc.status_code >= 500:
            logger.warning("request_failed", path=str(request.url.path), code=exc.code, error=exc.message)
        else:
            logger.info("request_rejected", path=str(request.url.path), code=exc.code)
        return JSONResponse(status_code=exc.status_code, content=content, headers=headers)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "success": False,
                "error": exc.detail,
                "path": str(request.url.path),
            },
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        # Submitted values are left out of the response
        errors = [
            {
                "loc": error.get("loc", []),
                "type": error.get("type", "unknown"),
                "msg": error.get("msg", "Validation failed"),
            }
            for error in exc.errors()
        ]
        return JSONResponse(
            status_code=422,
            content={"success": False, "error": "Validation failed", "details": errors},
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("unhandled_exception", path=str(request.url.path))
        return JSONResponse(
            status_code=500,
            content={"success": False, "error": "Internal server error"},
        )

    # =========================================================================
    # Routes
    # =========================================================================

    app.include_router(agents.router, prefix="/api")
    app.include_router(articles.router, prefix="/api")
    app.include_router(governance.router, prefix="/api")
    app.include_router(events.router, prefix="/api")

    @app.get("/health", include_in_schema=False)
    async def health() -> dict[str, str]:
        return {"status": "healthy" if container.is_ready else "starting"}

    @app.get("/ready", include_in_schema=False)
    async def ready() -> JSONResponse:
        if not container.is_ready:
            return JSONResponse(status_code=503, content={"status": "not_ready"})
        db_health = container.db.health_check()
        if db_health["status"] != "healthy":
            return JSONResponse(
                status_code=503,
                content={"status": "degraded", "reason": "database_unreachable"},
                headers={"Retry-After": "5"},
            )
        return JSONResponse(content={"status": "ready", **container.get_status()})

    logger.info("fastapi_app_created", title=title, version=__version__)
    return app


def main() -> None:
    """
    Run the AgentWiki server.

    For production use:
        uvicorn agentwiki.api.app:create_app --factory --host 0.0.0.0 --port 8000
    """
    import uvicorn

    settings = get_settings()
    configure_logging(level=settings.log_level, json_output=settings.use_json_logs)
    uvicorn.run(
        "agentwiki.api.app:create_app",
        factory=True,
        host=settings.api_host,
        port=settings.api_port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
