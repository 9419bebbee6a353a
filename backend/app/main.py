from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.config import Settings, get_settings
from app.core.logging_config import get_logger, setup_logging
from app.core.middleware import (
    SecurityHeadersMiddleware,
    RateLimitMiddleware,
    RequestLoggingMiddleware
)
from app.core.security import TokenVerifier
from app.routers import analysis, catalog, portfolio, strategies, watchlist
from app.services.document_store import DocumentStore
from app.services.strategy.gemini_provider import GeminiStrategyProvider
from app.services.strategy.generation_service import StrategyGenerationService
from app.services.strategy.provider import StrategyProvider

logger = get_logger(__name__)

ERROR_CODES = {
    400: "BAD_REQUEST",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    422: "VALIDATION_ERROR",
    429: "RATE_LIMIT_EXCEEDED",
    500: "INTERNAL_SERVER_ERROR",
    502: "UPSTREAM_ERROR",
}


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[DocumentStore] = None,
    provider: Optional[StrategyProvider] = None,
    token_verifier: Optional[TokenVerifier] = None,
) -> FastAPI:
    """Build the API. Collaborators default to the ones described by settings."""
    settings = settings or get_settings()
    setup_logging(json_format=settings.LOG_JSON, level=settings.LOG_LEVEL)

    store = store or DocumentStore.from_settings(settings)
    provider = provider or GeminiStrategyProvider(
        api_key=settings.GEMINI_API_KEY,
        model=settings.GEMINI_MODEL,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Starting %s", settings.PROJECT_NAME)
        yield
        store.close()
        logger.info("Stopped %s", settings.PROJECT_NAME)

    app = FastAPI(
        title=settings.PROJECT_NAME,
        version="1.0.0",
        description="Arabic investment dashboard API: portfolios, live valuation and AI strategies",
        docs_url=f"{settings.API_V1_STR}/docs",
        openapi_url=f"{settings.API_V1_STR}/openapi.json",
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.store = store
    app.state.strategy_provider = provider
    app.state.generation_service = StrategyGenerationService(
        provider,
        renormalize=settings.ALLOCATION_RENORMALIZE,
        tolerance=settings.ALLOCATION_TOLERANCE,
    )
    app.state.token_verifier = token_verifier or TokenVerifier.from_settings(settings)

    # CORS Middleware - Configure allowed origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.BACKEND_CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "DELETE"],
        allow_headers=["Authorization", "Content-Type"],
        max_age=3600,
    )

    # Security Middleware
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        RateLimitMiddleware,
        calls=settings.RATE_LIMIT_PER_MINUTE,
        period=60,
        exempt_paths=(
            "/health",
            f"{settings.API_V1_STR}/docs",
            f"{settings.API_V1_STR}/openapi.json",
        ),
    )
    app.add_middleware(RequestLoggingMiddleware)

    for module in (catalog, watchlist, portfolio, strategies, analysis):
        app.include_router(module.router, prefix=settings.API_V1_STR)

    # Health check endpoint (no auth required)
    @app.get("/health", tags=["Health"])
    async def health_check():
        """Health check endpoint for monitoring"""
        return {"status": "healthy", "service": settings.PROJECT_NAME}

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "detail": exc.detail,
                "error_code": ERROR_CODES.get(exc.status_code, "ERROR"),
            },
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """
        Global exception handler to prevent information leakage.
        Never expose internal errors to clients.
        """
        logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=500,
            content={
                "detail": "An internal error occurred. Please try again later.",
                "error_code": "INTERNAL_SERVER_ERROR"
            }
        )

    return app


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "app.main:create_app",
        factory=True,
        host="0.0.0.0",
        port=8000,
        reload=True  # Disable in production
    )
