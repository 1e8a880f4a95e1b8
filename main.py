"""
Savor AI Backend Service - Main API Server
Recipe generation and saved recipe listing
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
import logging
import structlog
import time
from typing import AsyncGenerator, Optional

from core.config import settings
from core.database import init_db, close_db, create_tables
from core.exceptions import AIProviderError, ErrorKind, RateLimitExceededError, RecipeServiceError
from api.routes import api_router
from middleware.logging import LoggingMiddleware, get_request_id
from services.ai_service import AIService
from utils.rate_limiter import GenerationRateLimiter


def configure_logging(level: Optional[str] = None, fmt: Optional[str] = None) -> None:
    """Configure structured logging"""
    log_level = logging.getLevelName((level or settings.LOG_LEVEL).upper())
    if not isinstance(log_level, int):
        log_level = logging.INFO

    renderer = (
        structlog.dev.ConsoleRenderer()
        if (fmt or settings.LOG_FORMAT) == "console"
        else structlog.processors.JSONRenderer()
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.format_exc_info,
            renderer
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        logger_factory=structlog.WriteLoggerFactory(),
        cache_logger_on_first_use=True,
    )


configure_logging()

logger = structlog.get_logger()

ERROR_STATUS_CODES = {
    ErrorKind.TIMEOUT: 503,
    ErrorKind.VALIDATION: 502,
    ErrorKind.SIZE_LIMIT: 413,
    ErrorKind.INVALID_CURSOR: 400,
    ErrorKind.INVALID_QUERY: 400,
    ErrorKind.CONFIG: 500,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.RATE_LIMITED: 429,
    ErrorKind.CONFLICT: 409,
    ErrorKind.DISLIKED_INGREDIENT: 400,
}


# Generation failures are reported generically; upstream detail stays in the logs
PUBLIC_MESSAGES = {
    ErrorKind.TIMEOUT: "AI service timed out. Please try again.",
    ErrorKind.PROVIDER: "Failed to generate recipe. Please try again.",
    ErrorKind.VALIDATION: "Failed to generate recipe. Please try again.",
    ErrorKind.CONFIG: "AI service is not available",
}


def public_message_for(exc: RecipeServiceError) -> str:
    return PUBLIC_MESSAGES.get(exc.kind, exc.message)


def status_code_for(exc: RecipeServiceError) -> int:
    """HTTP status for a typed service error"""
    if isinstance(exc, AIProviderError):
        return 503 if exc.retryable else 502
    return ERROR_STATUS_CODES.get(exc.kind, 500)


def error_response(
    status_code: int,
    error: str,
    message: str,
    headers: Optional[dict] = None,
    extra: Optional[dict] = None
) -> JSONResponse:
    content = {
        "error": error,
        "message": message,
        "request_id": get_request_id() or None
    }
    if extra:
        content.update(extra)
    return JSONResponse(status_code=status_code, content=content, headers=headers)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan events"""
    # Startup
    logger.info("Starting Savor AI Backend Service", environment=settings.ENVIRONMENT)

    await init_db()
    if settings.is_development:
        await create_tables()

    app.state.ai_service = AIService.from_settings()
    app.state.rate_limiter = GenerationRateLimiter.from_settings()

    logger.info("Backend service startup complete")

    yield

    # Shutdown
    logger.info("Shutting down Savor AI Backend Service")
    await app.state.ai_service.aclose()
    await close_db()
    logger.info("Backend service shutdown complete")


def create_app() -> FastAPI:
    app = FastAPI(
        title="Savor AI Backend Service",
        description="AI recipe generation and saved recipe management",
        version=settings.VERSION,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
        lifespan=lifespan
    )

    # CORS Middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["X-Process-Time", "X-Request-ID", "Content-Language", "Retry-After"]
    )

    # Custom Middleware
    app.add_middleware(LoggingMiddleware)

    @app.middleware("http")
    async def add_process_time_header(request: Request, call_next):
        """Add response time header"""
        start_time = time.time()
        response = await call_next(request)
        process_time = time.time() - start_time
        response.headers["X-Process-Time"] = str(process_time)
        return response

    @app.exception_handler(RecipeServiceError)
    async def recipe_service_exception_handler(request: Request, exc: RecipeServiceError):
        status_code = status_code_for(exc)
        log = logger.error if status_code >= 500 else logger.warning
        log(
            "Request failed with service error",
            path=request.url.path,
            error_kind=exc.kind.value,
            upstream_status=exc.status_code,
            status_code=status_code,
            error=exc.message,
            detail=getattr(exc, "detail", None)
        )
        if isinstance(exc, RateLimitExceededError):
            return error_response(
                status_code,
                exc.kind.value,
                exc.message,
                headers={"Retry-After": str(exc.retry_after)},
                extra={"retry_after": exc.retry_after}
            )
        headers = {"Retry-After": "5"} if status_code == 503 else None
        return error_response(status_code, exc.kind.value, public_message_for(exc), headers)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        messages = []
        for item in exc.errors():
            location = ".".join(str(loc) for loc in item.get("loc", ()) if loc != "body")
            messages.append(f"{location}: {item.get('msg')}" if location else item.get("msg"))
        return error_response(400, "invalid_request", "; ".join(messages))

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        message = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
        return error_response(exc.status_code, "http_error", message, getattr(exc, "headers", None))

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Global exception handler"""
        logger.error(
            "Unhandled exception",
            exception=str(exc),
            error_type=type(exc).__name__,
            path=request.url.path,
            method=request.method
        )
        return error_response(500, "internal_error", "An unexpected error occurred")

    @app.get("/")
    async def root():
        """Root endpoint"""
        return {
            "service": "Savor AI Backend Service",
            "version": settings.VERSION,
            "status": "healthy",
            "environment": settings.ENVIRONMENT
        }

    app.include_router(api_router, prefix="/api/v1")

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.is_development,
        log_config=None  # Use structlog instead
    )
