"""
Savor AI Logging Middleware
Structured request logging with request IDs and caller context
"""

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
import structlog
import time
import uuid
from typing import Dict, Any, Optional
from contextvars import ContextVar

logger = structlog.get_logger()

# Context variables for request tracking
request_id_var: ContextVar[str] = ContextVar('request_id', default='')
user_id_var: ContextVar[str] = ContextVar('user_id', default='')

REQUEST_ID_HEADER = "x-request-id"
USER_ID_HEADER = "x-user-id"

# Generation waits on an upstream model; listing should be quick
SLOW_GENERATION_SECONDS = 20.0
SLOW_REQUEST_SECONDS = 2.0

QUIET_PATHS = ("/api/v1/health", "/favicon.ico")

# Query parameters recorded for recipe listing; cursors are opaque and only flagged
LISTING_PARAMS = ("search", "tags", "lang", "sort", "limit", "offset")


def classify_route(method: str, path: str) -> str:
    """Coarse operation name used to group request logs"""
    if path.startswith("/api/v1/recipes"):
        if path.rstrip("/").endswith("/generate"):
            return "generate"
        if method == "GET":
            return "list" if path.rstrip("/") == "/api/v1/recipes" else "get"
        if method == "POST":
            return "save"
        if method == "DELETE":
            return "delete"
    if path.startswith("/api/v1/profile"):
        return "profile_read" if method == "GET" else "profile_write"
    if path.startswith("/api/v1/events"):
        return "event"
    return "other"


class LoggingMiddleware(BaseHTTPMiddleware):
    """
    Binds a request ID and the caller to the structlog context, logs each
    request with its outcome and timing, and echoes ``X-Request-ID``.
    Health checks are passed through without logging.
    """

    async def dispatch(self, request: Request, call_next):
        start_time = time.time()
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        user_id = request.headers.get(USER_ID_HEADER, "").strip()

        request_id_var.set(request_id)
        user_id_var.set(user_id)
        structlog.contextvars.bind_contextvars(request_id=request_id)

        try:
            if request.url.path.startswith(QUIET_PATHS):
                response = await call_next(request)
                response.headers["X-Request-ID"] = request_id
                return response

            operation = classify_route(request.method, request.url.path)
            request_info = self._request_info(request, operation, user_id or None)

            logger.debug("Request started", **request_info)

            response = await call_next(request)
            process_time = time.time() - start_time

            logger.log(
                self._log_level(response.status_code),
                "Request completed",
                **request_info,
                **self._response_info(response, process_time),
            )

            threshold = SLOW_GENERATION_SECONDS if operation == "generate" else SLOW_REQUEST_SECONDS
            if process_time > threshold:
                logger.warning(
                    "Slow request detected",
                    operation=operation,
                    response_time=round(process_time, 4),
                    threshold=threshold,
                )

            response.headers["X-Request-ID"] = request_id
            return response

        except Exception as e:
            logger.error(
                "Request failed",
                method=request.method,
                path=request.url.path,
                process_time=round(time.time() - start_time, 4),
                error=str(e),
                error_type=type(e).__name__,
            )
            raise

        finally:
            structlog.contextvars.unbind_contextvars("request_id")

    def _request_info(self, request: Request, operation: str, user_id: Optional[str]) -> Dict[str, Any]:
        info = {
            "method": request.method,
            "path": request.url.path,
            "operation": operation,
            "client_ip": self._client_ip(request),
        }
        if user_id:
            info["user_id"] = user_id

        if operation == "list":
            params = request.query_params
            info["query"] = {key: params[key] for key in LISTING_PARAMS if key in params}
            info["has_cursor"] = "cursor" in params
        return info

    def _response_info(self, response: Response, process_time: float) -> Dict[str, Any]:
        info = {
            "status_code": response.status_code,
            "process_time": round(process_time, 4),
        }
        if "content-language" in response.headers:
            info["content_language"] = response.headers["content-language"]
        return info

    def _client_ip(self, request: Request) -> str:
        forwarded = request.headers.get("x-forwarded-for")
        if forwarded:
            return forwarded.split(",")[0].strip()
        return request.client.host if request.client else "unknown"

    def _log_level(self, status_code: int) -> int:
        if status_code >= 500:
            return 40  # ERROR
        elif status_code >= 400:
            return 30  # WARNING
        return 20  # INFO


def get_request_id() -> str:
    """Get current request ID from context"""
    return request_id_var.get()


def get_user_id() -> str:
    return user_id_var.get()


def log_business_event(event: str, data: Dict[str, Any] = None):
    """Log a pipeline milestone (generation, save, delete) with request context"""
    logger.info(
        "Business event",
        request_id=get_request_id() or None,
        user_id=get_user_id() or None,
        business_event=event,
        data=data or {},
    )
