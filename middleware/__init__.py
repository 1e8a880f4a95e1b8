"""
Savor AI Middleware
Request logging and context propagation
"""

from .logging import LoggingMiddleware, log_business_event, get_request_id, get_user_id

__all__ = [
    "LoggingMiddleware",
    "log_business_event",
    "get_request_id",
    "get_user_id",
]
