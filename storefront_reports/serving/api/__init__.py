"""
API Module
"""
from .dependencies import get_filters, get_report_engine, get_window
from .middleware import RateLimitMiddleware, RequestLoggingMiddleware, SecurityHeadersMiddleware

__all__ = [
    "get_filters",
    "get_report_engine",
    "get_window",
    "RequestLoggingMiddleware",
    "RateLimitMiddleware",
    "SecurityHeadersMiddleware",
]
