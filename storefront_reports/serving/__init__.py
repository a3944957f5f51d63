"""
Serving Module
"""
from .cache import ReportCache, close_redis, init_redis, redis_available, reports_cache

__all__ = [
    "init_redis",
    "close_redis",
    "redis_available",
    "ReportCache",
    "reports_cache",
]
