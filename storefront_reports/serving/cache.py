"""
Report Result Cache

Computed report results are cached in Redis, keyed by report, window and
filters. Every operation degrades to a miss when Redis is unavailable, so
the API keeps serving (uncached) without it.
"""

from typing import Optional

import structlog
from pydantic import ValidationError
from redis.asyncio import ConnectionPool, Redis
from redis.exceptions import RedisError

from storefront_reports.config import get_settings
from storefront_reports.reports import DateRange, ReportFilters, ReportResult

logger = structlog.get_logger(__name__)

_redis_pool: Optional[ConnectionPool] = None
_redis_client: Optional[Redis] = None


async def init_redis() -> Redis:
    """Initialize the Redis connection pool and check it answers"""
    global _redis_pool, _redis_client

    if _redis_client is not None:
        return _redis_client

    settings = get_settings().redis
    pool = ConnectionPool.from_url(
        settings.get_url(),
        max_connections=settings.max_connections,
        socket_timeout=settings.socket_timeout,
        decode_responses=settings.decode_responses,
    )
    client = Redis(connection_pool=pool)
    try:
        await client.ping()
    except (RedisError, OSError) as e:
        logger.error("Redis connection failed", error=str(e))
        await pool.disconnect()
        raise

    _redis_pool, _redis_client = pool, client
    logger.info("Redis connection established")
    return client


async def close_redis() -> None:
    global _redis_pool, _redis_client

    if _redis_client is not None:
        await _redis_client.aclose()
        _redis_client = None
    if _redis_pool is not None:
        await _redis_pool.disconnect()
        _redis_pool = None
        logger.info("Redis connection closed")


def redis_available() -> bool:
    return _redis_client is not None


def get_redis() -> Redis:
    """Get Redis client instance"""
    if _redis_client is None:
        raise RuntimeError("Redis not initialized. Call init_redis() first.")
    return _redis_client


class ReportCache:
    """
    Cache of computed ReportResults.

    Example:
        cached = await reports_cache.get("sales-summary", window, filters)
        if cached is None:
            await reports_cache.put(result, window, filters)
    """

    def __init__(self, namespace: str = "reports", ttl: Optional[int] = None):
        self.namespace = namespace
        self.ttl = ttl

    def key(self, report_id: str, window: DateRange, filters: ReportFilters) -> str:
        # Minute resolution so that preset windows ending "now" are shared
        span = f"{window.since:%Y%m%d%H%M}-{window.until:%Y%m%d%H%M}"
        return f"{self.namespace}:{report_id}:{span}:{filters.cache_key()}"

    async def get(self, report_id: str, window: DateRange, filters: ReportFilters) -> Optional[ReportResult]:
        if not redis_available():
            return None
        key = self.key(report_id, window, filters)
        try:
            raw = await get_redis().get(key)
        except RedisError as e:
            logger.warning("Cache read failed", key=key, error=str(e))
            return None
        if raw is None:
            return None
        try:
            return ReportResult.model_validate_json(raw)
        except ValidationError:
            logger.warning("Discarding unreadable cache entry", key=key)
            return None

    async def put(self, result: ReportResult, window: DateRange, filters: ReportFilters) -> bool:
        """Store a successful result; error results are never cached"""
        if not redis_available() or result.error_code is not None:
            return False
        key = self.key(result.report_id, window, filters)
        ttl = self.ttl or get_settings().reports.cache_ttl_seconds
        try:
            await get_redis().setex(key, ttl, result.model_dump_json())
        except RedisError as e:
            logger.warning("Cache write failed", key=key, error=str(e))
            return False
        return True

    async def invalidate(self, report_id: Optional[str] = None) -> int:
        """Drop cached results for one report, or for all of them"""
        if not redis_available():
            return 0
        pattern = f"{self.namespace}:{report_id or '*'}:*"
        client = get_redis()
        keys = [key async for key in client.scan_iter(match=pattern)]
        deleted = await client.delete(*keys) if keys else 0
        logger.info("Report cache invalidated", report_id=report_id or "all", keys=deleted)
        return deleted


reports_cache = ReportCache()
