"""
Report Session

Tracks the report a viewer is currently looking at. Each request is tagged
with an increasing token; a newer request cancels the in-flight one and any
result that arrives for an older token is discarded.
"""

import asyncio
from typing import Optional

import structlog

from .engine import ReportEngine
from .models import ReportFilters, ReportResult
from .window import DateRange

logger = structlog.get_logger(__name__)


class ReportSession:
    """
    Last-request-wins wrapper around ``ReportEngine.run_report``.

    Example:
        session = ReportSession(engine)
        result = await session.request("sales-summary", window)
        if result is None:
            ...  # superseded by a newer request
    """

    def __init__(self, engine: ReportEngine):
        self.engine = engine
        self.current: Optional[ReportResult] = None
        self._token = 0
        self._task: Optional[asyncio.Task] = None

    @property
    def token(self) -> int:
        return self._token

    @property
    def busy(self) -> bool:
        return self._task is not None and not self._task.done()

    async def request(
        self,
        report_id: str,
        window: DateRange,
        filters: Optional[ReportFilters] = None,
    ) -> Optional[ReportResult]:
        """
        Run a report, superseding any request still in flight.

        Returns:
            The result, or None when a newer request replaced this one
        """
        self._token += 1
        token = self._token
        if self.busy:
            self._task.cancel()

        task = asyncio.ensure_future(self.engine.run_report(report_id, window, filters))
        self._task = task
        try:
            result = await task
        except asyncio.CancelledError:
            if token != self._token:
                logger.debug("Report request superseded", report_id=report_id, token=token)
                return None
            raise

        if token != self._token:
            logger.debug("Discarding stale report result", report_id=report_id, token=token)
            return None
        self.current = result
        return result
