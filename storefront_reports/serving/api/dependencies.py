"""
API Dependencies

FastAPI dependencies shared by the report routes.
"""

from datetime import date
from typing import Optional

from fastapi import HTTPException, Query

from storefront_reports.reports import (
    DateRange,
    InvalidWindowError,
    ReportEngine,
    ReportFilters,
    resolve_window,
)
from storefront_reports.sources import SqlDataSource

_engine: Optional[ReportEngine] = None


def get_report_engine() -> ReportEngine:
    """Engine over the storefront database, created on first use"""
    global _engine
    if _engine is None:
        _engine = ReportEngine(SqlDataSource())
    return _engine


def get_window(
    preset: Optional[str] = Query(None, description="Days back from now (1, 7, 30, 90, 180, 365) or 'custom'"),
    date_from: Optional[date] = Query(None, description="First day of a custom range"),
    date_to: Optional[date] = Query(None, description="Last day of a custom range, inclusive"),
) -> DateRange:
    try:
        return resolve_window(preset=preset, date_from=date_from, date_to=date_to)
    except InvalidWindowError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e


def get_filters(
    status: Optional[str] = Query(None, description="Order status, or 'all'"),
    category: Optional[str] = Query(None, description="Product or expense category name"),
) -> ReportFilters:
    return ReportFilters(status=status, category=category)
