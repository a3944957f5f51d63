"""
Report API Endpoints

REST API for the reports center:
- Report catalog grouped by category
- Computed report datasets (KPIs, chart, table)
- CSV export
"""

from datetime import date
from typing import List, Optional

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query, Response
from pydantic import BaseModel

from storefront_reports.reports import (
    DateRange,
    EmptyReportError,
    ReportCategory,
    ReportDefinition,
    ReportEngine,
    ReportFilters,
    ReportResult,
    export_filename,
    to_csv,
)
from storefront_reports.serving.cache import reports_cache
from ..dependencies import get_filters, get_report_engine, get_window

router = APIRouter()
logger = structlog.get_logger(__name__)


class CategoryGroup(BaseModel):
    """Reports of one category"""
    category: ReportCategory
    reports: List[ReportDefinition]


class ReportCatalog(BaseModel):
    """Reports center listing"""
    total: int
    categories: List[CategoryGroup]


async def _run(engine: ReportEngine, report_id: str, window: DateRange, filters: ReportFilters) -> ReportResult:
    cached = await reports_cache.get(report_id, window, filters)
    if cached is not None:
        logger.debug("Report served from cache", report_id=report_id)
        return cached

    result = await engine.run_report(report_id, window, filters)
    await reports_cache.put(result, window, filters)
    return result


@router.get("", response_model=ReportCatalog)
async def list_reports(
    q: Optional[str] = Query(None, description="Search report names and descriptions"),
    category: Optional[ReportCategory] = None,
    engine: ReportEngine = Depends(get_report_engine),
) -> ReportCatalog:
    """List available reports grouped by category"""
    definitions = engine.registry.search(q) if q else engine.definitions()
    groups = []
    for cat in ReportCategory:
        if category is not None and cat != category:
            continue
        reports = [d for d in definitions if d.category == cat]
        if reports:
            groups.append(CategoryGroup(category=cat, reports=reports))
    return ReportCatalog(total=sum(len(g.reports) for g in groups), categories=groups)


@router.get("/{report_id}", response_model=ReportResult)
async def get_report(
    report_id: str,
    window: DateRange = Depends(get_window),
    filters: ReportFilters = Depends(get_filters),
    engine: ReportEngine = Depends(get_report_engine),
) -> ReportResult:
    """
    Compute a report.

    Unknown reports and data source failures return an empty result with
    ``error_code`` set rather than an HTTP error.
    """
    return await _run(engine, report_id, window, filters)


@router.get("/{report_id}/export")
async def export_report(
    report_id: str,
    window: DateRange = Depends(get_window),
    filters: ReportFilters = Depends(get_filters),
    engine: ReportEngine = Depends(get_report_engine),
) -> Response:
    """Download a report table as CSV"""
    result = await _run(engine, report_id, window, filters)
    try:
        content = to_csv(result)
    except EmptyReportError as e:
        raise HTTPException(status_code=404, detail=result.message or str(e)) from e

    filename = export_filename(report_id, date.today())
    logger.info("Report exported", report_id=report_id, rows=len(result.table), filename=filename)
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
