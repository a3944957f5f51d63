"""
Reports Module

Report engine, registry and the built-in report catalog.
"""
from .errors import (
    DataSourceError,
    EmptyReportError,
    InvalidWindowError,
    ReportError,
    UnknownReportError,
)
from .models import (
    NO_DATA_MESSAGE,
    ChartSpec,
    Kpi,
    ReportCategory,
    ReportDefinition,
    ReportFilters,
    ReportResult,
)
from .window import DateRange, custom_window, preset_window, resolve_window
from .registry import ReportRegistry, registry, report
from .engine import ReportEngine
from .session import ReportSession
from .export import export_filename, to_csv
from . import catalog  # registers the built-in reports

__all__ = [
    "ReportError",
    "UnknownReportError",
    "DataSourceError",
    "EmptyReportError",
    "InvalidWindowError",
    "NO_DATA_MESSAGE",
    "ChartSpec",
    "Kpi",
    "ReportCategory",
    "ReportDefinition",
    "ReportFilters",
    "ReportResult",
    "DateRange",
    "custom_window",
    "preset_window",
    "resolve_window",
    "ReportRegistry",
    "registry",
    "report",
    "ReportEngine",
    "ReportSession",
    "export_filename",
    "to_csv",
    "catalog",
]
