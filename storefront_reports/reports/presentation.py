"""
KPI and Chart Builders

Project an already-aggregated table into headline metrics and a chart
specification, so that the three views share one computation.
"""

from typing import Any, Dict, List, Optional, Sequence, Tuple

from storefront_reports.config import get_settings
from .models import PALETTE, ChartKind, ChartSeries, ChartSpec, Kpi, KpiFormat


def currency_kpi(label: str, value: float, icon: str = "indian-rupee", color: str = "green") -> Kpi:
    return Kpi(label=label, value=round(float(value or 0), 2), format=KpiFormat.CURRENCY, icon=icon, color=color)


def count_kpi(label: str, value: int, icon: str = "hash", color: str = "primary") -> Kpi:
    return Kpi(label=label, value=int(value or 0), format=KpiFormat.NUMBER, icon=icon, color=color)


def number_kpi(label: str, value: float, icon: str = "activity", color: str = "purple") -> Kpi:
    return Kpi(label=label, value=round(float(value or 0), 2), format=KpiFormat.NUMBER, icon=icon, color=color)


def percent_kpi(label: str, value: float, icon: str = "percent", color: str = "amber") -> Kpi:
    return Kpi(label=label, value=round(float(value or 0), 1), format=KpiFormat.PERCENT, icon=icon, color=color)


def _series(measures: Sequence[Tuple[str, str]], colors: Optional[Sequence[str]] = None) -> List[ChartSeries]:
    colors = colors or PALETTE
    return [
        ChartSeries(key=key, label=label, color=colors[i % len(colors)])
        for i, (key, label) in enumerate(measures)
    ]


def _project(table: List[Dict[str, Any]], keys: Sequence[str]) -> List[Dict[str, Any]]:
    return [{key: row.get(key) for key in keys} for row in table]


def bar_chart(
    table: List[Dict[str, Any]],
    x_key: str,
    measures: Sequence[Tuple[str, str]],
    horizontal: bool = True,
    limit: Optional[int] = None,
) -> Optional[ChartSpec]:
    """
    Bar chart over the first ``limit`` table rows.

    Ranked reports plot horizontally by name; date reports plot
    vertically along the time axis.
    """
    if not table:
        return None
    limit = limit or get_settings().reports.chart_row_limit
    keys = [x_key] + [key for key, _ in measures]
    return ChartSpec(
        kind=ChartKind.BAR,
        x_key=x_key,
        series=_series(measures),
        data=_project(table[:limit], keys),
        horizontal=horizontal,
    )


def line_chart(
    table: List[Dict[str, Any]],
    x_key: str,
    measures: Sequence[Tuple[str, str]],
) -> Optional[ChartSpec]:
    """Time series over every row, in table order"""
    if not table:
        return None
    keys = [x_key] + [key for key, _ in measures]
    return ChartSpec(
        kind=ChartKind.LINE,
        x_key=x_key,
        series=_series(measures),
        data=_project(table, keys),
    )


def pie_chart(table: List[Dict[str, Any]], name_key: str, value_key: str, label: str = "Value") -> Optional[ChartSpec]:
    """One slice per row; slice colors cycle through the palette"""
    if not table:
        return None
    data = _project(table, [name_key, value_key])
    for i, slice_ in enumerate(data):
        slice_["color"] = PALETTE[i % len(PALETTE)]
    return ChartSpec(
        kind=ChartKind.PIE,
        x_key=name_key,
        series=_series([(value_key, label)]),
        data=data,
    )


def funnel_chart(table: List[Dict[str, Any]], stage_key: str, value_key: str) -> Optional[ChartSpec]:
    if not table or not any(row.get(value_key) for row in table):
        return None
    return ChartSpec(
        kind=ChartKind.FUNNEL,
        x_key=stage_key,
        series=_series([(value_key, "Sessions")]),
        data=_project(table, [stage_key, value_key]),
    )
