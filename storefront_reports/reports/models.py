"""
Report Result Models

Pydantic models describing what a report hands to the presentation layer:
a fixed set of KPIs, an optional chart specification, and the table rows
with their column order.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field, computed_field

from storefront_reports.config import get_settings

NO_DATA_MESSAGE = "No data available for this report in the selected date range."

# Chart palette used by the storefront admin
PALETTE = ["#3B82F6", "#10B981", "#F59E0B", "#EF4444", "#8B5CF6", "#EC4899", "#14B8A6", "#F97316"]


class ReportCategory(str, Enum):
    """Report groups shown in the reports center"""
    SALES = "sales"
    INVENTORY = "inventory"
    PAYMENTS = "payments"
    CUSTOMERS = "customers"
    ORDERS = "orders"
    DELIVERY = "delivery"
    EXPENSES = "expenses"
    ANALYTICS = "analytics"


class KpiFormat(str, Enum):
    """How a KPI value is displayed"""
    CURRENCY = "currency"
    NUMBER = "number"
    PERCENT = "percent"
    TEXT = "text"


class ChartKind(str, Enum):
    """Chart families the admin can render"""
    BAR = "bar"
    LINE = "line"
    PIE = "pie"
    FUNNEL = "funnel"


class Kpi(BaseModel):
    """Headline metric"""
    label: str
    value: Union[int, float, str]
    format: KpiFormat = KpiFormat.NUMBER
    icon: str = "bar-chart"
    color: str = "primary"

    @computed_field
    @property
    def display(self) -> str:
        if self.format == KpiFormat.TEXT or isinstance(self.value, str):
            return str(self.value)
        if self.format == KpiFormat.CURRENCY:
            return format_currency(self.value)
        if self.format == KpiFormat.PERCENT:
            return f"{self.value:.1f}%"
        if float(self.value).is_integer():
            return f"{int(self.value):,}"
        return f"{self.value:,.2f}"


class ChartSeries(BaseModel):
    """One plotted measure"""
    key: str
    label: str
    color: str


class ChartSpec(BaseModel):
    """Presentation-neutral chart description"""
    kind: ChartKind
    x_key: str
    series: List[ChartSeries]
    data: List[Dict[str, Any]] = Field(default_factory=list)
    horizontal: bool = False


class ReportFilters(BaseModel):
    """Optional narrowing applied before aggregation"""
    status: Optional[str] = None
    category: Optional[str] = None

    @property
    def order_status(self) -> Optional[str]:
        """Status filter, with 'all' meaning no filter"""
        if not self.status or self.status.lower() == "all":
            return None
        return self.status.lower()

    @property
    def category_name(self) -> Optional[str]:
        if not self.category or self.category.lower() == "all":
            return None
        return self.category

    def cache_key(self) -> str:
        return f"{self.order_status or 'all'}:{self.category_name or 'all'}"


class ReportDefinition(BaseModel):
    """Catalog entry for a registered report"""
    id: str
    name: str
    category: ReportCategory
    description: str
    tables: List[str]


class ReportResult(BaseModel):
    """
    Normalized report output.

    Built fresh on every invocation and discarded after rendering.
    """
    report_id: str
    title: str = ""
    kpis: List[Kpi] = Field(default_factory=list)
    chart: Optional[ChartSpec] = None
    table: List[Dict[str, Any]] = Field(default_factory=list)
    columns: List[str] = Field(default_factory=list)
    since: Optional[datetime] = None
    until: Optional[datetime] = None
    generated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    message: Optional[str] = None
    error_code: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return not self.table

    @classmethod
    def empty(
        cls,
        report_id: str,
        title: str = "",
        error_code: Optional[str] = None,
        since: Optional[datetime] = None,
        until: Optional[datetime] = None,
    ) -> "ReportResult":
        """Result shown when a report has nothing to display"""
        return cls(
            report_id=report_id,
            title=title,
            since=since,
            until=until,
            message=NO_DATA_MESSAGE,
            error_code=error_code,
        )


def format_currency(value: float) -> str:
    """Format an amount with the configured currency symbol"""
    symbol = get_settings().reports.currency_symbol
    if float(value).is_integer():
        return f"{symbol}{int(value):,}"
    return f"{symbol}{value:,.2f}"
