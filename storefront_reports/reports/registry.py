"""
Report Registry

Maps report ids to pure aggregation functions with the uniform signature
``(rows, filters) -> ReportResult``. Report modules register themselves
with the ``report`` decorator; the registry is the single extension point
for new reports.
"""

from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional, Sequence

import structlog

from .errors import UnknownReportError
from .models import ReportCategory, ReportDefinition, ReportFilters, ReportResult
from .rows import ReportRows

logger = structlog.get_logger(__name__)

ReportFunc = Callable[[ReportRows, ReportFilters], ReportResult]


@dataclass(frozen=True)
class RegisteredReport:
    """Definition plus its aggregation function"""
    definition: ReportDefinition
    func: ReportFunc
    static_tables: frozenset

    def windowed(self, table: str) -> bool:
        """Whether ``table`` is fetched within the request window"""
        return table not in self.static_tables


class ReportRegistry:
    """
    Registry of report aggregations.

    Example:
        registry = ReportRegistry()

        @registry.report("sales-by-product", name="Sales by Product", ...)
        def sales_by_product(rows, filters):
            ...
    """

    def __init__(self):
        self._reports: Dict[str, RegisteredReport] = {}

    def register(
        self,
        definition: ReportDefinition,
        func: ReportFunc,
        static_tables: Iterable[str] = (),
    ) -> None:
        """Register a report function, replacing any previous one with the same id"""
        static = frozenset(static_tables)
        unknown = static - set(definition.tables)
        if unknown:
            raise ValueError(f"Static tables {sorted(unknown)} not fetched by {definition.id}")
        if definition.id in self._reports:
            logger.warning("Report re-registered", report_id=definition.id)
        self._reports[definition.id] = RegisteredReport(definition, func, static)

    def report(
        self,
        report_id: str,
        *,
        name: str,
        category: ReportCategory,
        description: str,
        tables: Sequence[str],
        static_tables: Sequence[str] = (),
    ) -> Callable[[ReportFunc], ReportFunc]:
        """Decorator form of ``register``"""
        def decorator(func: ReportFunc) -> ReportFunc:
            definition = ReportDefinition(
                id=report_id,
                name=name,
                category=category,
                description=description,
                tables=list(tables),
            )
            self.register(definition, func, static_tables)
            return func
        return decorator

    def get(self, report_id: str) -> RegisteredReport:
        try:
            return self._reports[report_id]
        except KeyError:
            raise UnknownReportError(report_id) from None

    def __contains__(self, report_id: str) -> bool:
        return report_id in self._reports

    def __len__(self) -> int:
        return len(self._reports)

    def definitions(self, category: Optional[ReportCategory] = None) -> List[ReportDefinition]:
        """Definitions in registration order, optionally for one category"""
        return [
            entry.definition
            for entry in self._reports.values()
            if category is None or entry.definition.category == category
        ]

    def search(self, query: str) -> List[ReportDefinition]:
        """Case-insensitive match on report name or description"""
        q = query.lower()
        return [
            d for d in self.definitions()
            if q in d.name.lower() or q in d.description.lower()
        ]


registry = ReportRegistry()
report = registry.report
