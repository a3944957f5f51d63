"""
Report Windows

Half-open ``[since, until)`` time windows, built either from a preset
(number of days ending now) or from an explicit inclusive date range.
"""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional, Tuple, Union

from storefront_reports.config import get_settings
from .errors import InvalidWindowError


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes, convert aware ones"""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@dataclass(frozen=True)
class DateRange:
    """Half-open window with UTC-aware bounds"""
    since: datetime
    until: datetime

    def __post_init__(self):
        object.__setattr__(self, "since", as_utc(self.since))
        object.__setattr__(self, "until", as_utc(self.until))
        if self.since >= self.until:
            raise InvalidWindowError(
                f"Window start {self.since.isoformat()} must be before end {self.until.isoformat()}"
            )

    def contains(self, value: Optional[datetime]) -> bool:
        if value is None:
            return False
        return self.since <= as_utc(value) < self.until

    def date_bounds(self) -> Tuple[date, date]:
        """
        Bounds for date-typed columns.

        The end is exclusive; a partial last day is included.
        """
        end = self.until.date()
        if self.until.time() != time(0, 0):
            end = end + timedelta(days=1)
        return self.since.date(), end

    def contains_date(self, value: Optional[date]) -> bool:
        if value is None:
            return False
        if isinstance(value, datetime):
            value = value.date()
        start, end = self.date_bounds()
        return start <= value < end

    @property
    def days(self) -> float:
        return (self.until - self.since).total_seconds() / 86400

    def cache_key(self) -> str:
        return f"{self.since.isoformat()}:{self.until.isoformat()}"


def preset_window(days: Union[int, str], now: Optional[datetime] = None) -> DateRange:
    """
    Window covering the last ``days`` days up to ``now``.

    Args:
        days: One of the configured presets (1, 7, 30, 90, 180, 365)
        now: End of the window, defaults to the current time

    Raises:
        InvalidWindowError: If ``days`` is not an allowed preset
    """
    allowed = get_settings().reports.presets
    try:
        days = int(days)
    except (TypeError, ValueError):
        raise InvalidWindowError(f"Invalid preset: {days!r}") from None
    if days not in allowed:
        raise InvalidWindowError(f"Preset must be one of {allowed}, got {days}")

    end = as_utc(now) if now else datetime.now(timezone.utc)
    return DateRange(since=end - timedelta(days=days), until=end)


def custom_window(date_from: date, date_to: date) -> DateRange:
    """Window spanning both calendar days inclusively"""
    if date_to < date_from:
        raise InvalidWindowError(f"date_to {date_to} is before date_from {date_from}")
    since = datetime.combine(date_from, time.min, tzinfo=timezone.utc)
    until = datetime.combine(date_to + timedelta(days=1), time.min, tzinfo=timezone.utc)
    return DateRange(since=since, until=until)


def resolve_window(
    preset: Optional[Union[int, str]] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    now: Optional[datetime] = None,
) -> DateRange:
    """
    Pick the window for a request.

    An explicit range wins over a preset; with neither, the configured
    default preset is used. A half-specified custom range falls back to
    the default preset the way the admin's custom picker does.
    """
    if preset == "custom" or (date_from and date_to):
        if date_from and date_to:
            return custom_window(date_from, date_to)
        preset = None
    if preset is None:
        preset = get_settings().reports.default_preset_days
    return preset_window(preset, now=now)
