"""Report periods.

A DateRange is an immutable pair of calendar dates. Derived values (the days
in between, the ISO bounds) are built fresh; nothing here mutates a date in
place.
"""
import datetime
from dataclasses import dataclass

from dateutil.relativedelta import relativedelta
from django.utils import timezone

from .exceptions import InvalidRangeError

WEEKLY = "weekly"
MONTHLY = "monthly"
CUSTOM = "custom"
PERIOD_CHOICES = [
    (WEEKLY, "Last 7 days"),
    (MONTHLY, "This month"),
    (CUSTOM, "Custom range"),
]

# Weekly reports (and unknown modes) cover today plus the seven days before it.
WEEKLY_LOOKBACK_DAYS = 7


def format_date(value):
    """Render a date as ``Jan 3, 2024``."""
    return f"{value:%b} {value.day}, {value.year}"


@dataclass(frozen=True)
class DateRange:
    start: datetime.date
    end: datetime.date

    def __post_init__(self):
        if self.start > self.end:
            raise InvalidRangeError(
                f"Start date {self.start.isoformat()} is after end date {self.end.isoformat()}."
            )

    @property
    def label(self):
        return period_label(self)

    def contains(self, day):
        return self.start <= day <= self.end

    def days(self):
        """Every calendar day in the range, both ends included."""
        span = (self.end - self.start).days
        return [self.start + datetime.timedelta(days=offset) for offset in range(span + 1)]

    def iso_bounds(self):
        return self.start.isoformat(), self.end.isoformat()


def period_label(date_range):
    return f"{format_date(date_range.start)} – {format_date(date_range.end)}"


def parse_iso_date(value, field="date"):
    """Parse a ``YYYY-MM-DD`` string (or pass a date through)."""
    if isinstance(value, datetime.datetime):
        return value.date()
    if isinstance(value, datetime.date):
        return value
    if not value:
        raise InvalidRangeError(f"Missing {field}.")
    try:
        return datetime.date.fromisoformat(str(value).strip())
    except ValueError as exc:
        raise InvalidRangeError(f"Invalid {field} {value!r}; expected YYYY-MM-DD.") from exc


def resolve_range(mode, today=None, start=None, end=None):
    """Turn a report period selection into a DateRange.

    ``weekly`` and any unrecognised mode give today minus seven days through
    today; ``monthly`` gives the whole current calendar month; ``custom``
    requires both *start* and *end* and rejects start > end.
    """
    if today is None:
        today = timezone.localdate()

    if mode == MONTHLY:
        return DateRange(today.replace(day=1), today + relativedelta(day=31))
    if mode == CUSTOM:
        return DateRange(
            parse_iso_date(start, "start date"),
            parse_iso_date(end, "end date"),
        )
    return DateRange(today - datetime.timedelta(days=WEEKLY_LOOKBACK_DAYS), today)
