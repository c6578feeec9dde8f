"""
Calendar period helpers (month windows, settlement keys)
"""
import calendar
from dataclasses import dataclass
from datetime import date, datetime


@dataclass(frozen=True)
class MonthPeriod:
    year: int
    month: int

    @property
    def key(self) -> str:
        """Settlement period key, e.g. "2026-09" """
        return f"{self.year:04d}-{self.month:02d}"

    @property
    def first_day(self) -> date:
        return date(self.year, self.month, 1)

    @property
    def last_day(self) -> date:
        return date(self.year, self.month, calendar.monthrange(self.year, self.month)[1])

    def next(self) -> "MonthPeriod":
        if self.month == 12:
            return MonthPeriod(self.year + 1, 1)
        return MonthPeriod(self.year, self.month + 1)

    def previous(self) -> "MonthPeriod":
        if self.month == 1:
            return MonthPeriod(self.year - 1, 12)
        return MonthPeriod(self.year, self.month - 1)

    @classmethod
    def containing(cls, moment: date | datetime) -> "MonthPeriod":
        return cls(moment.year, moment.month)


def previous_month(now: date | datetime) -> MonthPeriod:
    """
    Calendar month before the one containing `now`.

    >>> previous_month(date(2026, 1, 15)).key
    '2025-12'
    """
    return MonthPeriod.containing(now).previous()


def date_window(year: int, month: int | None = None) -> tuple[date, date]:
    """
    Half-open [start, end) date range for a year or a single month.

    Used instead of strftime() so the same filter works on SQLite and PostgreSQL.
    """
    if month is None:
        return date(year, 1, 1), date(year + 1, 1, 1)
    period = MonthPeriod(year, month)
    return period.first_day, period.next().first_day
