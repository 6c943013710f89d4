# backend/coworking/services/periods.py
"""
Period description arithmetic.

A period is (period_type, start_date, end_date?, selected_days?). Dates are
ISO strings "YYYY-MM-DD" everywhere; day-by-day expansion is capped by
RentalConfig.max_rental_days.
"""

from dataclasses import dataclass
from datetime import date, timedelta
from math import ceil
from typing import Iterable, Optional

from ..errors import ValidationFailure
from ..models.enums import RentalPeriodType
from .rental_config import get_rental_config

SLIDING_MONTH_DAYS = 30


def parse_date(value: str | date) -> date:
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        raise ValidationFailure(f"Invalid date: {value!r}")


def date_str(value: str | date) -> str:
    return parse_date(value).isoformat()


def resolve_end_date(
    period_type: RentalPeriodType | str,
    start_date: str,
    end_date: Optional[str] = None,
) -> Optional[str]:
    """
    End date actually covered by the period.

    A sliding month without an explicit end covers SLIDING_MONTH_DAYS days.
    """
    if end_date:
        if parse_date(end_date) < parse_date(start_date):
            raise ValidationFailure("End date is before start date")
        return date_str(end_date)
    if RentalPeriodType(period_type) == RentalPeriodType.SLIDING_MONTH:
        end = parse_date(start_date) + timedelta(days=SLIDING_MONTH_DAYS - 1)
        return end.isoformat()
    return None


def dates_in_range(
    start_date: str | date,
    end_date: Optional[str | date] = None,
    limit: Optional[int] = None,
) -> list[str]:
    """Inclusive day-by-day expansion, at most `limit` days."""
    limit = limit or get_rental_config().max_rental_days
    start = parse_date(start_date)
    end = parse_date(end_date) if end_date else start

    dates = []
    current = start
    while current <= end and len(dates) < limit:
        dates.append(current.isoformat())
        current += timedelta(days=1)
    return dates


def normalize_days(selected_days: Optional[Iterable[str]]) -> list[str]:
    """Sorted unique ISO dates."""
    return sorted({date_str(d) for d in selected_days or []})


def dates_for_period(
    period_type: RentalPeriodType | str,
    start_date: str,
    end_date: Optional[str] = None,
    selected_days: Optional[Iterable[str]] = None,
) -> list[str]:
    """Every date the period occupies."""
    days = normalize_days(selected_days)
    if RentalPeriodType(period_type) == RentalPeriodType.SPECIFIC_DAYS:
        if not days:
            raise ValidationFailure("selected_days is required for SPECIFIC_DAYS periods")
        return days[: get_rental_config().max_rental_days]

    end = resolve_end_date(period_type, start_date, end_date)
    return dates_in_range(start_date, end)


def _inclusive_days(start_date: str, end_date: Optional[str]) -> int:
    if not end_date:
        return 1
    delta = parse_date(end_date) - parse_date(start_date)
    return abs(delta.days) + 1


def days_count(
    period_type: RentalPeriodType | str,
    start_date: str,
    end_date: Optional[str] = None,
    selected_days: Optional[Iterable[str]] = None,
) -> int:
    days = normalize_days(selected_days)
    if RentalPeriodType(period_type) == RentalPeriodType.SPECIFIC_DAYS and days:
        return len(days)
    return _inclusive_days(start_date, end_date)


def weeks_count(start_date: str, end_date: Optional[str] = None) -> int:
    if not end_date:
        return 1
    return ceil(_inclusive_days(start_date, end_date) / 7)


def months_count(
    period_type: RentalPeriodType | str,
    start_date: str,
    end_date: Optional[str] = None,
) -> int:
    """
    Calendar months spanned by start..end, inclusive.

    Sliding month is always one month (N days rolling from the start).
    """
    if not end_date:
        return 1
    if RentalPeriodType(period_type) == RentalPeriodType.SLIDING_MONTH:
        return 1
    start = parse_date(start_date)
    end = parse_date(end_date)
    return (end.year - start.year) * 12 + (end.month - start.month) + 1


@dataclass(frozen=True)
class Period:
    """Period description of a booking."""
    period_type: RentalPeriodType
    start_date: str
    end_date: Optional[str] = None
    selected_days: tuple[str, ...] = ()

    @classmethod
    def build(
        cls,
        period_type: RentalPeriodType | str,
        start_date: str | date,
        end_date: Optional[str | date] = None,
        selected_days: Optional[Iterable[str]] = None,
    ) -> "Period":
        period_type = RentalPeriodType(period_type)
        start = date_str(start_date)
        end = resolve_end_date(period_type, start, date_str(end_date) if end_date else None)
        return cls(period_type, start, end, tuple(normalize_days(selected_days)))

    def dates(self) -> list[str]:
        return dates_for_period(self.period_type, self.start_date, self.end_date, self.selected_days)

    @property
    def days(self) -> int:
        return days_count(self.period_type, self.start_date, self.end_date, self.selected_days)

    @property
    def weeks(self) -> int:
        return weeks_count(self.start_date, self.end_date)

    @property
    def months(self) -> int:
        return months_count(self.period_type, self.start_date, self.end_date)
