"""
Calendar-month helpers for subscription periods.

Subscriptions are billed per calendar month, so every date handled by the
service is normalised to the first day of its month. Dates cross the HTTP
boundary as ``MM-YYYY`` strings.
"""
from __future__ import annotations

import re
from datetime import date
from typing import Optional

from app.core.exceptions import ValidationError

_MONTH_PATTERN = re.compile(r"^(\d{2})-(\d{4})$")


def month_start(value: date) -> date:
    return value.replace(day=1)


def parse_month(value: str, field: str = "date") -> date:
    """Parse ``MM-YYYY`` into the first day of that month."""
    match = _MONTH_PATTERN.match((value or "").strip())
    if not match:
        raise ValidationError(
            f"Invalid {field} format. Expected MM-YYYY (e.g., 07-2025)",
            field=field,
            value=value,
        )
    month, year = int(match.group(1)), int(match.group(2))
    if not 1 <= month <= 12 or year < 1:
        raise ValidationError(
            f"Invalid {field} value. Expected MM-YYYY (e.g., 07-2025)",
            field=field,
            value=value,
        )
    return date(year, month, 1)


def parse_optional_month(value: Optional[str], field: str = "date") -> Optional[date]:
    if value is None or not value.strip():
        return None
    return parse_month(value, field)


def format_month(value: date) -> str:
    # strftime drops the zero padding of years below 1000 on glibc.
    return f"{value.month:02d}-{value.year:04d}"


def months_inclusive(start: date, end: date) -> int:
    """Inclusive count of calendar months from ``start`` to ``end`` (Jan-Jan is 1)."""
    return (end.year - start.year) * 12 + (end.month - start.month) + 1


def overlap_months(
    start_date: date,
    end_date: Optional[date],
    period_start: date,
    period_end: date,
) -> int:
    """Months a subscription window shares with the query period, 0 when disjoint."""
    effective_start = max(month_start(start_date), month_start(period_start))
    effective_end = min(month_start(end_date or period_end), month_start(period_end))
    if effective_end < effective_start:
        return 0
    return months_inclusive(effective_start, effective_end)


def ensure_ordered(start: date, end: Optional[date], start_field: str, end_field: str) -> None:
    if end is not None and end < start:
        raise ValidationError(
            f"{end_field} must not be before {start_field}",
            start=format_month(start),
            end=format_month(end),
        )
