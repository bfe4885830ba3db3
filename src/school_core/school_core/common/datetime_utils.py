from __future__ import annotations

from datetime import date, datetime

from ..core.constants import DEFAULT_ACADEMIC_YEAR_START_MONTH


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now()


def academic_year_for(day: date, *, start_month: int = DEFAULT_ACADEMIC_YEAR_START_MONTH) -> str:
    """Academic year label ("2026-2027") that contains the given day."""
    first = day.year if day.month >= start_month else day.year - 1
    return f"{first}-{first + 1}"
