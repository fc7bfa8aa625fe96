from __future__ import annotations
from datetime import date
from typing import Optional

SEASON_ORDER = ["winter", "spring", "summer", "fall"]


def quarter_start(month: int) -> int:
    """Map a month (1-12) to the first month of its quarter: 1, 4, 7 or 10."""
    if not 1 <= month <= 12:
        raise ValueError(f"month must be in 1..12, got {month}")
    return (month - 1) // 3 * 3 + 1


def previous_quarter(year: int, month: int) -> tuple[int, int]:
    """Step back one quarter from the quarter containing (year, month)."""
    q = quarter_start(month) - 3
    if q <= 0:
        q += 12
        year -= 1
    return year, q


def season_name(month: int) -> str:
    return SEASON_ORDER[(quarter_start(month) - 1) // 3]


def season_window_start(today: Optional[date] = None) -> str:
    """
    Lower bound (YYYY-MM-01) of the "currently airing" window.

    The window opens at the previous quarter, so it spans two seasons:
    shows added late to the catalog still fall inside it.
    """
    today = today or date.today()
    y, m = previous_quarter(today.year, today.month)
    return f"{y}-{m:02d}-01"
