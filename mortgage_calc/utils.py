"""Utility functions for the mortgage calculator.

This module provides helpers for parsing user input into Python data types
and for month-granularity date handling: normalizing dates to the first of
the month, adding months and counting the months between two dates. Days of
the month never matter to the calculator, so every helper here works on
year and month only.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Optional


def parse_year_month(ym: str) -> date:
    """Parse a YYYY-MM string into a ``date`` object (first day of month).

    Parameters
    ----------
    ym: str
        A string in the form ``"YYYY-MM"``. A trailing day component, if
        present, is ignored.

    Returns
    -------
    date
        A date object representing the first day of the specified month.

    Raises
    ------
    ValueError
        If the string is not a valid year-month.
    """
    try:
        parts = ym.strip().split("-")
        if len(parts) < 2:
            raise ValueError
        year = int(parts[0])
        month = int(parts[1][:2])
        return date(year, month, 1)
    except (AttributeError, ValueError) as exc:
        raise ValueError(f"Invalid year-month string: {ym}") from exc


def parse_iso_date(value: str) -> date:
    """Parse an ISO-8601 date or datetime string into a ``date``.

    Accepts plain dates (``2024-03-15``) as well as the timestamps produced
    by browsers (``2024-03-15T10:20:30.000Z``). Only the calendar date is
    kept.
    """
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        pass
    try:
        return date.fromisoformat(text[:10])
    except ValueError as exc:
        raise ValueError(f"Invalid ISO date: {value}") from exc


def normalize_to_month_start(dt: date) -> date:
    """Return the first day of the month ``dt`` falls in."""
    return date(dt.year, dt.month, 1)


def current_month(today: Optional[date] = None) -> date:
    return normalize_to_month_start(today or date.today())


def add_months(dt: date, months: int) -> date:
    """Return the first day of the month ``months`` after ``dt``'s month."""
    year = dt.year + (dt.month - 1 + months) // 12
    month = (dt.month - 1 + months) % 12 + 1
    return date(year, month, 1)


def months_between(start: date, end: date) -> int:
    """Number of whole calendar months from ``start`` to ``end``.

    The result is negative when ``end`` falls in an earlier month.
    """
    return (end.year - start.year) * 12 + (end.month - start.month)


def float_from_str(value: str) -> float:
    """Convert a numeric string into a ``float``.

    The function strips thousands separators (commas) and surrounding
    whitespace. An empty string converts to ``0.0``, mirroring how an
    emptied numeric form field is treated. It raises ``ValueError`` if
    conversion fails.
    """
    cleaned = value.replace(",", "").strip()
    if cleaned == "":
        return 0.0
    try:
        return float(cleaned)
    except ValueError as exc:
        raise ValueError(f"Invalid numeric value: {value}") from exc
