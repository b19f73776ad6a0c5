"""Date manipulation utilities"""

from datetime import date, timedelta


def trailing_window(end: date, days: int) -> tuple[date, date]:
    """(start, end) of the `days`-long window that ends on `end` (inclusive)"""
    return end - timedelta(days=days - 1), end


def period_of(day: date) -> str:
    """Fixed-cost billing period (calendar month) as YYYY-MM"""
    return day.strftime("%Y-%m")
