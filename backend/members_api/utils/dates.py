"""
Calendar helpers for membership expiry.
"""
import calendar
from datetime import date


def add_months(start: date, months: int = 1) -> date:
    """Add calendar months, clamping the day to the end of the target month.

    add_months(date(2024, 1, 31)) -> date(2024, 2, 29)
    """
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    day = min(start.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)
