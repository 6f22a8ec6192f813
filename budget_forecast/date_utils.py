"""Calendar arithmetic shared by the forecasting and bill modules"""

import calendar
from datetime import date


def period_key(day: date) -> str:
    """Year-month key (YYYY-MM) for a date"""
    return f"{day.year:04d}-{day.month:02d}"


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def shift_month(year: int, month: int, months: int) -> tuple:
    """Return (year, month) moved by a number of months"""
    index = year * 12 + (month - 1) + months
    return index // 12, index % 12 + 1


def add_months(day: date, months: int) -> date:
    """Add months to a date, keeping the day where the target month allows it"""
    year, month = shift_month(day.year, day.month, months)
    return date(year, month, min(day.day, days_in_month(year, month)))


def month_start(day: date) -> date:
    return day.replace(day=1)
