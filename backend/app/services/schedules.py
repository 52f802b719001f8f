import calendar
from datetime import date


def DaysInMonth(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def AddMonths(start: date, months: int) -> date:
    """Shift by calendar months, clamping the day to the target month's end.

    Works for both ``date`` and ``datetime``; a datetime keeps its time and tzinfo.
    """
    if months == 0:
        return start
    year = start.year + (start.month - 1 + months) // 12
    month = (start.month - 1 + months) % 12 + 1
    day = min(start.day, DaysInMonth(year, month))
    return start.replace(year=year, month=month, day=day)


def AddYears(start: date, years: int) -> date:
    if years == 0:
        return start
    year = start.year + years
    day = min(start.day, DaysInMonth(year, start.month))
    return start.replace(year=year, day=day)
