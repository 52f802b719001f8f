from datetime import date, datetime, timezone

from app.services.schedules import AddMonths, AddYears, DaysInMonth


def test_add_months_leap_year():
    assert AddMonths(date(2024, 1, 31), 1) == date(2024, 2, 29)


def test_add_months_year_boundary():
    assert AddMonths(date(2023, 12, 31), 1) == date(2024, 1, 31)


def test_add_months_backwards():
    assert AddMonths(date(2024, 3, 31), -1) == date(2024, 2, 29)


def test_add_years_handles_february():
    assert AddYears(date(2020, 2, 29), 1) == date(2021, 2, 28)


def test_add_months_keeps_time_and_zone():
    start = datetime(2025, 1, 31, 9, 30, tzinfo=timezone.utc)
    assert AddMonths(start, 1) == datetime(2025, 2, 28, 9, 30, tzinfo=timezone.utc)


def test_days_in_month():
    assert DaysInMonth(2024, 2) == 29
    assert DaysInMonth(2025, 2) == 28
    assert DaysInMonth(2025, 12) == 31
