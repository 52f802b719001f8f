from datetime import datetime, timedelta, timezone

from app.modules.notes.models import Reminder
from app.modules.notes.services.reminders_service import (
    AdvanceReminder,
    FormatTimeRemaining,
    IsOverdue,
    NextReminderDate,
    NormalizeRepeatType,
)

UTC = timezone.utc


def test_normalize_repeat_type_falls_back_to_none():
    assert NormalizeRepeatType("Weekly") == "weekly"
    assert NormalizeRepeatType("fortnightly") == "none"
    assert NormalizeRepeatType(None) == "none"


def test_next_reminder_simple_intervals():
    start = datetime(2026, 1, 5, 9, 0, tzinfo=UTC)
    assert NextReminderDate("none", start) is None
    assert NextReminderDate("daily", start) == datetime(2026, 1, 6, 9, 0, tzinfo=UTC)
    assert NextReminderDate("weekly", start) == datetime(2026, 1, 12, 9, 0, tzinfo=UTC)


def test_next_monthly_handles_month_end():
    start = datetime(2024, 1, 31, 8, 0, tzinfo=UTC)
    assert NextReminderDate("monthly", start) == datetime(2024, 2, 29, 8, 0, tzinfo=UTC)


def test_next_yearly_handles_leap_day():
    start = datetime(2024, 2, 29, 8, 0, tzinfo=UTC)
    assert NextReminderDate("yearly", start) == datetime(2025, 2, 28, 8, 0, tzinfo=UTC)


def test_next_weekdays_skips_weekend():
    friday = datetime(2026, 1, 9, 7, 0, tzinfo=UTC)
    assert NextReminderDate("weekdays", friday) == datetime(2026, 1, 12, 7, 0, tzinfo=UTC)
    saturday = datetime(2026, 1, 10, 7, 0, tzinfo=UTC)
    assert NextReminderDate("weekdays", saturday) == datetime(2026, 1, 12, 7, 0, tzinfo=UTC)
    tuesday = datetime(2026, 1, 6, 7, 0, tzinfo=UTC)
    assert NextReminderDate("weekdays", tuesday) == datetime(2026, 1, 7, 7, 0, tzinfo=UTC)


def test_next_weekends_jumps_to_saturday():
    monday = datetime(2026, 1, 5, 10, 0, tzinfo=UTC)
    assert NextReminderDate("weekends", monday) == datetime(2026, 1, 10, 10, 0, tzinfo=UTC)
    saturday = datetime(2026, 1, 10, 10, 0, tzinfo=UTC)
    assert NextReminderDate("weekends", saturday) == datetime(2026, 1, 11, 10, 0, tzinfo=UTC)
    sunday = datetime(2026, 1, 11, 10, 0, tzinfo=UTC)
    assert NextReminderDate("weekends", sunday) == datetime(2026, 1, 17, 10, 0, tzinfo=UTC)


def test_format_time_remaining():
    now = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)
    assert FormatTimeRemaining(now - timedelta(minutes=1), now) == "overdue"
    assert FormatTimeRemaining(now + timedelta(days=2, hours=3), now) == "in 2 days"
    assert FormatTimeRemaining(now + timedelta(days=1), now) == "in 1 day"
    assert FormatTimeRemaining(now + timedelta(hours=5), now) == "in 5 hours"
    assert FormatTimeRemaining(now + timedelta(minutes=1), now) == "in 1 minute"
    assert FormatTimeRemaining(now + timedelta(seconds=30), now) == "due now"


def test_is_overdue_ignores_inactive():
    now = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)
    past = now - timedelta(hours=1)
    assert IsOverdue(Reminder(ReminderAt=past, IsActive=True), now)
    assert not IsOverdue(Reminder(ReminderAt=past, IsActive=False), now)
    assert not IsOverdue(Reminder(ReminderAt=now + timedelta(hours=1), IsActive=True), now)


def test_advance_reminder_catches_up_past_now():
    now = datetime(2026, 3, 10, 12, 0, tzinfo=UTC)
    record = Reminder(ReminderAt=datetime(2026, 3, 1, 9, 0, tzinfo=UTC), RepeatType="daily", IsActive=True)
    assert AdvanceReminder(record, now)
    assert record.ReminderAt == datetime(2026, 3, 11, 9, 0, tzinfo=UTC)


def test_advance_reminder_deactivates_one_off():
    now = datetime(2026, 3, 10, 12, 0, tzinfo=UTC)
    record = Reminder(ReminderAt=datetime(2026, 3, 1, 9, 0, tzinfo=UTC), RepeatType="none", IsActive=True)
    assert not AdvanceReminder(record, now)
    assert record.IsActive is False
