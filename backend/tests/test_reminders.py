"""Tests for the reminder window calculator."""
from datetime import date, datetime, time, timedelta, timezone

import pytest

from eventfeed.services.reminders import ReminderLabel, active_reminders, event_starts_at, window_opens_at

START = datetime(2030, 3, 10, 19, 0, tzinfo=timezone.utc)


class TestActiveReminders:
    """Nested 24h / 2h / 1h windows."""

    def test_thirty_minutes_out_all_labels(self):
        now = START - timedelta(minutes=30)
        assert active_reminders(START, now) == [
            ReminderLabel.ONE_DAY, ReminderLabel.TWO_HOURS, ReminderLabel.ONE_HOUR,
        ]

    def test_three_hours_out(self):
        now = START - timedelta(hours=3)
        assert active_reminders(START, now) == [ReminderLabel.ONE_DAY]

    def test_ninety_minutes_out(self):
        now = START - timedelta(minutes=90)
        assert active_reminders(START, now) == [ReminderLabel.ONE_DAY, ReminderLabel.TWO_HOURS]

    def test_twenty_five_hours_out(self):
        assert active_reminders(START, START - timedelta(hours=25)) == []

    def test_window_start_is_inclusive(self):
        assert active_reminders(START, START - timedelta(hours=24)) == [ReminderLabel.ONE_DAY]
        assert active_reminders(START, START - timedelta(hours=2)) == [
            ReminderLabel.ONE_DAY, ReminderLabel.TWO_HOURS,
        ]

    def test_just_outside_window(self):
        assert active_reminders(START, START - timedelta(hours=24, seconds=1)) == []

    @pytest.mark.parametrize("delta", [timedelta(0), timedelta(minutes=1), timedelta(days=2)])
    def test_started_or_finished_is_empty(self, delta):
        assert active_reminders(START, START + delta) == []

    def test_naive_datetimes_read_as_utc(self):
        naive_start = START.replace(tzinfo=None)
        assert active_reminders(naive_start, START - timedelta(minutes=30)) == list(ReminderLabel)


class TestLabels:

    def test_indices_and_phrases(self):
        assert [label.value for label in ReminderLabel] == [0, 1, 2]
        assert ReminderLabel.ONE_DAY.phrase == "tomorrow"
        assert ReminderLabel.TWO_HOURS.phrase == "in 2 hours"
        assert ReminderLabel.ONE_HOUR.phrase == "in 1 hour"

    def test_window_opens_at(self):
        assert window_opens_at(START, ReminderLabel.TWO_HOURS) == START - timedelta(hours=2)


class TestEventStartsAt:
    """Stored wall-clock date/time → aware datetime."""

    def test_utc(self):
        assert event_starts_at(date(2030, 3, 10), time(19, 0)) == START

    def test_missing_time_is_midnight(self):
        assert event_starts_at(date(2030, 3, 10), None) == datetime(2030, 3, 10, tzinfo=timezone.utc)

    def test_named_timezone(self):
        starts = event_starts_at(date(2030, 7, 4), time(20, 0), "America/New_York")
        # EDT is UTC-4 in July
        assert starts.astimezone(timezone.utc) == datetime(2030, 7, 5, 0, 0, tzinfo=timezone.utc)
