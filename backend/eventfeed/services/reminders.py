"""Reminder window calculator.

A reminder with lead time L is active while ``starts_at - L <= now < starts_at``.
The 24h window contains the 2h window, which contains the 1h window, so as an
event approaches several labels are active at once. Callers emit one
notification per active label.
"""
import enum
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional

import pytz


class ReminderLabel(enum.Enum):
    ONE_DAY = 0
    TWO_HOURS = 1
    ONE_HOUR = 2

    @property
    def lead_time(self) -> timedelta:
        return LEAD_TIMES[self]

    @property
    def phrase(self) -> str:
        return PHRASES[self]


LEAD_TIMES = {
    ReminderLabel.ONE_DAY: timedelta(hours=24),
    ReminderLabel.TWO_HOURS: timedelta(hours=2),
    ReminderLabel.ONE_HOUR: timedelta(hours=1),
}

PHRASES = {
    ReminderLabel.ONE_DAY: "tomorrow",
    ReminderLabel.TWO_HOURS: "in 2 hours",
    ReminderLabel.ONE_HOUR: "in 1 hour",
}


def _aware(value: datetime) -> datetime:
    return value.replace(tzinfo=timezone.utc) if value.tzinfo is None else value


def event_starts_at(event_date: date, event_time: Optional[time], tz_name: str = "UTC") -> datetime:
    """Combine the stored wall-clock date and time into an aware datetime.

    Events without a time are treated as starting at midnight.
    """
    tz = pytz.timezone(tz_name)
    naive = datetime.combine(event_date, event_time or time(0, 0))
    return tz.localize(naive.replace(tzinfo=None))


def window_opens_at(starts_at: datetime, label: ReminderLabel) -> datetime:
    return _aware(starts_at) - label.lead_time


def active_reminders(starts_at: datetime, now: datetime) -> list[ReminderLabel]:
    """Labels whose window contains ``now``, widest first. Naive datetimes are read as UTC."""
    starts_at = _aware(starts_at)
    now = _aware(now)
    if now >= starts_at:
        return []
    return [label for label in ReminderLabel if starts_at - label.lead_time <= now]
