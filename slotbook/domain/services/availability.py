"""
Recurring availability expansion.

Turns a day/time-window rule into concrete candidate periods. This module is
pure: it never touches a store, and the caller decides what to do with the
candidates.

Policy defaults applied when a rule field is omitted:

* range: start date (default today) through start + 7 days (inclusive)
* daily window: 09:00 to 17:00 trainer-local time
* slot duration: 60 minutes
* weekdays: every day

A window that is not evenly divisible by the duration drops its remainder;
no truncated trailing slot is ever produced.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from enum import IntEnum
from typing import Iterator
from zoneinfo import ZoneInfo


DEFAULT_RANGE_DAYS = 7
DEFAULT_DAILY_START_HOUR = 9
DEFAULT_DAILY_END_HOUR = 17
DEFAULT_SLOT_DURATION_MINUTES = 60
MAX_SLOT_DURATION_MINUTES = 24 * 60


class Weekday(IntEnum):
    # Numbering matches the client payload (Sunday-first).
    SUNDAY = 0
    MONDAY = 1
    TUESDAY = 2
    WEDNESDAY = 3
    THURSDAY = 4
    FRIDAY = 5
    SATURDAY = 6

    @classmethod
    def of(cls, day: date) -> "Weekday":
        return cls((day.weekday() + 1) % 7)


@dataclass(frozen=True)
class AvailabilityRule:
    start_date: date
    end_date: date
    daily_start_hour: int = DEFAULT_DAILY_START_HOUR
    daily_end_hour: int = DEFAULT_DAILY_END_HOUR
    slot_duration_minutes: int = DEFAULT_SLOT_DURATION_MINUTES
    weekdays: frozenset[Weekday] | None = None  # None means every day

    @classmethod
    def with_defaults(
        cls,
        today: date,
        start_date: date | None = None,
        end_date: date | None = None,
        daily_start_hour: int | None = None,
        daily_end_hour: int | None = None,
        slot_duration_minutes: int | None = None,
        weekdays: list[int] | None = None,
    ) -> "AvailabilityRule":
        start = start_date or today
        return cls(
            start_date=start,
            end_date=end_date or (start + timedelta(days=DEFAULT_RANGE_DAYS)),
            daily_start_hour=DEFAULT_DAILY_START_HOUR if daily_start_hour is None else daily_start_hour,
            daily_end_hour=DEFAULT_DAILY_END_HOUR if daily_end_hour is None else daily_end_hour,
            slot_duration_minutes=(
                DEFAULT_SLOT_DURATION_MINUTES if slot_duration_minutes is None else slot_duration_minutes
            ),
            weekdays=frozenset(Weekday(d) for d in weekdays) if weekdays else None,
        )

    @property
    def day_count(self) -> int:
        return (self.end_date - self.start_date).days + 1

    def validate(self, max_days: int | None = None) -> None:
        """Raise ValueError describing the first invalid field."""
        if self.start_date > self.end_date:
            raise ValueError("Start date cannot be after end date.")
        if max_days is not None and self.day_count > max_days:
            raise ValueError(f"Date range cannot exceed {max_days} days.")
        if not (0 <= self.daily_start_hour <= 23) or not (0 <= self.daily_end_hour <= 24):
            raise ValueError("Invalid daily start or end hours.")
        if self.daily_start_hour >= self.daily_end_hour:
            raise ValueError("Daily start hour must be before daily end hour.")
        if not (0 < self.slot_duration_minutes <= MAX_SLOT_DURATION_MINUTES):
            raise ValueError("Slot duration must be a positive number of minutes.")

    def includes(self, day: date) -> bool:
        return self.weekdays is None or Weekday.of(day) in self.weekdays


@dataclass(frozen=True)
class CandidateSlot:
    start_time: datetime
    end_time: datetime


def iter_days(rule: AvailabilityRule) -> Iterator[date]:
    day = rule.start_date
    while day <= rule.end_date:
        if rule.includes(day):
            yield day
        day += timedelta(days=1)


def expand_day(rule: AvailabilityRule, day: date, tz: ZoneInfo) -> list[CandidateSlot]:
    """Candidates for one local calendar day, as UTC instants."""
    midnight = datetime.combine(day, time.min, tzinfo=tz)
    window_end = rule.daily_end_hour * 60
    candidates: list[CandidateSlot] = []

    current = rule.daily_start_hour * 60
    while current < window_end:
        slot_end = current + rule.slot_duration_minutes
        if slot_end > window_end:
            break
        start = _local_instant(midnight, current, tz)
        end = _local_instant(midnight, slot_end, tz)
        if end > start:
            candidates.append(CandidateSlot(start_time=start, end_time=end))
        current = slot_end
    return candidates


def expand_rule(rule: AvailabilityRule, tz: ZoneInfo) -> Iterator[tuple[date, list[CandidateSlot]]]:
    for day in iter_days(rule):
        yield day, expand_day(rule, day, tz)


def day_bounds(day: date, tz: ZoneInfo) -> tuple[datetime, datetime]:
    start = datetime.combine(day, time.min, tzinfo=tz)
    end = datetime.combine(day + timedelta(days=1), time.min, tzinfo=tz)
    return start.astimezone(timezone.utc), end.astimezone(timezone.utc)


def _local_instant(midnight: datetime, minutes: int, tz: ZoneInfo) -> datetime:
    # Wall-clock arithmetic: build the local time, then convert to UTC.
    day = midnight.date() + timedelta(days=minutes // (24 * 60))
    minute_of_day = minutes % (24 * 60)
    local = datetime.combine(day, time(minute_of_day // 60, minute_of_day % 60), tzinfo=tz)
    return local.astimezone(timezone.utc)
