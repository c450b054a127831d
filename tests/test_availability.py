"""
Tests for recurring availability generation.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

import pytest

from slotbook.application.exceptions import InvalidArgument, NotFound, PermissionDenied, Unauthenticated
from slotbook.application.use_cases.generate_availability import GenerateAvailabilityUseCase
from slotbook.domain.entities.profile import Trainer
from slotbook.domain.entities.slot import ClientBooking, SlotStatus, UnavailableState, slot_id_for
from slotbook.domain.services.availability import AvailabilityRule, Weekday, expand_day, iter_days
from slotbook.infrastructure.store.memory_store import MemoryScheduleStore
from tests.conftest import LA, NOW, TRAINER_ID, seed

TUESDAY = date(2025, 1, 7)


def _all_slots(store, start: date = date(2025, 1, 1), end: date = date(2025, 2, 1)):
    return store.list_slots(
        TRAINER_ID,
        datetime.combine(start, datetime.min.time(), tzinfo=timezone.utc),
        datetime.combine(end, datetime.min.time(), tzinfo=timezone.utc),
    )


def _generate(store, **kwargs):
    use_case = GenerateAvailabilityUseCase(store=store, timezone=LA, admin_user_ids={"admin"})
    kwargs.setdefault("caller_id", TRAINER_ID)
    kwargs.setdefault("trainer_id", TRAINER_ID)
    return use_case.execute(**kwargs)


def test_weekday_numbering_starts_on_sunday():
    assert Weekday.of(date(2025, 1, 5)) is Weekday.SUNDAY
    assert Weekday.of(TUESDAY) is Weekday.TUESDAY
    assert Weekday.of(date(2025, 1, 11)) is Weekday.SATURDAY


def test_expand_day_uses_local_wall_clock():
    rule = AvailabilityRule(start_date=TUESDAY, end_date=TUESDAY)
    candidates = expand_day(rule, TUESDAY, LA)

    assert len(candidates) == 8
    assert candidates[0].start_time == datetime(2025, 1, 7, 9, tzinfo=LA)
    assert candidates[-1].end_time == datetime(2025, 1, 7, 17, tzinfo=LA)
    assert all(c.start_time.tzinfo is timezone.utc for c in candidates)


def test_boundary_drops_partial_trailing_slot():
    rule = AvailabilityRule(start_date=TUESDAY, end_date=TUESDAY, slot_duration_minutes=90)
    candidates = expand_day(rule, TUESDAY, LA)

    starts = [c.start_time.astimezone(LA).strftime("%H:%M") for c in candidates]
    assert starts == ["09:00", "10:30", "12:00", "13:30", "15:00"]
    assert candidates[-1].end_time == datetime(2025, 1, 7, 16, 30, tzinfo=LA)
    assert all(c.end_time <= datetime(2025, 1, 7, 17, tzinfo=LA) for c in candidates)


def test_duration_longer_than_window_yields_nothing():
    rule = AvailabilityRule(start_date=TUESDAY, end_date=TUESDAY, daily_start_hour=9, daily_end_hour=10,
                            slot_duration_minutes=120)
    assert expand_day(rule, TUESDAY, LA) == []


def test_iter_days_filters_weekdays():
    rule = AvailabilityRule(
        start_date=date(2025, 1, 5),
        end_date=date(2025, 1, 11),
        weekdays=frozenset({Weekday.MONDAY, Weekday.WEDNESDAY}),
    )
    assert list(iter_days(rule)) == [date(2025, 1, 6), date(2025, 1, 8)]


@pytest.mark.parametrize(
    "kwargs, message",
    [
        ({"start_date": date(2025, 1, 9), "end_date": date(2025, 1, 8)}, "Start date cannot be after end date."),
        ({"daily_start_hour": 24}, "Invalid daily start or end hours."),
        ({"daily_end_hour": 25}, "Invalid daily start or end hours."),
        ({"daily_start_hour": 17, "daily_end_hour": 9}, "Daily start hour must be before daily end hour."),
        ({"slot_duration_minutes": 0}, "Slot duration must be a positive number of minutes."),
        ({"slot_duration_minutes": 1441}, "Slot duration must be a positive number of minutes."),
    ],
)
def test_rule_validation(kwargs, message):
    rule = AvailabilityRule.with_defaults(today=TUESDAY, **kwargs)
    with pytest.raises(ValueError, match=message):
        rule.validate()


def test_generation_creates_open_slots(store):
    result = _generate(store, start_date=TUESDAY, end_date=TUESDAY)

    assert result.slots_added == 8
    assert result.message == "Availability processed successfully! Added 8 new slots."
    slots = _all_slots(store)
    assert len(slots) == 8
    assert all(s.status is SlotStatus.OPEN for s in slots)
    assert all(s.trainer_name == "Sam Coach" for s in slots)
    assert slots[0].id == "2025-01-07T17"


def test_generation_is_idempotent(store):
    _generate(store, start_date=TUESDAY, end_date=TUESDAY)
    before = _all_slots(store)

    again = _generate(store, start_date=TUESDAY, end_date=TUESDAY)

    assert again.slots_added == 0
    assert _all_slots(store) == before


def test_generation_never_touches_existing_slots(store):
    _generate(store, start_date=TUESDAY, end_date=TUESDAY)
    ten = slot_id_for(datetime(2025, 1, 7, 10, tzinfo=LA))
    eleven = slot_id_for(datetime(2025, 1, 7, 11, tzinfo=LA))

    def mark(tx):
        tx_slot_ten = tx.get_slot(TRAINER_ID, ten)
        tx_slot_eleven = tx.get_slot(TRAINER_ID, eleven)
        tx.put_slot(tx_slot_ten.with_state(UnavailableState(), NOW))
        tx.put_slot(tx_slot_eleven.booked_by("client-1", "Alex Rivera", NOW))

    store.run_transaction(mark)

    _generate(store, start_date=TUESDAY, end_date=TUESDAY)

    assert store.get_slot(TRAINER_ID, ten).status is SlotStatus.UNAVAILABLE
    booked = store.get_slot(TRAINER_ID, eleven)
    assert booked.state == ClientBooking("client-1", "Alex Rivera")


def test_overlapping_ranges_share_slot_keys(store):
    _generate(store, start_date=date(2025, 1, 7), end_date=date(2025, 1, 8))
    second = _generate(store, start_date=date(2025, 1, 8), end_date=date(2025, 1, 9))

    assert second.slots_added == 8
    slots = _all_slots(store)
    assert len(slots) == 24
    assert len({s.id for s in slots}) == 24


def test_generation_skips_candidates_overlapping_existing_slots(store):
    # A 90 minute grid lands inside the existing hourly slots.
    _generate(store, start_date=TUESDAY, end_date=TUESDAY)
    result = _generate(store, start_date=TUESDAY, end_date=TUESDAY, slot_duration_minutes=90)

    assert result.slots_added == 0
    assert len(_all_slots(store)) == 8


def test_generation_defaults(store):
    result = _generate(store)

    # 2025-01-06 through 2025-01-13, eight hourly slots a day.
    assert result.slots_added == 64
    slots = _all_slots(store)
    assert slots[0].start_time == datetime(2025, 1, 6, 9, tzinfo=LA)
    assert slots[-1].end_time == datetime(2025, 1, 13, 17, tzinfo=LA)


def test_generation_respects_weekdays(store):
    result = _generate(
        store,
        start_date=date(2025, 1, 5),
        end_date=date(2025, 1, 11),
        weekdays=[Weekday.MONDAY, Weekday.WEDNESDAY],
    )

    assert result.slots_added == 16
    days = {s.start_time.astimezone(LA).date() for s in _all_slots(store)}
    assert days == {date(2025, 1, 6), date(2025, 1, 8)}


def test_generation_uses_trainer_timezone(store):
    store.save_trainer(Trainer(id=TRAINER_ID, name="Sam Coach", timezone="America/New_York"))

    _generate(store, start_date=TUESDAY, end_date=TUESDAY, daily_start_hour=9, daily_end_hour=10)

    (slot,) = _all_slots(store)
    assert slot.start_time == datetime(2025, 1, 7, 14, tzinfo=timezone.utc)


def test_generation_rejects_invalid_input(store):
    with pytest.raises(InvalidArgument, match="Daily start hour must be before daily end hour."):
        _generate(store, daily_start_hour=12, daily_end_hour=12)
    with pytest.raises(InvalidArgument):
        _generate(store, weekdays=[7])
    with pytest.raises(InvalidArgument, match="Missing trainerId"):
        _generate(store, trainer_id="")
    assert _all_slots(store) == []


def test_generation_requires_authorized_caller(store):
    with pytest.raises(Unauthenticated):
        _generate(store, caller_id=None)
    with pytest.raises(PermissionDenied):
        _generate(store, caller_id="client-1")

    result = _generate(store, caller_id="admin", start_date=TUESDAY, end_date=TUESDAY)
    assert result.slots_added == 8


def test_generation_for_unknown_trainer(store):
    with pytest.raises(NotFound):
        _generate(store, caller_id="admin", trainer_id="ghost")


class FlakyStore(MemoryScheduleStore):
    """Fails the write for one slot and the day listing for Tuesday."""

    def __init__(self, failing_slot_id: str, **kwargs) -> None:
        super().__init__(**kwargs)
        self.failing_slot_id = failing_slot_id

    def list_slots(self, trainer_id, start, end):
        if start.astimezone(LA).date() == TUESDAY:
            raise ConnectionError("listing unavailable")
        return super().list_slots(trainer_id, start, end)

    def create_slot_if_absent(self, slot):
        if slot.id == self.failing_slot_id:
            raise ConnectionError("write failed")
        return super().create_slot_if_absent(slot)


def test_generation_continues_after_per_slot_failure():
    store = FlakyStore(failing_slot_id=slot_id_for(datetime(2025, 1, 7, 12, tzinfo=LA)), clock=lambda: NOW)
    seed(store)

    result = _generate(store, start_date=TUESDAY, end_date=TUESDAY)

    assert result.slots_added == 7
    ids = {s.id for s in MemoryScheduleStore.list_slots(store, TRAINER_ID, NOW, NOW + timedelta(days=7))}
    assert slot_id_for(datetime(2025, 1, 7, 12, tzinfo=LA)) not in ids
    assert len(ids) == 7

    # The per-key check still prevents duplicates when listing fails.
    again = _generate(store, start_date=TUESDAY, end_date=TUESDAY)
    assert again.slots_added == 0


def test_future_start_without_end_covers_a_week(store):
    result = _generate(store, start_date=date(2025, 3, 3))

    # 2025-03-03 through 2025-03-10.
    assert result.slots_added == 64
    slots = _all_slots(store, start=date(2025, 3, 1), end=date(2025, 4, 1))
    assert slots[0].start_time == datetime(2025, 3, 3, 9, tzinfo=LA)
    assert slots[-1].end_time == datetime(2025, 3, 10, 17, tzinfo=LA)


def test_rule_end_defaults_from_start():
    rule = AvailabilityRule.with_defaults(today=date(2025, 1, 6), start_date=date(2025, 3, 3))
    assert rule.end_date == date(2025, 3, 10)
    rule.validate()
