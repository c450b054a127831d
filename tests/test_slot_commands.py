from datetime import date, datetime, timedelta

import pytest

from slotbook.application.exceptions import FailedPrecondition, InvalidArgument, NotFound, PermissionDenied
from slotbook.application.use_cases.book_slot import BookSlotUseCase
from slotbook.application.use_cases.generate_availability import GenerateAvailabilityUseCase
from slotbook.application.use_cases.slot_commands import SlotCommandsUseCase
from slotbook.domain.entities.slot import SlotStatus, slot_id_for
from tests.conftest import CLIENT_ID, LA, NOW, PACKAGE_ID, TRAINER_ID


@pytest.fixture
def commands(store):
    return SlotCommandsUseCase(store=store, timezone=LA, admin_user_ids={"admin"}, max_range=timedelta(days=31))


def _slots_on(store, day: int):
    start = datetime(2025, 1, day, tzinfo=LA)
    return store.list_slots(TRAINER_ID, start, start + timedelta(days=1))


def _book(store, slot_id):
    BookSlotUseCase(store=store).execute(CLIENT_ID, TRAINER_ID, slot_id, CLIENT_ID, PACKAGE_ID)


def test_set_slot_status_creates_and_updates(store, commands):
    start = datetime(2025, 1, 7, 9, tzinfo=LA)

    slot = commands.set_slot_status(TRAINER_ID, TRAINER_ID, start, "unavailable")
    assert slot.status is SlotStatus.UNAVAILABLE
    assert slot.end_time == start + timedelta(hours=1)
    assert slot.created_at == NOW

    reopened = commands.set_slot_status(TRAINER_ID, TRAINER_ID, start, SlotStatus.OPEN)
    assert reopened.id == slot.id
    assert store.get_slot(TRAINER_ID, slot.id).status is SlotStatus.OPEN


def test_naive_times_are_read_in_schedule_timezone(store, commands):
    slot = commands.set_slot_status(TRAINER_ID, TRAINER_ID, datetime(2025, 1, 7, 9), "open")
    assert slot.start_time == datetime(2025, 1, 7, 9, tzinfo=LA)
    assert slot.id == "2025-01-07T17"


def test_booked_slot_cannot_be_edited(store, commands, open_slot):
    slot = open_slot(2025, 1, 7, 9)
    _book(store, slot.id)

    with pytest.raises(FailedPrecondition, match="booked"):
        commands.set_slot_status(TRAINER_ID, TRAINER_ID, slot.start_time, "unavailable")
    assert store.get_slot(TRAINER_ID, slot.id).status is SlotStatus.BOOKED


@pytest.mark.parametrize("status", ["booked", "busy", ""])
def test_only_open_or_unavailable_can_be_set(commands, status):
    with pytest.raises(InvalidArgument):
        commands.set_slot_status(TRAINER_ID, TRAINER_ID, datetime(2025, 1, 7, 9, tzinfo=LA), status)


def test_commands_require_trainer_or_admin(commands):
    start = datetime(2025, 1, 7, 9, tzinfo=LA)
    with pytest.raises(PermissionDenied):
        commands.set_slot_status(CLIENT_ID, TRAINER_ID, start, "open")
    with pytest.raises(NotFound):
        commands.set_slot_status("admin", "ghost", start, "open")


def test_open_range_skips_partial_trailing_hour(store, commands):
    written = commands.set_availability_range(
        TRAINER_ID,
        TRAINER_ID,
        datetime(2025, 1, 7, 9, tzinfo=LA),
        datetime(2025, 1, 7, 12, 30, tzinfo=LA),
        "open",
    )

    assert written == 3
    slots = _slots_on(store, 7)
    assert [s.start_time.astimezone(LA).hour for s in slots] == [9, 10, 11]


def test_unavailable_range_truncates_last_hour(store, commands):
    written = commands.set_availability_range(
        TRAINER_ID,
        TRAINER_ID,
        datetime(2025, 1, 7, 9, tzinfo=LA),
        datetime(2025, 1, 7, 12, 30, tzinfo=LA),
        "unavailable",
    )

    assert written == 4
    slots = _slots_on(store, 7)
    assert slots[-1].end_time == datetime(2025, 1, 7, 12, 30, tzinfo=LA)
    assert all(s.status is SlotStatus.UNAVAILABLE for s in slots)


def test_range_leaves_booked_hours_alone(store, commands, open_slot):
    booked = open_slot(2025, 1, 7, 10)
    _book(store, booked.id)

    written = commands.set_availability_range(
        TRAINER_ID,
        TRAINER_ID,
        datetime(2025, 1, 7, 9, tzinfo=LA),
        datetime(2025, 1, 7, 12, tzinfo=LA),
        "unavailable",
    )

    assert written == 2
    assert store.get_slot(TRAINER_ID, booked.id).status is SlotStatus.BOOKED


def test_range_validation(commands):
    start = datetime(2025, 1, 7, 9, tzinfo=LA)
    with pytest.raises(InvalidArgument, match="End time must be after start time."):
        commands.set_availability_range(TRAINER_ID, TRAINER_ID, start, start, "open")
    with pytest.raises(InvalidArgument, match="too long"):
        commands.set_availability_range(TRAINER_ID, TRAINER_ID, start, start + timedelta(days=60), "open")


def test_delete_slot(store, commands, open_slot):
    slot = open_slot(2025, 1, 7, 9)

    assert commands.delete_slot(TRAINER_ID, TRAINER_ID, slot.start_time) is True
    assert store.get_slot(TRAINER_ID, slot.id) is None
    assert commands.delete_slot(TRAINER_ID, TRAINER_ID, slot.start_time) is False


def test_booked_slot_cannot_be_deleted(store, commands, open_slot):
    slot = open_slot(2025, 1, 7, 9)
    _book(store, slot.id)

    with pytest.raises(FailedPrecondition, match="Booked slots cannot be deleted."):
        commands.delete_slot(TRAINER_ID, TRAINER_ID, slot.start_time)
    assert store.get_slot(TRAINER_ID, slot_id_for(slot.start_time)) is not None


def test_edit_times_snap_to_the_hour(store, commands, open_slot):
    ten = open_slot(2025, 1, 7, 10)
    eleven = open_slot(2025, 1, 7, 11)

    slot = commands.set_slot_status(TRAINER_ID, TRAINER_ID, datetime(2025, 1, 7, 10, 30, tzinfo=LA), "unavailable")

    assert slot.id == ten.id
    assert slot.start_time == datetime(2025, 1, 7, 10, tzinfo=LA)
    assert slot.end_time == datetime(2025, 1, 7, 11, tzinfo=LA)
    slots = _slots_on(store, 7)
    assert [s.id for s in slots] == [ten.id, eleven.id]
    assert not slots[0].overlaps(slots[1].start_time, slots[1].end_time)

    assert commands.delete_slot(TRAINER_ID, TRAINER_ID, datetime(2025, 1, 7, 11, 45, tzinfo=LA)) is True
    assert store.get_slot(TRAINER_ID, eleven.id) is None


def _generate_ninety_minute_grid(store):
    GenerateAvailabilityUseCase(store=store, timezone=LA).execute(
        TRAINER_ID, TRAINER_ID, start_date=date(2025, 1, 7), end_date=date(2025, 1, 7), slot_duration_minutes=90
    )


def test_edit_refuses_overlap_with_generated_slot(store, commands):
    _generate_ninety_minute_grid(store)
    before = _slots_on(store, 7)

    # 11:00-12:00 falls inside the generated 10:30-12:00 slot.
    with pytest.raises(FailedPrecondition, match="overlaps another slot"):
        commands.set_slot_status(TRAINER_ID, TRAINER_ID, datetime(2025, 1, 7, 11, tzinfo=LA), "unavailable")

    assert _slots_on(store, 7) == before


def test_range_skips_hours_overlapping_other_slots(store, commands):
    _generate_ninety_minute_grid(store)
    before = _slots_on(store, 7)

    written = commands.set_availability_range(
        TRAINER_ID,
        TRAINER_ID,
        datetime(2025, 1, 7, 11, tzinfo=LA),
        datetime(2025, 1, 7, 12, tzinfo=LA),
        "unavailable",
    )

    assert written == 0
    assert _slots_on(store, 7) == before
