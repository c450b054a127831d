from __future__ import annotations

from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from slotbook.domain.entities.lesson_package import LessonPackage
from slotbook.domain.entities.profile import ClientProfile, Trainer
from slotbook.domain.entities.slot import Slot
from slotbook.infrastructure.store.memory_store import MemoryScheduleStore

LA = ZoneInfo("America/Los_Angeles")

# Monday 2025-01-06, 04:00 in Los Angeles.
NOW = datetime(2025, 1, 6, 12, 0, tzinfo=timezone.utc)

TRAINER_ID = "trainer-1"
CLIENT_ID = "client-1"
PACKAGE_ID = "pkg-1"


def hour_slot(year: int, month: int, day: int, hour: int, trainer_id: str = TRAINER_ID) -> Slot:
    """An open one-hour slot starting at a Los Angeles wall-clock time."""
    start = datetime(year, month, day, hour, tzinfo=LA)
    return Slot.create(trainer_id, start, start + timedelta(hours=1), now=NOW)


def seed(store, total_lessons: int = 5, lessons_used: int = 0) -> None:
    store.save_trainer(Trainer(id=TRAINER_ID, name="Sam Coach", email="sam@example.com"))
    store.save_client(
        ClientProfile(
            id=CLIENT_ID,
            first_name="Alex",
            last_name="Rivera",
            email_address="alex@example.com",
        )
    )
    store.add_lesson_package(
        LessonPackage(
            id=PACKAGE_ID,
            client_id=CLIENT_ID,
            package_type="five_pack",
            total_lessons=total_lessons,
            lessons_used=lessons_used,
            purchase_date=NOW - timedelta(days=1),
            expiration_date=NOW + timedelta(days=365),
        )
    )


@pytest.fixture
def store() -> MemoryScheduleStore:
    store = MemoryScheduleStore(clock=lambda: NOW)
    seed(store)
    return store


@pytest.fixture
def open_slot(store):
    def _create(year: int, month: int, day: int, hour: int, trainer_id: str = TRAINER_ID) -> Slot:
        slot = hour_slot(year, month, day, hour, trainer_id)
        assert store.create_slot_if_absent(slot)
        return slot

    return _create
