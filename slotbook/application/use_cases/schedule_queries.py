from __future__ import annotations

from datetime import datetime

from slotbook.application.exceptions import InvalidArgument
from slotbook.application.ports.lesson_ledger import LessonLedgerPort
from slotbook.application.ports.schedule_store import ScheduleStorePort
from slotbook.domain.entities.booking import Booking
from slotbook.domain.entities.lesson_package import LessonPackage
from slotbook.domain.entities.profile import Trainer
from slotbook.domain.entities.slot import Slot

ACTIVE_BOOKING_STATUSES = frozenset({"confirmed", "booked"})


class ScheduleQueries:
    """Read-only projections of store state for the presentation layer."""

    def __init__(self, store: ScheduleStorePort, ledger: LessonLedgerPort, bookings_limit: int = 20) -> None:
        self._store = store
        self._ledger = ledger
        self._bookings_limit = bookings_limit

    def list_slots(self, trainer_id: str, start: datetime, end: datetime) -> list[Slot]:
        if start.tzinfo is None or end.tzinfo is None:
            raise InvalidArgument("Range bounds must include a UTC offset.")
        if end <= start:
            raise InvalidArgument("Range end must be after range start.")
        return self._store.list_slots(trainer_id, start, end)

    def list_active_trainers(self) -> list[Trainer]:
        return [t for t in self._store.list_trainers() if t.active]

    def list_client_packages(self, client_id: str) -> list[LessonPackage]:
        return self._ledger.list_lesson_packages(client_id)

    def list_client_bookings(
        self,
        client_id: str,
        upcoming: bool = True,
        now: datetime | None = None,
        limit: int | None = None,
    ) -> list[Booking]:
        now = now or self._store.now()
        limit = limit or self._bookings_limit
        bookings = [b for b in self._store.list_client_bookings(client_id) if b.status in ACTIVE_BOOKING_STATUSES]
        if upcoming:
            selected = sorted((b for b in bookings if b.start_time >= now), key=lambda b: b.start_time)
        else:
            selected = sorted((b for b in bookings if b.start_time < now), key=lambda b: b.start_time, reverse=True)
        return selected[:limit]
