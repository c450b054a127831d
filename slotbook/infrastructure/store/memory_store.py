from __future__ import annotations

import threading
import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Callable, TypeVar

from slotbook.application.ports.lesson_ledger import LessonLedgerPort
from slotbook.application.ports.schedule_store import ScheduleStorePort
from slotbook.application.ports.transaction import ScheduleTransaction
from slotbook.domain.entities.booking import Booking
from slotbook.domain.entities.lesson_package import LessonPackage
from slotbook.domain.entities.profile import ClientProfile, Trainer
from slotbook.domain.entities.slot import Slot

T = TypeVar("T")



def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class _Tables:
    trainers: dict[str, Trainer] = field(default_factory=dict)
    clients: dict[str, ClientProfile] = field(default_factory=dict)
    slots: dict[str, dict[str, Slot]] = field(default_factory=dict)
    packages: dict[str, dict[str, LessonPackage]] = field(default_factory=dict)
    bookings: dict[str, Booking] = field(default_factory=dict)

    def copy(self) -> "_Tables":
        return _Tables(
            trainers=dict(self.trainers),
            clients=dict(self.clients),
            slots={k: dict(v) for k, v in self.slots.items()},
            packages={k: dict(v) for k, v in self.packages.items()},
            bookings=dict(self.bookings),
        )


class MemoryScheduleStore(ScheduleStorePort, LessonLedgerPort):
    """
    In-process store. One lock serializes transactions; buffered writes are
    applied to a staged copy of the tables that replaces the live tables only
    once every write has succeeded.
    """

    def __init__(self, clock: Callable[[], datetime] | None = None) -> None:
        self._tables = _Tables()
        self._lock = threading.RLock()
        self._clock = clock or utc_now

    def now(self) -> datetime:
        return self._clock()

    # Profiles

    def get_trainer(self, trainer_id: str) -> Trainer | None:
        with self._lock:
            return self._tables.trainers.get(trainer_id)

    def list_trainers(self) -> list[Trainer]:
        with self._lock:
            return sorted(self._tables.trainers.values(), key=lambda t: t.name.lower())

    def save_trainer(self, trainer: Trainer) -> None:
        with self._lock:
            self._tables.trainers[trainer.id] = trainer

    def get_client(self, client_id: str) -> ClientProfile | None:
        with self._lock:
            return self._tables.clients.get(client_id)

    def save_client(self, client: ClientProfile) -> None:
        with self._lock:
            self._tables.clients[client.id] = client

    # Slots

    def get_slot(self, trainer_id: str, slot_id: str) -> Slot | None:
        with self._lock:
            return self._tables.slots.get(trainer_id, {}).get(slot_id)

    def list_slots(self, trainer_id: str, start: datetime, end: datetime) -> list[Slot]:
        with self._lock:
            slots = [s for s in self._tables.slots.get(trainer_id, {}).values() if start <= s.start_time < end]
        return sorted(slots, key=lambda s: s.start_time)

    def create_slot_if_absent(self, slot: Slot) -> bool:
        with self._lock:
            trainer_slots = self._tables.slots.setdefault(slot.trainer_id, {})
            if slot.id in trainer_slots:
                return False
            trainer_slots[slot.id] = slot
            return True

    # Bookings

    def get_booking(self, booking_id: str) -> Booking | None:
        with self._lock:
            return self._tables.bookings.get(booking_id)

    def list_client_bookings(self, client_id: str) -> list[Booking]:
        with self._lock:
            return [b for b in self._tables.bookings.values() if b.client_id == client_id]

    def new_booking_id(self) -> str:
        return uuid.uuid4().hex

    # Ledger

    def get_lesson_package(self, client_id: str, package_id: str) -> LessonPackage | None:
        with self._lock:
            return self._tables.packages.get(client_id, {}).get(package_id)

    def list_lesson_packages(self, client_id: str) -> list[LessonPackage]:
        with self._lock:
            packages = list(self._tables.packages.get(client_id, {}).values())
        return sorted(packages, key=lambda p: p.purchase_date, reverse=True)

    def add_lesson_package(self, package: LessonPackage) -> bool:
        with self._lock:
            client_packages = self._tables.packages.setdefault(package.client_id, {})
            if package.id in client_packages:
                return False
            client_packages[package.id] = package
            return True

    # Transactions

    def run_transaction(self, fn: Callable[[ScheduleTransaction], T]) -> T:
        with self._lock:
            tx = _MemoryTransaction(self._tables)
            result = fn(tx)
            if tx.writes:
                staged = self._tables.copy()
                now = self.now()
                for op, args in tx.writes:
                    getattr(self, f"_apply_{op}")(staged, now, *args)
                self._tables = staged
            return result

    def _apply_put_slot(self, tables: _Tables, now: datetime, slot: Slot) -> None:
        tables.slots.setdefault(slot.trainer_id, {})[slot.id] = slot

    def _apply_delete_slot(self, tables: _Tables, now: datetime, trainer_id: str, slot_id: str) -> None:
        tables.slots.get(trainer_id, {}).pop(slot_id, None)

    def _apply_increment_lessons_used(self, tables: _Tables, now: datetime, client_id: str, package_id: str) -> None:
        package = tables.packages[client_id][package_id]
        tables.packages[client_id][package_id] = package.consume_one()

    def _apply_create_booking(self, tables: _Tables, now: datetime, booking: Booking) -> None:
        if booking.id in tables.bookings:
            raise ValueError(f"booking {booking.id} already exists")
        tables.bookings[booking.id] = replace(booking, created_at=now)


class _MemoryTransaction(ScheduleTransaction):
    def __init__(self, tables: _Tables) -> None:
        self._tables = tables
        self.writes: list[tuple[str, tuple]] = []

    def _read(self) -> _Tables:
        if self.writes:
            raise RuntimeError("transaction reads must happen before writes")
        return self._tables

    def get_client(self, client_id: str) -> ClientProfile | None:
        return self._read().clients.get(client_id)

    def get_trainer(self, trainer_id: str) -> Trainer | None:
        return self._read().trainers.get(trainer_id)

    def get_lesson_package(self, client_id: str, package_id: str) -> LessonPackage | None:
        return self._read().packages.get(client_id, {}).get(package_id)

    def get_slot(self, trainer_id: str, slot_id: str) -> Slot | None:
        return self._read().slots.get(trainer_id, {}).get(slot_id)

    def list_slots(self, trainer_id: str, start: datetime, end: datetime) -> list[Slot]:
        slots = [s for s in self._read().slots.get(trainer_id, {}).values() if start <= s.start_time < end]
        return sorted(slots, key=lambda s: s.start_time)

    def put_slot(self, slot: Slot) -> None:
        self.writes.append(("put_slot", (slot,)))

    def delete_slot(self, trainer_id: str, slot_id: str) -> None:
        self.writes.append(("delete_slot", (trainer_id, slot_id)))

    def increment_lessons_used(self, client_id: str, package_id: str) -> None:
        self.writes.append(("increment_lessons_used", (client_id, package_id)))

    def create_booking(self, booking: Booking) -> None:
        self.writes.append(("create_booking", (booking,)))
