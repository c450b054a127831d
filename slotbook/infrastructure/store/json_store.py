from __future__ import annotations

import copy
import json
import logging
import threading
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, TypeVar

from slotbook.application.exceptions import RecordDecodeError
from slotbook.application.ports.lesson_ledger import LessonLedgerPort
from slotbook.application.ports.schedule_store import ScheduleStorePort
from slotbook.application.ports.transaction import ScheduleTransaction
from slotbook.domain.entities.booking import Booking
from slotbook.domain.entities.lesson_package import LessonPackage
from slotbook.domain.entities.profile import ClientProfile, Trainer
from slotbook.domain.entities.slot import Slot
from slotbook.infrastructure.store import codec

T = TypeVar("T")

logger = logging.getLogger(__name__)

_COLLECTIONS = ("trainers", "users", "schedules", "lessonPackages", "bookings")


class JsonScheduleStore(ScheduleStorePort, LessonLedgerPort):
    """
    Single-file JSON store for local development.

    Layout mirrors the document database: trainers, users, schedules keyed by
    trainer then slot id, lessonPackages keyed by client then package id, and
    a flat bookings collection.
    """

    def __init__(self, path: str = "./data/schedule.json", clock: Callable[[], datetime] | None = None) -> None:
        self._path = Path(path)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.RLock()
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def now(self) -> datetime:
        return self._clock()

    def _load(self) -> dict[str, Any]:
        """Load the whole database. A missing file is an empty database."""
        if not self._path.exists():
            data: dict[str, Any] = {"version": 1}
        else:
            with open(self._path, "r", encoding="utf-8") as f:
                data = json.load(f)
        for name in _COLLECTIONS:
            data.setdefault(name, {})
        return data

    def _save(self, data: dict[str, Any]) -> None:
        """Save the database atomically via a temp file and rename."""
        temp_path = self._path.with_suffix(".json.tmp")
        try:
            with open(temp_path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
            temp_path.replace(self._path)
        except Exception:
            if temp_path.exists():
                temp_path.unlink()
            raise

    def _decode_all(self, items: dict[str, Any], decode: Callable[[str, Any], T]) -> list[T]:
        records: list[T] = []
        for record_id, doc in items.items():
            try:
                records.append(decode(record_id, doc))
            except RecordDecodeError as e:
                logger.warning("Skipping invalid record", extra={"error": str(e)})
        return records

    # Profiles

    def get_trainer(self, trainer_id: str) -> Trainer | None:
        with self._lock:
            doc = self._load()["trainers"].get(trainer_id)
        return codec.decode_trainer(trainer_id, doc) if doc is not None else None

    def list_trainers(self) -> list[Trainer]:
        with self._lock:
            docs = self._load()["trainers"]
        trainers = self._decode_all(docs, codec.decode_trainer)
        return sorted(trainers, key=lambda t: t.name.lower())

    def save_trainer(self, trainer: Trainer) -> None:
        with self._lock:
            data = self._load()
            data["trainers"][trainer.id] = codec.encode_trainer(trainer, mode="json")
            self._save(data)

    def get_client(self, client_id: str) -> ClientProfile | None:
        with self._lock:
            doc = self._load()["users"].get(client_id)
        return codec.decode_client(client_id, doc) if doc is not None else None

    def save_client(self, client: ClientProfile) -> None:
        with self._lock:
            data = self._load()
            data["users"][client.id] = codec.encode_client(client, mode="json")
            self._save(data)

    # Slots

    def get_slot(self, trainer_id: str, slot_id: str) -> Slot | None:
        with self._lock:
            doc = self._load()["schedules"].get(trainer_id, {}).get(slot_id)
        return codec.decode_slot(trainer_id, slot_id, doc) if doc is not None else None

    def list_slots(self, trainer_id: str, start: datetime, end: datetime) -> list[Slot]:
        with self._lock:
            docs = self._load()["schedules"].get(trainer_id, {})
        slots = self._decode_all(docs, lambda slot_id, doc: codec.decode_slot(trainer_id, slot_id, doc))
        return sorted((s for s in slots if start <= s.start_time < end), key=lambda s: s.start_time)

    def create_slot_if_absent(self, slot: Slot) -> bool:
        with self._lock:
            data = self._load()
            trainer_slots = data["schedules"].setdefault(slot.trainer_id, {})
            if slot.id in trainer_slots:
                return False
            trainer_slots[slot.id] = codec.encode_slot(slot, mode="json")
            self._save(data)
            return True

    # Bookings

    def get_booking(self, booking_id: str) -> Booking | None:
        with self._lock:
            doc = self._load()["bookings"].get(booking_id)
        return codec.decode_booking(booking_id, doc) if doc is not None else None

    def list_client_bookings(self, client_id: str) -> list[Booking]:
        with self._lock:
            docs = self._load()["bookings"]
        return [b for b in self._decode_all(docs, codec.decode_booking) if b.client_id == client_id]

    def new_booking_id(self) -> str:
        return uuid.uuid4().hex

    # Ledger

    def get_lesson_package(self, client_id: str, package_id: str) -> LessonPackage | None:
        with self._lock:
            doc = self._load()["lessonPackages"].get(client_id, {}).get(package_id)
        return codec.decode_lesson_package(client_id, package_id, doc) if doc is not None else None

    def list_lesson_packages(self, client_id: str) -> list[LessonPackage]:
        with self._lock:
            docs = self._load()["lessonPackages"].get(client_id, {})
        packages = self._decode_all(docs, lambda pid, doc: codec.decode_lesson_package(client_id, pid, doc))
        return sorted(packages, key=lambda p: p.purchase_date, reverse=True)

    def add_lesson_package(self, package: LessonPackage) -> bool:
        with self._lock:
            data = self._load()
            client_packages = data["lessonPackages"].setdefault(package.client_id, {})
            if package.id in client_packages:
                return False
            client_packages[package.id] = codec.encode_lesson_package(package, mode="json")
            self._save(data)
            return True

    # Transactions

    def run_transaction(self, fn: Callable[[ScheduleTransaction], T]) -> T:
        with self._lock:
            data = self._load()
            tx = _JsonTransaction(data)
            result = fn(tx)
            if tx.writes:
                staged = copy.deepcopy(data)
                now = self.now()
                for op, args in tx.writes:
                    getattr(self, f"_apply_{op}")(staged, now, *args)
                self._save(staged)
            return result

    def _apply_put_slot(self, data: dict[str, Any], now: datetime, slot: Slot) -> None:
        data["schedules"].setdefault(slot.trainer_id, {})[slot.id] = codec.encode_slot(slot, mode="json")

    def _apply_delete_slot(self, data: dict[str, Any], now: datetime, trainer_id: str, slot_id: str) -> None:
        data["schedules"].get(trainer_id, {}).pop(slot_id, None)

    def _apply_increment_lessons_used(
        self, data: dict[str, Any], now: datetime, client_id: str, package_id: str
    ) -> None:
        doc = data["lessonPackages"][client_id][package_id]
        doc["lessonsUsed"] = int(doc["lessonsUsed"]) + 1

    def _apply_create_booking(self, data: dict[str, Any], now: datetime, booking: Booking) -> None:
        if booking.id in data["bookings"]:
            raise ValueError(f"booking {booking.id} already exists")
        doc = codec.encode_booking(booking, mode="json")
        doc["createdAt"] = now.isoformat()
        data["bookings"][booking.id] = doc


class _JsonTransaction(ScheduleTransaction):
    def __init__(self, data: dict[str, Any]) -> None:
        self._data = data
        self.writes: list[tuple[str, tuple]] = []

    def _read(self) -> dict[str, Any]:
        if self.writes:
            raise RuntimeError("transaction reads must happen before writes")
        return self._data

    def get_client(self, client_id: str) -> ClientProfile | None:
        doc = self._read()["users"].get(client_id)
        return codec.decode_client(client_id, doc) if doc is not None else None

    def get_trainer(self, trainer_id: str) -> Trainer | None:
        doc = self._read()["trainers"].get(trainer_id)
        return codec.decode_trainer(trainer_id, doc) if doc is not None else None

    def get_lesson_package(self, client_id: str, package_id: str) -> LessonPackage | None:
        doc = self._read()["lessonPackages"].get(client_id, {}).get(package_id)
        return codec.decode_lesson_package(client_id, package_id, doc) if doc is not None else None

    def get_slot(self, trainer_id: str, slot_id: str) -> Slot | None:
        doc = self._read()["schedules"].get(trainer_id, {}).get(slot_id)
        return codec.decode_slot(trainer_id, slot_id, doc) if doc is not None else None

    def list_slots(self, trainer_id: str, start: datetime, end: datetime) -> list[Slot]:
        slots = []
        for slot_id, doc in self._read()["schedules"].get(trainer_id, {}).items():
            try:
                slot = codec.decode_slot(trainer_id, slot_id, doc)
            except RecordDecodeError as e:
                logger.warning("Skipping invalid record", extra={"error": str(e)})
                continue
            if start <= slot.start_time < end:
                slots.append(slot)
        return sorted(slots, key=lambda s: s.start_time)

    def put_slot(self, slot: Slot) -> None:
        self.writes.append(("put_slot", (slot,)))

    def delete_slot(self, trainer_id: str, slot_id: str) -> None:
        self.writes.append(("delete_slot", (trainer_id, slot_id)))

    def increment_lessons_used(self, client_id: str, package_id: str) -> None:
        self.writes.append(("increment_lessons_used", (client_id, package_id)))

    def create_booking(self, booking: Booking) -> None:
        self.writes.append(("create_booking", (booking,)))
