from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable, TypeVar

from google.api_core.exceptions import AlreadyExists
from google.cloud import firestore
from google.cloud.firestore_v1.base_query import FieldFilter

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


class FirestoreScheduleStore(ScheduleStorePort, LessonLedgerPort):
    """
    Binds the store ports to Cloud Firestore.

    Collections: trainers/{id}, trainers/{id}/schedules/{slotId}, users/{id},
    users/{id}/lessonPackages/{packageId}, bookings/{id}. Transactions use the
    client library's optimistic transactions, which retry on contention.
    """

    def __init__(self, client: firestore.Client | None = None, project: str | None = None) -> None:
        self._db = client or firestore.Client(project=project)

    def now(self) -> datetime:
        return datetime.now(timezone.utc)

    def _trainer_ref(self, trainer_id: str):
        return self._db.collection("trainers").document(trainer_id)

    def _slot_ref(self, trainer_id: str, slot_id: str):
        return self._trainer_ref(trainer_id).collection("schedules").document(slot_id)

    def _client_ref(self, client_id: str):
        return self._db.collection("users").document(client_id)

    def _package_ref(self, client_id: str, package_id: str):
        return self._client_ref(client_id).collection("lessonPackages").document(package_id)

    def _decode_snapshots(self, snapshots, decode: Callable[[Any], T]) -> list[T]:
        records: list[T] = []
        for snap in snapshots:
            try:
                records.append(decode(snap))
            except RecordDecodeError as e:
                logger.warning("Skipping invalid record", extra={"error": str(e)})
        return records

    # Profiles

    def get_trainer(self, trainer_id: str) -> Trainer | None:
        snap = self._trainer_ref(trainer_id).get()
        return codec.decode_trainer(snap.id, snap.to_dict()) if snap.exists else None

    def list_trainers(self) -> list[Trainer]:
        snapshots = self._db.collection("trainers").stream()
        trainers = self._decode_snapshots(snapshots, lambda s: codec.decode_trainer(s.id, s.to_dict()))
        return sorted(trainers, key=lambda t: t.name.lower())

    def save_trainer(self, trainer: Trainer) -> None:
        self._trainer_ref(trainer.id).set(codec.encode_trainer(trainer), merge=True)

    def get_client(self, client_id: str) -> ClientProfile | None:
        snap = self._client_ref(client_id).get()
        return codec.decode_client(snap.id, snap.to_dict()) if snap.exists else None

    def save_client(self, client: ClientProfile) -> None:
        self._client_ref(client.id).set(codec.encode_client(client), merge=True)

    # Slots

    def get_slot(self, trainer_id: str, slot_id: str) -> Slot | None:
        snap = self._slot_ref(trainer_id, slot_id).get()
        return codec.decode_slot(trainer_id, snap.id, snap.to_dict()) if snap.exists else None

    def _slots_query(self, trainer_id: str, start: datetime, end: datetime):
        return (
            self._trainer_ref(trainer_id)
            .collection("schedules")
            .where(filter=FieldFilter("startTime", ">=", start))
            .where(filter=FieldFilter("startTime", "<", end))
            .order_by("startTime")
        )

    def list_slots(self, trainer_id: str, start: datetime, end: datetime) -> list[Slot]:
        query = self._slots_query(trainer_id, start, end)
        return self._decode_snapshots(query.stream(), lambda s: codec.decode_slot(trainer_id, s.id, s.to_dict()))

    def create_slot_if_absent(self, slot: Slot) -> bool:
        data = codec.encode_slot(slot)
        data["createdAt"] = firestore.SERVER_TIMESTAMP
        data["updatedAt"] = firestore.SERVER_TIMESTAMP
        try:
            self._slot_ref(slot.trainer_id, slot.id).create(data)
        except AlreadyExists:
            return False
        return True

    # Bookings

    def get_booking(self, booking_id: str) -> Booking | None:
        snap = self._db.collection("bookings").document(booking_id).get()
        return codec.decode_booking(snap.id, snap.to_dict()) if snap.exists else None

    def list_client_bookings(self, client_id: str) -> list[Booking]:
        merged: dict[str, Booking] = {}
        # Older booking documents carry the client under clientUID.
        for field_name in ("clientUID", "clientId"):
            query = self._db.collection("bookings").where(filter=FieldFilter(field_name, "==", client_id))
            for booking in self._decode_snapshots(query.stream(), lambda s: codec.decode_booking(s.id, s.to_dict())):
                merged[booking.id] = booking
        return list(merged.values())

    def new_booking_id(self) -> str:
        return self._db.collection("bookings").document().id

    # Ledger

    def get_lesson_package(self, client_id: str, package_id: str) -> LessonPackage | None:
        snap = self._package_ref(client_id, package_id).get()
        return codec.decode_lesson_package(client_id, snap.id, snap.to_dict()) if snap.exists else None

    def list_lesson_packages(self, client_id: str) -> list[LessonPackage]:
        query = (
            self._client_ref(client_id)
            .collection("lessonPackages")
            .order_by("purchaseDate", direction=firestore.Query.DESCENDING)
        )
        return self._decode_snapshots(
            query.stream(), lambda s: codec.decode_lesson_package(client_id, s.id, s.to_dict())
        )

    def add_lesson_package(self, package: LessonPackage) -> bool:
        try:
            self._package_ref(package.client_id, package.id).create(codec.encode_lesson_package(package))
        except AlreadyExists:
            return False
        return True

    # Transactions

    def run_transaction(self, fn: Callable[[ScheduleTransaction], T]) -> T:
        @firestore.transactional
        def _run(transaction: firestore.Transaction) -> T:
            return fn(_FirestoreTransaction(self, transaction))

        return _run(self._db.transaction())


class _FirestoreTransaction(ScheduleTransaction):
    def __init__(self, store: FirestoreScheduleStore, transaction: firestore.Transaction) -> None:
        self._store = store
        self._tx = transaction

    def _get(self, ref):
        return ref.get(transaction=self._tx)

    def get_client(self, client_id: str) -> ClientProfile | None:
        snap = self._get(self._store._client_ref(client_id))
        return codec.decode_client(snap.id, snap.to_dict()) if snap.exists else None

    def get_trainer(self, trainer_id: str) -> Trainer | None:
        snap = self._get(self._store._trainer_ref(trainer_id))
        return codec.decode_trainer(snap.id, snap.to_dict()) if snap.exists else None

    def get_lesson_package(self, client_id: str, package_id: str) -> LessonPackage | None:
        snap = self._get(self._store._package_ref(client_id, package_id))
        return codec.decode_lesson_package(client_id, snap.id, snap.to_dict()) if snap.exists else None

    def get_slot(self, trainer_id: str, slot_id: str) -> Slot | None:
        snap = self._get(self._store._slot_ref(trainer_id, slot_id))
        return codec.decode_slot(trainer_id, snap.id, snap.to_dict()) if snap.exists else None

    def list_slots(self, trainer_id: str, start: datetime, end: datetime) -> list[Slot]:
        query = self._store._slots_query(trainer_id, start, end)
        return self._store._decode_snapshots(
            query.stream(transaction=self._tx), lambda s: codec.decode_slot(trainer_id, s.id, s.to_dict())
        )

    def put_slot(self, slot: Slot) -> None:
        data = codec.encode_slot(slot)
        data["updatedAt"] = firestore.SERVER_TIMESTAMP
        self._tx.set(self._store._slot_ref(slot.trainer_id, slot.id), data)

    def delete_slot(self, trainer_id: str, slot_id: str) -> None:
        self._tx.delete(self._store._slot_ref(trainer_id, slot_id))

    def increment_lessons_used(self, client_id: str, package_id: str) -> None:
        self._tx.update(self._store._package_ref(client_id, package_id), {"lessonsUsed": firestore.Increment(1)})

    def create_booking(self, booking: Booking) -> None:
        data = codec.encode_booking(booking)
        data["createdAt"] = firestore.SERVER_TIMESTAMP
        self._tx.create(self._store._db.collection("bookings").document(booking.id), data)
