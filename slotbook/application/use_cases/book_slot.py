from __future__ import annotations

import logging
from collections.abc import Collection
from dataclasses import dataclass

from slotbook.application.exceptions import (
    FailedPrecondition,
    InternalError,
    NotFound,
    SchedulingError,
)
from slotbook.application.ports.schedule_store import ScheduleStorePort
from slotbook.application.ports.transaction import ScheduleTransaction
from slotbook.application.utils.access import ensure_can_book, require_caller, require_fields
from slotbook.domain.entities.booking import BOOKING_CONFIRMED, Booking


@dataclass(frozen=True)
class BookingResult:
    message: str
    booking_id: str
    booking: Booking


class BookSlotUseCase:
    """
    Reserves an open slot for a client and debits one lesson credit.

    Every precondition is checked inside the store transaction, and the three
    effects (credit debit, booking record, slot update) commit together or
    not at all.
    """

    def __init__(self, store: ScheduleStorePort, admin_user_ids: Collection[str] = ()) -> None:
        self._store = store
        self._admin_user_ids = frozenset(admin_user_ids)
        self._logger = logging.getLogger(__name__)

    def execute(
        self,
        caller_id: str | None,
        trainer_id: str,
        slot_id: str,
        client_id: str,
        lesson_package_id: str,
    ) -> BookingResult:
        caller = require_caller(caller_id)
        require_fields(
            trainerId=trainer_id,
            slotId=slot_id,
            clientId=client_id,
            lessonPackageId=lesson_package_id,
        )
        ensure_can_book(caller, client_id, trainer_id, self._admin_user_ids)

        booking_id = self._store.new_booking_id()
        try:
            booking = self._store.run_transaction(
                lambda tx: self._book(tx, booking_id, trainer_id, slot_id, client_id, lesson_package_id)
            )
        except SchedulingError as e:
            self._logger.info(
                "Booking rejected",
                extra={"trainer_id": trainer_id, "slot_id": slot_id, "client_id": client_id, "reason": e.code},
            )
            raise
        except Exception as e:
            self._logger.exception(
                "Error booking lesson",
                extra={"trainer_id": trainer_id, "slot_id": slot_id, "client_id": client_id},
            )
            raise InternalError("An unexpected error occurred while booking the lesson.") from e

        # created_at is assigned by the store at commit
        booking = self._store.get_booking(booking_id) or booking

        self._logger.info(
            "Lesson booked",
            extra={
                "trainer_id": trainer_id,
                "slot_id": slot_id,
                "client_id": client_id,
                "booking_id": booking_id,
            },
        )
        return BookingResult(message="Lesson booked successfully!", booking_id=booking_id, booking=booking)

    def _book(
        self,
        tx: ScheduleTransaction,
        booking_id: str,
        trainer_id: str,
        slot_id: str,
        client_id: str,
        package_id: str,
    ) -> Booking:
        client = tx.get_client(client_id)
        package = tx.get_lesson_package(client_id, package_id)
        trainer = tx.get_trainer(trainer_id)
        slot = tx.get_slot(trainer_id, slot_id)

        if client is None:
            raise NotFound("Client profile not found.")
        if package is None:
            raise NotFound("Specified lesson package not found.")
        if trainer is None:
            raise NotFound("Trainer profile not found.")
        if slot is None:
            raise NotFound("Specified trainer slot not found.")

        client_name = client.display_name
        if not client_name:
            raise FailedPrecondition("Client name missing in profile; cannot create booking record.")

        now = self._store.now()
        if package.lessons_used >= package.total_lessons:
            raise FailedPrecondition("Lesson package has no lessons remaining.")
        if package.is_expired(now):
            raise FailedPrecondition("Lesson package has expired and cannot be used.")
        if not slot.is_open or slot.is_booked:
            raise FailedPrecondition("The requested trainer slot is not available or already booked.")

        booking = Booking(
            id=booking_id,
            client_id=client_id,
            client_name=client_name,
            trainer_id=trainer_id,
            trainer_name=trainer.name,
            slot_id=slot.id,
            start_time=slot.start_time,
            end_time=slot.end_time,
            package_id=package_id,
            status=BOOKING_CONFIRMED,
        )
        tx.increment_lessons_used(client_id, package_id)
        tx.create_booking(booking)
        tx.put_slot(slot.booked_by(client_id, client_name, now))
        return booking
