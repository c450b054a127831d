from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime

from slotbook.domain.entities.booking import Booking
from slotbook.domain.entities.lesson_package import LessonPackage
from slotbook.domain.entities.profile import ClientProfile, Trainer
from slotbook.domain.entities.slot import Slot


class ScheduleTransaction(ABC):
    """
    Read-modify-write view handed to a transaction function.

    Reads see a single consistent snapshot. Writes are buffered and applied
    together when the function returns; if it raises, none are applied.
    All reads must happen before the first write.
    """

    @abstractmethod
    def get_client(self, client_id: str) -> ClientProfile | None:
        raise NotImplementedError

    @abstractmethod
    def get_trainer(self, trainer_id: str) -> Trainer | None:
        raise NotImplementedError

    @abstractmethod
    def get_lesson_package(self, client_id: str, package_id: str) -> LessonPackage | None:
        raise NotImplementedError

    @abstractmethod
    def get_slot(self, trainer_id: str, slot_id: str) -> Slot | None:
        raise NotImplementedError

    @abstractmethod
    def list_slots(self, trainer_id: str, start: datetime, end: datetime) -> list[Slot]:
        """Slots whose start_time lies in [start, end), ordered by start_time."""
        raise NotImplementedError

    @abstractmethod
    def put_slot(self, slot: Slot) -> None:
        raise NotImplementedError

    @abstractmethod
    def delete_slot(self, trainer_id: str, slot_id: str) -> None:
        raise NotImplementedError

    @abstractmethod
    def increment_lessons_used(self, client_id: str, package_id: str) -> None:
        """Add exactly one to the package's lessons_used."""
        raise NotImplementedError

    @abstractmethod
    def create_booking(self, booking: Booking) -> None:
        """Create an immutable booking; created_at is assigned at commit."""
        raise NotImplementedError
