from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Callable, TypeVar

from slotbook.application.ports.transaction import ScheduleTransaction
from slotbook.domain.entities.booking import Booking
from slotbook.domain.entities.profile import ClientProfile, Trainer
from slotbook.domain.entities.slot import Slot

T = TypeVar("T")


class ScheduleStorePort(ABC):
    @abstractmethod
    def now(self) -> datetime:
        """Store clock, used for server-assigned timestamps."""
        raise NotImplementedError

    @abstractmethod
    def get_trainer(self, trainer_id: str) -> Trainer | None:
        raise NotImplementedError

    @abstractmethod
    def list_trainers(self) -> list[Trainer]:
        raise NotImplementedError

    @abstractmethod
    def save_trainer(self, trainer: Trainer) -> None:
        raise NotImplementedError

    @abstractmethod
    def get_client(self, client_id: str) -> ClientProfile | None:
        raise NotImplementedError

    @abstractmethod
    def save_client(self, client: ClientProfile) -> None:
        raise NotImplementedError

    @abstractmethod
    def get_slot(self, trainer_id: str, slot_id: str) -> Slot | None:
        raise NotImplementedError

    @abstractmethod
    def list_slots(self, trainer_id: str, start: datetime, end: datetime) -> list[Slot]:
        """Slots whose start_time lies in [start, end), ordered by start_time."""
        raise NotImplementedError

    @abstractmethod
    def create_slot_if_absent(self, slot: Slot) -> bool:
        """Atomically create the slot unless its key exists. Returns True if created."""
        raise NotImplementedError

    @abstractmethod
    def get_booking(self, booking_id: str) -> Booking | None:
        raise NotImplementedError

    @abstractmethod
    def list_client_bookings(self, client_id: str) -> list[Booking]:
        raise NotImplementedError

    @abstractmethod
    def new_booking_id(self) -> str:
        raise NotImplementedError

    @abstractmethod
    def run_transaction(self, fn: Callable[[ScheduleTransaction], T]) -> T:
        """
        Run fn against a serializable snapshot and commit its writes atomically.
        Exceptions raised by fn propagate after the transaction is abandoned.
        """
        raise NotImplementedError
