from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, timezone
from enum import Enum


class SlotStatus(str, Enum):
    OPEN = "open"
    UNAVAILABLE = "unavailable"
    BOOKED = "booked"


@dataclass(frozen=True)
class OpenState:
    pass


@dataclass(frozen=True)
class UnavailableState:
    pass


@dataclass(frozen=True)
class ClientBooking:
    client_id: str
    client_name: str | None = None


@dataclass(frozen=True)
class ClassBooking:
    class_id: str
    label: str | None = None


SlotState = OpenState | UnavailableState | ClientBooking | ClassBooking


def slot_id_for(start_time: datetime) -> str:
    """Deterministic slot key: the UTC start hour, e.g. ``2025-10-13T06``."""
    if start_time.tzinfo is None:
        raise ValueError("start_time must be timezone-aware")
    return start_time.astimezone(timezone.utc).strftime("%Y-%m-%dT%H")


@dataclass(frozen=True)
class Slot:
    id: str
    trainer_id: str
    state: SlotState
    start_time: datetime
    end_time: datetime
    booked_at: datetime | None = None
    updated_at: datetime | None = None
    created_at: datetime | None = None
    trainer_name: str | None = None

    def __post_init__(self) -> None:
        if self.start_time.tzinfo is None or self.end_time.tzinfo is None:
            raise ValueError("slot times must be timezone-aware")
        if self.end_time <= self.start_time:
            raise ValueError("slot end_time must be after start_time")

    @classmethod
    def create(
        cls,
        trainer_id: str,
        start_time: datetime,
        end_time: datetime,
        state: SlotState | None = None,
        now: datetime | None = None,
        trainer_name: str | None = None,
    ) -> "Slot":
        return cls(
            id=slot_id_for(start_time),
            trainer_id=trainer_id,
            state=state or OpenState(),
            start_time=start_time,
            end_time=end_time,
            updated_at=now,
            created_at=now,
            trainer_name=trainer_name,
        )

    @property
    def status(self) -> SlotStatus:
        if isinstance(self.state, OpenState):
            return SlotStatus.OPEN
        if isinstance(self.state, UnavailableState):
            return SlotStatus.UNAVAILABLE
        return SlotStatus.BOOKED

    @property
    def client_id(self) -> str | None:
        return self.state.client_id if isinstance(self.state, ClientBooking) else None

    @property
    def client_name(self) -> str | None:
        if isinstance(self.state, ClientBooking):
            return self.state.client_name
        if isinstance(self.state, ClassBooking):
            return self.state.label
        return None

    @property
    def class_id(self) -> str | None:
        return self.state.class_id if isinstance(self.state, ClassBooking) else None

    @property
    def is_class_booking(self) -> bool:
        return isinstance(self.state, ClassBooking)

    @property
    def is_booked(self) -> bool:
        return self.status is SlotStatus.BOOKED or self.client_id is not None

    @property
    def is_class(self) -> bool:
        return self.is_class_booking

    @property
    def is_open(self) -> bool:
        return isinstance(self.state, OpenState)

    def overlaps(self, start: datetime, end: datetime) -> bool:
        return start < self.end_time and self.start_time < end

    def with_state(self, state: SlotState, now: datetime) -> "Slot":
        return replace(self, state=state, updated_at=now)

    def booked_by(self, client_id: str, client_name: str, now: datetime) -> "Slot":
        return replace(
            self,
            state=ClientBooking(client_id=client_id, client_name=client_name),
            booked_at=now,
            updated_at=now,
        )


def state_for_status(status: SlotStatus) -> SlotState:
    """Map an editable status to its state. Booked states need an occupant."""
    if status is SlotStatus.OPEN:
        return OpenState()
    if status is SlotStatus.UNAVAILABLE:
        return UnavailableState()
    raise ValueError("booked is not an editable status")
