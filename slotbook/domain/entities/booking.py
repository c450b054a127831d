from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


BOOKING_CONFIRMED = "confirmed"


@dataclass(frozen=True)
class Booking:
    """Immutable record of a completed reservation."""

    id: str
    client_id: str
    client_name: str
    trainer_id: str
    trainer_name: str
    slot_id: str
    start_time: datetime
    end_time: datetime
    package_id: str
    status: str = BOOKING_CONFIRMED
    created_at: datetime | None = None  # assigned by the store at commit
    is_class_booking: bool = False
    class_id: str | None = None
