from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from slotbook.domain.entities.booking import Booking
from slotbook.domain.entities.lesson_package import LessonPackage
from slotbook.domain.entities.profile import Trainer
from slotbook.domain.entities.slot import Slot, SlotStatus


class _Schema(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SlotSchema(_Schema):
    id: str
    trainer_id: str
    status: SlotStatus
    start_time: datetime
    end_time: datetime
    client_id: str | None = None
    client_name: str | None = None
    is_class_booking: bool = False
    class_id: str | None = None
    booked_at: datetime | None = None
    updated_at: datetime | None = None

    @staticmethod
    def from_entity(slot: Slot) -> "SlotSchema":
        return SlotSchema(
            id=slot.id,
            trainer_id=slot.trainer_id,
            status=slot.status,
            start_time=slot.start_time,
            end_time=slot.end_time,
            client_id=slot.client_id,
            client_name=slot.client_name,
            is_class_booking=slot.is_class_booking,
            class_id=slot.class_id,
            booked_at=slot.booked_at,
            updated_at=slot.updated_at,
        )


class TrainerSchema(_Schema):
    id: str
    name: str
    email: str
    active: bool
    timezone: str | None = None

    @staticmethod
    def from_entity(trainer: Trainer) -> "TrainerSchema":
        return TrainerSchema(
            id=trainer.id,
            name=trainer.name,
            email=trainer.email,
            active=trainer.active,
            timezone=trainer.timezone,
        )


class LessonPackageSchema(_Schema):
    id: str
    package_type: str
    total_lessons: int
    lessons_used: int
    lessons_remaining: int
    purchase_date: datetime
    expiration_date: datetime | None = None
    is_expired: bool

    @staticmethod
    def from_entity(package: LessonPackage, now: datetime) -> "LessonPackageSchema":
        return LessonPackageSchema(
            id=package.id,
            package_type=package.package_type,
            total_lessons=package.total_lessons,
            lessons_used=package.lessons_used,
            lessons_remaining=package.lessons_remaining,
            purchase_date=package.purchase_date,
            expiration_date=package.expiration_date,
            is_expired=package.is_expired(now),
        )


class BookingSchema(_Schema):
    id: str
    client_id: str
    client_name: str
    trainer_id: str
    trainer_name: str
    slot_id: str
    start_time: datetime
    end_time: datetime
    package_id: str
    status: str
    created_at: datetime | None = None
    is_class_booking: bool = False
    class_id: str | None = None

    @staticmethod
    def from_entity(booking: Booking) -> "BookingSchema":
        return BookingSchema(
            id=booking.id,
            client_id=booking.client_id,
            client_name=booking.client_name,
            trainer_id=booking.trainer_id,
            trainer_name=booking.trainer_name,
            slot_id=booking.slot_id,
            start_time=booking.start_time,
            end_time=booking.end_time,
            package_id=booking.package_id,
            status=booking.status,
            created_at=booking.created_at,
            is_class_booking=booking.is_class_booking,
            class_id=booking.class_id,
        )


class GenerateAvailabilityRequest(_Schema):
    start_date: date | None = None
    end_date: date | None = None
    daily_start_hour: int | None = None
    daily_end_hour: int | None = None
    slot_duration_minutes: int | None = None
    weekdays: list[int] | None = Field(default=None, alias="daysOfWeek")


class GenerateAvailabilityResponse(_Schema):
    message: str
    slots_added: int


class BookSlotRequest(_Schema):
    trainer_id: str | None = None
    slot_id: str | None = None
    client_id: str | None = None
    lesson_package_id: str | None = None


class BookSlotResponse(_Schema):
    message: str
    booking_id: str
    booking: BookingSchema


class SetSlotStatusRequest(_Schema):
    start_time: datetime
    status: str


class SetAvailabilityRangeRequest(_Schema):
    start_time: datetime
    end_time: datetime
    status: str


class SetAvailabilityRangeResponse(_Schema):
    slots_written: int


class DeleteSlotResponse(_Schema):
    deleted: bool


class PaymentConfirmationEvent(_Schema):
    client_id: str | None = None
    package_type: str | None = None
    transaction_id: str | None = None
    confirmed_at: datetime | None = None


class PaymentConfirmationResponse(_Schema):
    package_id: str
    created: bool
    package: LessonPackageSchema
