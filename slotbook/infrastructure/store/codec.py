"""
Strict document codec shared by the JSON-file and Firestore adapters.

Documents use camelCase field names. Decoding fails closed: a missing or
mistyped required field raises RecordDecodeError instead of falling back to
a default. Legacy slot documents, where "booked" could be signalled either
by the status or by a non-null clientId, are folded into the slot state
union here and nowhere else.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import (
    AliasChoices,
    AwareDatetime,
    BaseModel,
    ConfigDict,
    Field,
    StrictBool,
    StrictInt,
    StrictStr,
    ValidationError,
)
from pydantic.alias_generators import to_camel

from slotbook.application.exceptions import RecordDecodeError
from slotbook.domain.entities.booking import Booking
from slotbook.domain.entities.lesson_package import LessonPackage
from slotbook.domain.entities.profile import ClientProfile, Trainer
from slotbook.domain.entities.slot import (
    ClassBooking,
    ClientBooking,
    OpenState,
    Slot,
    SlotState,
    UnavailableState,
)


class _Document(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class SlotDocument(_Document):
    status: Literal["open", "unavailable", "booked"]
    start_time: AwareDatetime
    end_time: AwareDatetime
    client_id: StrictStr | None = None
    client_name: StrictStr | None = None
    is_class_booking: StrictBool | None = None
    class_id: StrictStr | None = None
    booked_at: AwareDatetime | None = None
    updated_at: AwareDatetime | None = None
    created_at: AwareDatetime | None = None
    trainer_name: StrictStr | None = None


class TrainerDocument(_Document):
    name: StrictStr
    email: StrictStr = ""
    active: StrictBool = True
    timezone: StrictStr | None = None


class ClientDocument(_Document):
    first_name: StrictStr
    last_name: StrictStr
    email_address: StrictStr
    phone_number: StrictStr | None = None


class LessonPackageDocument(_Document):
    package_type: StrictStr
    total_lessons: StrictInt
    lessons_used: StrictInt
    purchase_date: AwareDatetime
    expiration_date: AwareDatetime | None = None
    transaction_id: StrictStr | None = None


class BookingDocument(_Document):
    client_id: StrictStr = Field(
        validation_alias=AliasChoices("clientId", "clientUID", "client_id"), serialization_alias="clientId"
    )
    client_name: StrictStr
    trainer_id: StrictStr = Field(
        validation_alias=AliasChoices("trainerId", "trainerUID", "trainer_id"), serialization_alias="trainerId"
    )
    trainer_name: StrictStr
    slot_id: StrictStr = Field(
        validation_alias=AliasChoices("slotId", "scheduleSlotId", "slot_id"), serialization_alias="slotId"
    )
    start_time: AwareDatetime
    end_time: AwareDatetime
    package_id: StrictStr = Field(
        validation_alias=AliasChoices("packageId", "lessonPackageId", "package_id"), serialization_alias="packageId"
    )
    status: StrictStr
    created_at: AwareDatetime | None = None
    is_class_booking: StrictBool = False
    class_id: StrictStr | None = None


def _validate(model: type[_Document], kind: str, record_id: str, data: Any) -> Any:
    if not isinstance(data, dict):
        raise RecordDecodeError(kind, record_id, "document is not a mapping")
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise RecordDecodeError(kind, record_id, str(e)) from e


def _slot_state(doc: SlotDocument, slot_id: str) -> SlotState:
    if doc.client_id is not None and doc.class_id is not None:
        raise RecordDecodeError("slot", slot_id, "both clientId and classId are set")
    if doc.is_class_booking:
        if doc.class_id is None:
            raise RecordDecodeError("slot", slot_id, "class booking without classId")
        return ClassBooking(class_id=doc.class_id, label=doc.client_name)
    if doc.client_id is not None:
        return ClientBooking(client_id=doc.client_id, client_name=doc.client_name)
    if doc.class_id is not None:
        raise RecordDecodeError("slot", slot_id, "classId set without isClassBooking")
    if doc.status == "booked":
        raise RecordDecodeError("slot", slot_id, "booked slot without an occupant")
    if doc.status == "unavailable":
        return UnavailableState()
    return OpenState()


def decode_slot(trainer_id: str, slot_id: str, data: Any) -> Slot:
    doc = _validate(SlotDocument, "slot", slot_id, data)
    state = _slot_state(doc, slot_id)
    try:
        return Slot(
            id=slot_id,
            trainer_id=trainer_id,
            state=state,
            start_time=doc.start_time,
            end_time=doc.end_time,
            booked_at=doc.booked_at,
            updated_at=doc.updated_at,
            created_at=doc.created_at,
            trainer_name=doc.trainer_name,
        )
    except ValueError as e:
        raise RecordDecodeError("slot", slot_id, str(e)) from e


def encode_slot(slot: Slot, mode: str = "python") -> dict[str, Any]:
    doc = SlotDocument(
        status=slot.status.value,
        start_time=slot.start_time,
        end_time=slot.end_time,
        client_id=slot.client_id,
        client_name=slot.client_name,
        is_class_booking=slot.is_class_booking,
        class_id=slot.class_id,
        booked_at=slot.booked_at,
        updated_at=slot.updated_at,
        created_at=slot.created_at,
        trainer_name=slot.trainer_name,
    )
    return doc.model_dump(mode=mode, by_alias=True)


def decode_trainer(trainer_id: str, data: Any) -> Trainer:
    doc = _validate(TrainerDocument, "trainer", trainer_id, data)
    return Trainer(id=trainer_id, name=doc.name, email=doc.email, active=doc.active, timezone=doc.timezone)


def encode_trainer(trainer: Trainer, mode: str = "python") -> dict[str, Any]:
    doc = TrainerDocument(name=trainer.name, email=trainer.email, active=trainer.active, timezone=trainer.timezone)
    return doc.model_dump(mode=mode, by_alias=True)


def decode_client(client_id: str, data: Any) -> ClientProfile:
    doc = _validate(ClientDocument, "client", client_id, data)
    return ClientProfile(
        id=client_id,
        first_name=doc.first_name,
        last_name=doc.last_name,
        email_address=doc.email_address,
        phone_number=doc.phone_number,
    )


def encode_client(client: ClientProfile, mode: str = "python") -> dict[str, Any]:
    doc = ClientDocument(
        first_name=client.first_name,
        last_name=client.last_name,
        email_address=client.email_address,
        phone_number=client.phone_number,
    )
    return doc.model_dump(mode=mode, by_alias=True)


def decode_lesson_package(client_id: str, package_id: str, data: Any) -> LessonPackage:
    doc = _validate(LessonPackageDocument, "lesson package", package_id, data)
    return LessonPackage(
        id=package_id,
        client_id=client_id,
        package_type=doc.package_type,
        total_lessons=doc.total_lessons,
        lessons_used=doc.lessons_used,
        purchase_date=doc.purchase_date,
        expiration_date=doc.expiration_date,
        transaction_id=doc.transaction_id,
    )


def encode_lesson_package(package: LessonPackage, mode: str = "python") -> dict[str, Any]:
    doc = LessonPackageDocument(
        package_type=package.package_type,
        total_lessons=package.total_lessons,
        lessons_used=package.lessons_used,
        purchase_date=package.purchase_date,
        expiration_date=package.expiration_date,
        transaction_id=package.transaction_id,
    )
    return doc.model_dump(mode=mode, by_alias=True)


def decode_booking(booking_id: str, data: Any) -> Booking:
    doc = _validate(BookingDocument, "booking", booking_id, data)
    return Booking(
        id=booking_id,
        client_id=doc.client_id,
        client_name=doc.client_name,
        trainer_id=doc.trainer_id,
        trainer_name=doc.trainer_name,
        slot_id=doc.slot_id,
        start_time=doc.start_time,
        end_time=doc.end_time,
        package_id=doc.package_id,
        status=doc.status,
        created_at=doc.created_at,
        is_class_booking=doc.is_class_booking,
        class_id=doc.class_id,
    )


def encode_booking(booking: Booking, mode: str = "python") -> dict[str, Any]:
    doc = BookingDocument(
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
    return doc.model_dump(mode=mode, by_alias=True)
