from __future__ import annotations

from collections.abc import Collection
from datetime import datetime
from zoneinfo import ZoneInfo

from slotbook.application.exceptions import InvalidArgument, PermissionDenied, Unauthenticated


def require_caller(caller_id: str | None) -> str:
    if not caller_id:
        raise Unauthenticated("The function must be called while authenticated.")
    return caller_id


def ensure_can_manage_trainer(caller_id: str, trainer_id: str, admin_user_ids: Collection[str]) -> None:
    if caller_id != trainer_id and caller_id not in admin_user_ids:
        raise PermissionDenied("Only the trainer or an administrator can manage this schedule.")


def ensure_can_book(caller_id: str, client_id: str, trainer_id: str, admin_user_ids: Collection[str]) -> None:
    if caller_id not in (client_id, trainer_id) and caller_id not in admin_user_ids:
        raise PermissionDenied("Bookings can only be made by the client, the trainer, or an administrator.")


def as_aware(value: datetime, tz: ZoneInfo) -> datetime:
    """Naive datetimes are read as wall-clock time in tz."""
    if value.tzinfo is None:
        return value.replace(tzinfo=tz)
    return value


def require_fields(**fields: object) -> None:
    missing = [name for name, value in fields.items() if value in (None, "")]
    if missing:
        raise InvalidArgument(f"Missing {', '.join(missing)} in request data.")
