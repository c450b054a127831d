from __future__ import annotations

import logging
from collections.abc import Collection
from dataclasses import replace
from datetime import datetime, timedelta
from typing import Callable, TypeVar
from zoneinfo import ZoneInfo

from slotbook.application.exceptions import (
    FailedPrecondition,
    InternalError,
    InvalidArgument,
    NotFound,
    SchedulingError,
)
from slotbook.application.ports.schedule_store import ScheduleStorePort
from slotbook.application.ports.transaction import ScheduleTransaction
from slotbook.application.utils.access import as_aware, ensure_can_manage_trainer, require_caller, require_fields
from slotbook.domain.entities.slot import Slot, SlotStatus, slot_id_for, state_for_status
from slotbook.domain.services.availability import MAX_SLOT_DURATION_MINUTES

T = TypeVar("T")

SLOT_EDIT_DURATION = timedelta(hours=1)
MAX_SLOT_SPAN = timedelta(minutes=MAX_SLOT_DURATION_MINUTES)


class SlotCommandsUseCase:
    """Direct trainer edits: mark hours open or unavailable, or remove them."""

    def __init__(
        self,
        store: ScheduleStorePort,
        timezone: ZoneInfo,
        admin_user_ids: Collection[str] = (),
        max_range: timedelta | None = None,
    ) -> None:
        self._store = store
        self._timezone = timezone
        self._admin_user_ids = frozenset(admin_user_ids)
        self._max_range = max_range
        self._logger = logging.getLogger(__name__)

    def set_slot_status(
        self,
        caller_id: str | None,
        trainer_id: str,
        start_time: datetime,
        status: str | SlotStatus,
    ) -> Slot:
        self._authorize(caller_id, trainer_id, start_time)
        editable = self._editable_status(status)
        start = self._top_of_hour(start_time)
        return self._write(trainer_id, start, start + SLOT_EDIT_DURATION, editable)

    def set_availability_range(
        self,
        caller_id: str | None,
        trainer_id: str,
        start_time: datetime,
        end_time: datetime,
        status: str | SlotStatus,
    ) -> int:
        """
        Write one slot per hour across [start_time, end_time). Open slots skip
        a partial trailing hour; unavailable ones are truncated to end_time.
        Booked hours and hours overlapping another slot are left alone.
        Returns the number of slots written.
        """
        self._authorize(caller_id, trainer_id, start_time)
        editable = self._editable_status(status)
        start = self._top_of_hour(start_time)
        end = as_aware(end_time, self._timezone)
        if end <= start:
            raise InvalidArgument("End time must be after start time.")
        if self._max_range is not None and end - start > self._max_range:
            raise InvalidArgument("Time range is too long.")
        if self._store.get_trainer(trainer_id) is None:
            raise NotFound("Trainer profile not found.")

        written = 0
        current = start
        while current < end:
            next_hour = current + SLOT_EDIT_DURATION
            if next_hour > end and editable is SlotStatus.OPEN:
                break
            try:
                self._write(trainer_id, current, min(next_hour, end), editable)
                written += 1
            except FailedPrecondition as e:
                self._logger.info(
                    "Skipping slot",
                    extra={"trainer_id": trainer_id, "slot_id": slot_id_for(current), "reason": e.message},
                )
            except SchedulingError as e:
                self._logger.warning(
                    "Failed to upsert slot",
                    extra={"trainer_id": trainer_id, "slot_id": slot_id_for(current), "error": e.message},
                )
            current = next_hour
        return written

    def delete_slot(self, caller_id: str | None, trainer_id: str, start_time: datetime) -> bool:
        self._authorize(caller_id, trainer_id, start_time)
        slot_id = slot_id_for(self._top_of_hour(start_time))

        def _delete(tx: ScheduleTransaction) -> bool:
            existing = tx.get_slot(trainer_id, slot_id)
            if existing is None:
                return False
            if existing.is_booked:
                raise FailedPrecondition("Booked slots cannot be deleted.")
            tx.delete_slot(trainer_id, slot_id)
            return True

        deleted = self._run(_delete, "Error deleting slot", trainer_id, slot_id)
        self._logger.info(
            "Slot deleted" if deleted else "Slot already absent",
            extra={"trainer_id": trainer_id, "slot_id": slot_id},
        )
        return deleted

    def _authorize(self, caller_id: str | None, trainer_id: str, start_time: datetime | None) -> None:
        caller = require_caller(caller_id)
        require_fields(trainerId=trainer_id, startTime=start_time)
        ensure_can_manage_trainer(caller, trainer_id, self._admin_user_ids)

    def _top_of_hour(self, value: datetime) -> datetime:
        local = as_aware(value, self._timezone).astimezone(self._timezone)
        return local.replace(minute=0, second=0, microsecond=0)

    def _editable_status(self, status: str | SlotStatus) -> SlotStatus:
        try:
            parsed = SlotStatus(status)
        except ValueError as e:
            raise InvalidArgument(f"Unknown slot status {status!r}.") from e
        if parsed is SlotStatus.BOOKED:
            raise InvalidArgument("Slots can only be set to open or unavailable.")
        return parsed

    def _write(self, trainer_id: str, start: datetime, end: datetime, status: SlotStatus) -> Slot:
        slot_id = slot_id_for(start)
        state = state_for_status(status)

        def _upsert(tx: ScheduleTransaction) -> Slot:
            trainer = tx.get_trainer(trainer_id)
            existing = tx.get_slot(trainer_id, slot_id)
            nearby = tx.list_slots(trainer_id, start - MAX_SLOT_SPAN, end)
            if trainer is None:
                raise NotFound("Trainer profile not found.")
            if existing is not None and existing.is_booked:
                raise FailedPrecondition("The slot is booked and cannot be edited.")
            if any(s.id != slot_id and s.overlaps(start, end) for s in nearby):
                raise FailedPrecondition("The slot overlaps another slot.")
            now = self._store.now()
            if existing is None:
                slot = Slot.create(trainer_id, start, end, state=state, now=now, trainer_name=trainer.name)
            else:
                slot = replace(existing.with_state(state, now), start_time=start, end_time=end)
            tx.put_slot(slot)
            return slot

        return self._run(_upsert, "Error updating slot", trainer_id, slot_id)

    def _run(self, fn: Callable[[ScheduleTransaction], T], what: str, trainer_id: str, slot_id: str) -> T:
        try:
            return self._store.run_transaction(fn)
        except SchedulingError:
            raise
        except Exception as e:
            self._logger.exception(what, extra={"trainer_id": trainer_id, "slot_id": slot_id})
            raise InternalError("An unexpected error occurred while updating the schedule.") from e
