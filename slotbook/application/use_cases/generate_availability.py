from __future__ import annotations

import logging
from collections.abc import Collection
from dataclasses import dataclass
from datetime import date
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from slotbook.application.exceptions import InternalError, InvalidArgument, NotFound, SchedulingError
from slotbook.application.ports.schedule_store import ScheduleStorePort
from slotbook.application.utils.access import ensure_can_manage_trainer, require_caller, require_fields
from slotbook.domain.entities.profile import Trainer
from slotbook.domain.entities.slot import Slot
from slotbook.domain.services.availability import (
    AvailabilityRule,
    CandidateSlot,
    Weekday,
    day_bounds,
    expand_rule,
)


@dataclass(frozen=True)
class GenerationResult:
    message: str
    slots_added: int


class GenerateAvailabilityUseCase:
    """
    Expands a recurring availability rule into open slots for one trainer.

    Existing slots of any status are never touched, so the command can be
    re-run safely after a partial failure. Store errors for a single
    candidate are logged and generation continues with the next one.
    """

    def __init__(
        self,
        store: ScheduleStorePort,
        timezone: ZoneInfo,
        admin_user_ids: Collection[str] = (),
        max_days: int | None = None,
    ) -> None:
        self._store = store
        self._timezone = timezone
        self._admin_user_ids = frozenset(admin_user_ids)
        self._max_days = max_days
        self._logger = logging.getLogger(__name__)

    def execute(
        self,
        caller_id: str | None,
        trainer_id: str,
        start_date: date | None = None,
        end_date: date | None = None,
        daily_start_hour: int | None = None,
        daily_end_hour: int | None = None,
        slot_duration_minutes: int | None = None,
        weekdays: list[int] | None = None,
    ) -> GenerationResult:
        caller = require_caller(caller_id)
        require_fields(trainerId=trainer_id)
        ensure_can_manage_trainer(caller, trainer_id, self._admin_user_ids)

        if weekdays and any(d not in {w.value for w in Weekday} for d in weekdays):
            raise InvalidArgument("Weekdays must be numbers from 0 (Sunday) to 6 (Saturday).")

        trainer = self._store.get_trainer(trainer_id)
        if trainer is None:
            raise NotFound("Trainer profile not found.")
        tz = self._timezone_for(trainer)

        rule = AvailabilityRule.with_defaults(
            today=self._store.now().astimezone(tz).date(),
            start_date=start_date,
            end_date=end_date,
            daily_start_hour=daily_start_hour,
            daily_end_hour=daily_end_hour,
            slot_duration_minutes=slot_duration_minutes,
            weekdays=weekdays,
        )
        try:
            rule.validate(max_days=self._max_days)
        except ValueError as e:
            raise InvalidArgument(str(e)) from e

        try:
            added = self._generate(trainer, rule, tz)
        except SchedulingError:
            raise
        except Exception as e:
            self._logger.exception("Error processing trainer availability", extra={"trainer_id": trainer_id})
            raise InternalError("An unexpected error occurred while processing trainer availability.") from e

        self._logger.info(
            "Trainer availability processed",
            extra={"trainer_id": trainer_id, "slots_added": added},
        )
        return GenerationResult(
            message=f"Availability processed successfully! Added {added} new slots.",
            slots_added=added,
        )

    def _timezone_for(self, trainer: Trainer) -> ZoneInfo:
        if not trainer.timezone:
            return self._timezone
        try:
            return ZoneInfo(trainer.timezone)
        except (ZoneInfoNotFoundError, ValueError):
            self._logger.warning(
                "Unknown trainer timezone; using schedule default",
                extra={"trainer_id": trainer.id, "error": trainer.timezone},
            )
            return self._timezone

    def _generate(self, trainer: Trainer, rule: AvailabilityRule, tz: ZoneInfo) -> int:
        added = 0
        for day, candidates in expand_rule(rule, tz):
            if not candidates:
                continue
            existing = self._existing_slots(trainer.id, day, tz)
            for candidate in candidates:
                if self._create_candidate(trainer, candidate, existing):
                    added += 1
        return added

    def _existing_slots(self, trainer_id: str, day: date, tz: ZoneInfo) -> list[Slot] | None:
        start, end = day_bounds(day, tz)
        try:
            return self._store.list_slots(trainer_id, start, end)
        except Exception as e:
            # Fall back to the per-key existence check for this day.
            self._logger.warning(
                "Failed to list existing slots",
                extra={"trainer_id": trainer_id, "error": str(e)},
            )
            return None

    def _create_candidate(self, trainer: Trainer, candidate: CandidateSlot, existing: list[Slot] | None) -> bool:
        slot = Slot.create(
            trainer_id=trainer.id,
            start_time=candidate.start_time,
            end_time=candidate.end_time,
            now=self._store.now(),
            trainer_name=trainer.name,
        )
        if existing is not None and any(
            s.id == slot.id or s.overlaps(slot.start_time, slot.end_time) for s in existing
        ):
            return False

        try:
            created = self._store.create_slot_if_absent(slot)
        except Exception as e:
            self._logger.warning(
                "Failed to create availability slot",
                extra={"trainer_id": trainer.id, "slot_id": slot.id, "error": str(e)},
            )
            return False

        if created and existing is not None:
            existing.append(slot)
        return created
