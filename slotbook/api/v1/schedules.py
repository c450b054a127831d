from datetime import datetime

from fastapi import APIRouter, Depends, Query

from slotbook.api.v1.schemas import (
    DeleteSlotResponse,
    GenerateAvailabilityRequest,
    GenerateAvailabilityResponse,
    SetAvailabilityRangeRequest,
    SetAvailabilityRangeResponse,
    SetSlotStatusRequest,
    SlotSchema,
    TrainerSchema,
)
from slotbook.application.use_cases.generate_availability import GenerateAvailabilityUseCase
from slotbook.application.use_cases.schedule_queries import ScheduleQueries
from slotbook.application.use_cases.slot_commands import SlotCommandsUseCase
from slotbook.application.utils.access import require_caller
from slotbook.wiring.dependencies import (
    get_caller_id,
    get_generate_availability_use_case,
    get_schedule_queries,
    get_slot_commands_use_case,
)

router = APIRouter(prefix="/v1")


@router.get("/trainers", response_model=list[TrainerSchema])
def list_trainers(
    caller_id: str | None = Depends(get_caller_id),
    queries: ScheduleQueries = Depends(get_schedule_queries),
):
    require_caller(caller_id)
    return [TrainerSchema.from_entity(t) for t in queries.list_active_trainers()]


@router.get("/trainers/{trainer_id}/slots", response_model=list[SlotSchema])
def list_slots(
    trainer_id: str,
    start: datetime = Query(alias="from"),
    end: datetime = Query(alias="to"),
    caller_id: str | None = Depends(get_caller_id),
    queries: ScheduleQueries = Depends(get_schedule_queries),
):
    require_caller(caller_id)
    return [SlotSchema.from_entity(s) for s in queries.list_slots(trainer_id, start, end)]


@router.post("/trainers/{trainer_id}/availability", response_model=GenerateAvailabilityResponse)
def generate_availability(
    trainer_id: str,
    req: GenerateAvailabilityRequest,
    caller_id: str | None = Depends(get_caller_id),
    uc: GenerateAvailabilityUseCase = Depends(get_generate_availability_use_case),
):
    result = uc.execute(
        caller_id=caller_id,
        trainer_id=trainer_id,
        start_date=req.start_date,
        end_date=req.end_date,
        daily_start_hour=req.daily_start_hour,
        daily_end_hour=req.daily_end_hour,
        slot_duration_minutes=req.slot_duration_minutes,
        weekdays=req.weekdays,
    )
    return GenerateAvailabilityResponse(message=result.message, slots_added=result.slots_added)


@router.put("/trainers/{trainer_id}/slots", response_model=SlotSchema)
def set_slot_status(
    trainer_id: str,
    req: SetSlotStatusRequest,
    caller_id: str | None = Depends(get_caller_id),
    uc: SlotCommandsUseCase = Depends(get_slot_commands_use_case),
):
    slot = uc.set_slot_status(caller_id, trainer_id, req.start_time, req.status)
    return SlotSchema.from_entity(slot)


@router.put("/trainers/{trainer_id}/slots/range", response_model=SetAvailabilityRangeResponse)
def set_availability_range(
    trainer_id: str,
    req: SetAvailabilityRangeRequest,
    caller_id: str | None = Depends(get_caller_id),
    uc: SlotCommandsUseCase = Depends(get_slot_commands_use_case),
):
    written = uc.set_availability_range(caller_id, trainer_id, req.start_time, req.end_time, req.status)
    return SetAvailabilityRangeResponse(slots_written=written)


@router.delete("/trainers/{trainer_id}/slots", response_model=DeleteSlotResponse)
def delete_slot(
    trainer_id: str,
    start_time: datetime = Query(alias="startTime"),
    caller_id: str | None = Depends(get_caller_id),
    uc: SlotCommandsUseCase = Depends(get_slot_commands_use_case),
):
    return DeleteSlotResponse(deleted=uc.delete_slot(caller_id, trainer_id, start_time))
