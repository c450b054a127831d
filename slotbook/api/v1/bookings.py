from fastapi import APIRouter, Depends

from slotbook.api.v1.schemas import BookingSchema, BookSlotRequest, BookSlotResponse, LessonPackageSchema
from slotbook.application.use_cases.book_slot import BookSlotUseCase
from slotbook.application.use_cases.schedule_queries import ScheduleQueries
from slotbook.application.utils.access import require_caller
from slotbook.wiring.dependencies import get_book_slot_use_case, get_caller_id, get_schedule_queries, get_store

router = APIRouter(prefix="/v1")


@router.post("/bookings", response_model=BookSlotResponse)
def book_slot(
    req: BookSlotRequest,
    caller_id: str | None = Depends(get_caller_id),
    uc: BookSlotUseCase = Depends(get_book_slot_use_case),
):
    result = uc.execute(
        caller_id=caller_id,
        trainer_id=req.trainer_id,
        slot_id=req.slot_id,
        client_id=req.client_id,
        lesson_package_id=req.lesson_package_id,
    )
    return BookSlotResponse(
        message=result.message,
        booking_id=result.booking_id,
        booking=BookingSchema.from_entity(result.booking),
    )


@router.get("/clients/{client_id}/packages", response_model=list[LessonPackageSchema])
def list_client_packages(
    client_id: str,
    caller_id: str | None = Depends(get_caller_id),
    queries: ScheduleQueries = Depends(get_schedule_queries),
    store=Depends(get_store),
):
    require_caller(caller_id)
    now = store.now()
    return [LessonPackageSchema.from_entity(p, now) for p in queries.list_client_packages(client_id)]


@router.get("/clients/{client_id}/bookings", response_model=list[BookingSchema])
def list_client_bookings(
    client_id: str,
    upcoming: bool = True,
    caller_id: str | None = Depends(get_caller_id),
    queries: ScheduleQueries = Depends(get_schedule_queries),
):
    require_caller(caller_id)
    return [BookingSchema.from_entity(b) for b in queries.list_client_bookings(client_id, upcoming=upcoming)]
