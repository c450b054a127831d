import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from slotbook.api.v1.bookings import router as bookings_router
from slotbook.api.v1.schedules import router as schedules_router
from slotbook.api.webhooks import router as webhooks_router
from slotbook.application.exceptions import SchedulingError
from slotbook.core.config import settings


class ContextFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        extras = []
        for key in ("trainer_id", "slot_id", "client_id", "booking_id", "slots_added", "reason", "error"):
            value = getattr(record, key, None)
            if value not in (None, ""):
                extras.append(f"{key}={value}")
        base = super().format(record)
        if extras:
            return f"{base} | " + " ".join(extras)
        return base


handler = logging.StreamHandler()
handler.setFormatter(ContextFormatter("%(levelname)s:%(name)s:%(message)s"))

root = logging.getLogger()
root.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
root.handlers.clear()
root.addHandler(handler)

app = FastAPI(title="Trainer Scheduling", version="1.0.0")

app.include_router(schedules_router, tags=["schedules"])
app.include_router(bookings_router, tags=["bookings"])
app.include_router(webhooks_router, tags=["webhooks"])


@app.exception_handler(SchedulingError)
def scheduling_error_handler(request: Request, exc: SchedulingError) -> JSONResponse:
    return JSONResponse(status_code=exc.http_status, content={"code": exc.code, "detail": exc.message})


@app.exception_handler(RequestValidationError)
def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content={"code": "invalid-argument", "detail": "Malformed request data.", "errors": jsonable_errors(exc)},
    )


def jsonable_errors(exc: RequestValidationError) -> list[dict[str, str]]:
    return [
        {"loc": ".".join(str(p) for p in err.get("loc", ())), "msg": str(err.get("msg", ""))}
        for err in exc.errors()
    ]


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}
