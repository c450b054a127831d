from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import ValidationError

from slotbook.api.v1.schemas import LessonPackageSchema, PaymentConfirmationEvent, PaymentConfirmationResponse
from slotbook.application.use_cases.record_payment import RecordPaymentConfirmationUseCase
from slotbook.core.config import settings
from slotbook.infrastructure.payments.webhook_verify import verify_signature
from slotbook.wiring.dependencies import get_record_payment_use_case


router = APIRouter()
logger = logging.getLogger(__name__)

# Local environments may post confirmations without a signature.
UNSIGNED_ENVS = frozenset({"dev", "local"})


@router.post("/webhooks/payments", response_model=PaymentConfirmationResponse)
async def payment_confirmed(
    request: Request,
    uc: RecordPaymentConfirmationUseCase = Depends(get_record_payment_use_case),
):
    body = await request.body()
    signature = request.headers.get("X-Signature-256")
    if signature is None and settings.ENV.lower() in UNSIGNED_ENVS:
        logger.warning("Unsigned payment confirmation accepted", extra={"reason": settings.ENV})
    elif not verify_signature(body, signature, settings.PAYMENT_WEBHOOK_SECRET):
        if not settings.PAYMENT_WEBHOOK_SECRET:
            logger.error("PAYMENT_WEBHOOK_SECRET is not configured")
        raise HTTPException(status_code=403, detail="Invalid signature")

    try:
        event = PaymentConfirmationEvent.model_validate_json(body or b"{}")
    except ValidationError as e:
        logger.warning("Malformed payment confirmation", extra={"error": str(e)})
        raise HTTPException(status_code=400, detail="Malformed payment confirmation") from e

    result = uc.execute(
        client_id=event.client_id,
        package_type=event.package_type,
        transaction_id=event.transaction_id,
        confirmed_at=event.confirmed_at,
    )
    return PaymentConfirmationResponse(
        package_id=result.package.id,
        created=result.created,
        package=LessonPackageSchema.from_entity(result.package, result.package.purchase_date),
    )
