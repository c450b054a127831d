from __future__ import annotations

import calendar
import logging
from dataclasses import dataclass
from datetime import datetime

from slotbook.application.exceptions import InvalidArgument, NotFound
from slotbook.application.ports.lesson_ledger import LessonLedgerPort
from slotbook.application.ports.package_catalog import PackageCatalogPort
from slotbook.application.ports.schedule_store import ScheduleStorePort
from slotbook.application.utils.access import require_fields
from slotbook.domain.entities.lesson_package import LessonPackage


@dataclass(frozen=True)
class PaymentRecordResult:
    package: LessonPackage
    created: bool


def add_months(value: datetime, months: int) -> datetime:
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


class RecordPaymentConfirmationUseCase:
    """
    Turns a confirmed payment into a lesson package.

    The package id is the payment transaction id, so a replayed confirmation
    returns the existing package instead of granting credits twice.
    """

    def __init__(
        self,
        store: ScheduleStorePort,
        ledger: LessonLedgerPort,
        catalog: PackageCatalogPort,
        expiration_months: int = 12,
    ) -> None:
        self._store = store
        self._ledger = ledger
        self._catalog = catalog
        self._expiration_months = expiration_months
        self._logger = logging.getLogger(__name__)

    def execute(
        self,
        client_id: str,
        package_type: str,
        transaction_id: str,
        confirmed_at: datetime | None = None,
    ) -> PaymentRecordResult:
        require_fields(clientId=client_id, packageType=package_type, transactionId=transaction_id)

        entry = self._catalog.get_package(package_type)
        if entry is None:
            raise InvalidArgument("Invalid package type.")
        if self._store.get_client(client_id) is None:
            raise NotFound("Client profile not found.")

        purchased_at = confirmed_at or self._store.now()
        package = LessonPackage(
            id=transaction_id,
            client_id=client_id,
            package_type=entry.package_type,
            total_lessons=entry.total_lessons,
            lessons_used=0,
            purchase_date=purchased_at,
            expiration_date=add_months(purchased_at, self._expiration_months),
            transaction_id=transaction_id,
        )

        if self._ledger.add_lesson_package(package):
            self._logger.info("Lesson package created", extra={"client_id": client_id, "reason": entry.package_type})
            return PaymentRecordResult(package=package, created=True)

        existing = self._ledger.get_lesson_package(client_id, transaction_id)
        self._logger.info("Payment already recorded", extra={"client_id": client_id})
        return PaymentRecordResult(package=existing or package, created=False)
