from functools import lru_cache
import logging
from datetime import timedelta
from zoneinfo import ZoneInfo

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from slotbook.core.config import settings
from slotbook.application.ports.identity import IdentityVerifierPort
from slotbook.application.ports.package_catalog import PackageCatalogPort
from slotbook.application.use_cases.book_slot import BookSlotUseCase
from slotbook.application.use_cases.generate_availability import GenerateAvailabilityUseCase
from slotbook.application.use_cases.record_payment import RecordPaymentConfirmationUseCase
from slotbook.application.use_cases.schedule_queries import ScheduleQueries
from slotbook.application.use_cases.slot_commands import SlotCommandsUseCase
from slotbook.infrastructure.auth.mock_verifier import MockIdentityVerifier
from slotbook.infrastructure.payments.package_catalog import PackageCatalogStore
from slotbook.infrastructure.store.json_store import JsonScheduleStore
from slotbook.infrastructure.store.memory_store import MemoryScheduleStore


logger = logging.getLogger(__name__)

bearer = HTTPBearer(auto_error=False)

_store = None


def get_store():
    """
    Shared store adapter; it implements both the schedule store and the
    lesson ledger ports so one transaction can span both.
    """
    global _store
    if _store is None:
        provider = settings.STORE_PROVIDER.lower()
        if provider == "firestore":
            from slotbook.infrastructure.store.firestore_store import FirestoreScheduleStore

            _store = FirestoreScheduleStore(project=settings.FIREBASE_PROJECT_ID)
        elif provider == "json":
            _store = JsonScheduleStore(path=settings.JSON_STORE_PATH)
        else:
            _store = MemoryScheduleStore()
        logger.info("Using %s store", type(_store).__name__)
    return _store


@lru_cache
def get_identity_verifier() -> IdentityVerifierPort:
    if settings.AUTH_PROVIDER.lower() == "firebase":
        from slotbook.infrastructure.auth.firebase_verifier import FirebaseIdentityVerifier

        return FirebaseIdentityVerifier(project_id=settings.FIREBASE_PROJECT_ID)
    if settings.ENV.lower() not in {"dev", "local", "test"}:
        raise ValueError("AUTH_PROVIDER=firebase is required outside dev/local/test.")
    return MockIdentityVerifier()


def get_caller_id(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer),
    verifier: IdentityVerifierPort = Depends(get_identity_verifier),
) -> str | None:
    if credentials is None or not credentials.credentials:
        return None
    return verifier.verify(credentials.credentials)


@lru_cache
def get_timezone() -> ZoneInfo:
    return ZoneInfo(settings.SCHEDULE_TIMEZONE)


def get_package_catalog() -> PackageCatalogPort:
    return PackageCatalogStore()


def get_generate_availability_use_case(store=Depends(get_store)) -> GenerateAvailabilityUseCase:
    return GenerateAvailabilityUseCase(
        store=store,
        timezone=get_timezone(),
        admin_user_ids=settings.ADMIN_USER_IDS,
        max_days=settings.MAX_GENERATION_DAYS,
    )


def get_book_slot_use_case(store=Depends(get_store)) -> BookSlotUseCase:
    return BookSlotUseCase(store=store, admin_user_ids=settings.ADMIN_USER_IDS)


def get_slot_commands_use_case(store=Depends(get_store)) -> SlotCommandsUseCase:
    return SlotCommandsUseCase(
        store=store,
        timezone=get_timezone(),
        admin_user_ids=settings.ADMIN_USER_IDS,
        max_range=timedelta(days=settings.MAX_GENERATION_DAYS),
    )


def get_schedule_queries(store=Depends(get_store)) -> ScheduleQueries:
    return ScheduleQueries(store=store, ledger=store, bookings_limit=settings.CLIENT_BOOKINGS_LIMIT)


def get_record_payment_use_case(store=Depends(get_store)) -> RecordPaymentConfirmationUseCase:
    return RecordPaymentConfirmationUseCase(
        store=store,
        ledger=store,
        catalog=get_package_catalog(),
        expiration_months=settings.PACKAGE_EXPIRATION_MONTHS,
    )
