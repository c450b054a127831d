from datetime import datetime, timezone

import pytest

from slotbook.application.exceptions import InvalidArgument, NotFound
from slotbook.application.use_cases.record_payment import RecordPaymentConfirmationUseCase, add_months
from slotbook.infrastructure.payments.package_catalog import PackageCatalogStore
from slotbook.infrastructure.payments.webhook_verify import parse_signature, sign_body, verify_signature
from tests.conftest import CLIENT_ID, NOW


@pytest.fixture
def record(store):
    return RecordPaymentConfirmationUseCase(store=store, ledger=store, catalog=PackageCatalogStore())


def test_catalog_lesson_counts():
    catalog = PackageCatalogStore()
    assert catalog.get_package("single").total_lessons == 1
    assert catalog.get_package("five_pack").total_lessons == 5
    assert catalog.get_package(" TEN_PACK ").total_lessons == 10
    assert catalog.get_package("two_athlete").total_lessons == 1
    assert catalog.get_package("unknown") is None


def test_add_months_clamps_to_month_end():
    assert add_months(datetime(2025, 1, 31, tzinfo=timezone.utc), 1) == datetime(2025, 2, 28, tzinfo=timezone.utc)
    assert add_months(datetime(2024, 2, 29, tzinfo=timezone.utc), 12) == datetime(2025, 2, 28, tzinfo=timezone.utc)
    assert add_months(datetime(2025, 11, 15, tzinfo=timezone.utc), 3) == datetime(2026, 2, 15, tzinfo=timezone.utc)


def test_payment_creates_lesson_package(store, record):
    result = record.execute(CLIENT_ID, "ten_pack", "txn_123")

    assert result.created is True
    package = store.get_lesson_package(CLIENT_ID, "txn_123")
    assert package == result.package
    assert package.total_lessons == 10
    assert package.lessons_used == 0
    assert package.purchase_date == NOW
    assert package.expiration_date == datetime(2026, 1, 6, 12, tzinfo=timezone.utc)
    assert package.transaction_id == "txn_123"


def test_replayed_payment_is_not_credited_twice(store, record):
    record.execute(CLIENT_ID, "five_pack", "txn_123")
    replay = record.execute(CLIENT_ID, "five_pack", "txn_123")

    assert replay.created is False
    assert replay.package.id == "txn_123"
    ids = [p.id for p in store.list_lesson_packages(CLIENT_ID)]
    assert ids.count("txn_123") == 1


def test_payment_validation(record):
    with pytest.raises(InvalidArgument, match="Invalid package type."):
        record.execute(CLIENT_ID, "gold", "txn_1")
    with pytest.raises(InvalidArgument, match="Missing transactionId"):
        record.execute(CLIENT_ID, "single", "")
    with pytest.raises(NotFound):
        record.execute("ghost", "single", "txn_1")


def test_signature_verification():
    body = b'{"clientId":"client-1"}'
    header = sign_body(body, "secret")

    assert header.startswith("sha256=")
    assert verify_signature(body, header, "secret") is True
    assert verify_signature(body, " SHA256=" + header.split("=", 1)[1], "secret") is True
    assert verify_signature(body + b" ", header, "secret") is False
    assert verify_signature(body, header, "other") is False
    assert verify_signature(body, "md5=abc", "secret") is False
    assert verify_signature(body, "sha256=", "secret") is False
    assert verify_signature(body, "garbage", "secret") is False
    assert verify_signature(body, None, "secret") is False
    assert verify_signature(body, header, None) is False


def test_parse_signature():
    assert parse_signature("sha256=abc") == "abc"
    assert parse_signature("sha1=abc") is None
    assert parse_signature("abc") is None
