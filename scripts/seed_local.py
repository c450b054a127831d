#!/usr/bin/env python3
from __future__ import annotations

import argparse
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from zoneinfo import ZoneInfo

project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from slotbook.application.use_cases.generate_availability import GenerateAvailabilityUseCase
from slotbook.application.use_cases.record_payment import RecordPaymentConfirmationUseCase
from slotbook.core.config import settings
from slotbook.domain.entities.profile import ClientProfile, Trainer
from slotbook.infrastructure.payments.package_catalog import PackageCatalogStore
from slotbook.infrastructure.store.json_store import JsonScheduleStore


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed the local JSON schedule store with demo data")
    parser.add_argument("--path", default=settings.JSON_STORE_PATH)
    parser.add_argument("--trainer", default="trainer_demo")
    parser.add_argument("--client", default="client_demo")
    parser.add_argument("--days", type=int, default=7)
    args = parser.parse_args()

    store = JsonScheduleStore(path=args.path)
    store.save_trainer(Trainer(id=args.trainer, name="Demo Trainer", email="trainer@example.com"))
    store.save_client(
        ClientProfile(
            id=args.client,
            first_name="Demo",
            last_name="Client",
            email_address="client@example.com",
        )
    )

    payment = RecordPaymentConfirmationUseCase(
        store=store,
        ledger=store,
        catalog=PackageCatalogStore(),
        expiration_months=settings.PACKAGE_EXPIRATION_MONTHS,
    ).execute(client_id=args.client, package_type="five_pack", transaction_id="txn_demo")

    today = datetime.now(timezone.utc).date()
    generated = GenerateAvailabilityUseCase(store=store, timezone=ZoneInfo(settings.SCHEDULE_TIMEZONE)).execute(
        caller_id=args.trainer,
        trainer_id=args.trainer,
        start_date=today,
        end_date=today + timedelta(days=args.days),
    )

    print(f"store: {args.path}")
    print(f"trainer: {args.trainer}  (token: dev:{args.trainer})")
    print(f"client: {args.client}  (token: dev:{args.client})")
    print(f"package: {payment.package.id}  lessons={payment.package.total_lessons}  new={payment.created}")
    print(generated.message)


if __name__ == "__main__":
    main()
