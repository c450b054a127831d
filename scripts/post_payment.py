#!/usr/bin/env python3
from __future__ import annotations

import argparse
import json
import sys
import time
from pathlib import Path

import httpx
from httpx import ConnectError

project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from slotbook.infrastructure.payments.webhook_verify import sign_body


def main() -> None:
    parser = argparse.ArgumentParser(description="Send a signed payment confirmation to a running server")
    parser.add_argument("--url", default="http://127.0.0.1:8000/webhooks/payments")
    parser.add_argument("--client", default="client_demo")
    parser.add_argument("--package-type", default="five_pack")
    parser.add_argument("--transaction", default=None)
    parser.add_argument("--secret", default="", help="Payment webhook secret for the signature")
    args = parser.parse_args()

    payload = {
        "clientId": args.client,
        "packageType": args.package_type,
        "transactionId": args.transaction or f"txn_{int(time.time() * 1000)}",
    }
    body = json.dumps(payload).encode("utf-8")

    headers = {"Content-Type": "application/json"}
    if args.secret:
        headers["X-Signature-256"] = sign_body(body, args.secret)

    try:
        resp = httpx.post(args.url, content=body, headers=headers, timeout=10.0)
    except ConnectError:
        print("Connection refused. Is the FastAPI server running?")
        return

    print(f"Status: {resp.status_code}")
    print(resp.text)


if __name__ == "__main__":
    main()
