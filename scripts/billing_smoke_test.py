#!/usr/bin/env python3
"""Run a bill-to-invoice smoke test against the local FastAPI service."""

from __future__ import annotations

import argparse
import json
import sys
from typing import Any, Dict, List

from fastapi.testclient import TestClient

from gst_billing.config import get_settings
from gst_billing.dependencies.services import get_current_bill
from gst_billing.main import app


def _post(client: TestClient, path: str, payload: Dict[str, Any] | None = None) -> Dict[str, Any]:
    headers = {}
    api_key = get_settings().api_key
    if api_key:
        headers["X-API-Key"] = api_key
    response = client.post(path, json=payload or {}, headers=headers)
    if response.status_code != 200:
        raise RuntimeError(f"{path} failed ({response.status_code}): {response.text}")
    return response.json()


def run_smoke_test(item_ids: List[str], quantity: int, receiver_name: str) -> Dict[str, Any]:
    """Add items, generate an invoice and check it against its own lines."""

    get_settings.cache_clear()
    get_current_bill.cache_clear()

    settings = get_settings()
    print(
        f"Running smoke test (mock data={settings.use_mock_data}, "
        f"convention={settings.price_convention.value})"
    )

    with TestClient(app) as client:
        for item_id in item_ids:
            _post(client, "/tools/bill/add", {"item_id": item_id, "quantity": quantity})

        bill = _post(client, "/tools/bill/view")
        print("Current bill totals:")
        print(json.dumps(bill["totals"], indent=2))

        invoice = _post(
            client,
            "/tools/bill/generate-invoice",
            {"receiver": {"display_name": receiver_name}},
        )
        print(f"\nInvoice {invoice['invoice_number']} stored as {invoice['id']}")

        verification = _post(client, "/tools/invoice/verify", {"invoice_id": invoice["id"]})
        if not verification["matches"]:
            raise RuntimeError(f"Invoice totals do not reconcile: {verification}")

        remaining = _post(client, "/tools/bill/view")
        if remaining["lines"]:
            raise RuntimeError("Bill was not cleared after the invoice was stored")

    return invoice


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description=(
            "Run a smoke test against the local billing service. The test fills "
            "the current bill, generates an invoice and verifies its totals."
        )
    )
    parser.add_argument(
        "--item",
        dest="items",
        action="append",
        help="Catalog item id to add (repeatable). Defaults to two seeded items.",
    )
    parser.add_argument(
        "--quantity",
        type=int,
        default=2,
        help="Quantity to add for each item.",
    )
    parser.add_argument(
        "--receiver",
        default="Smoke Test Buyer",
        help="Display name of the inline receiver.",
    )

    args = parser.parse_args(argv)

    try:
        run_smoke_test(args.items or ["ITEM-00001", "ITEM-00003"], args.quantity, args.receiver)
    except Exception as exc:  # pragma: no cover - manual diagnostic utility
        print(f"Smoke test failed: {exc}", file=sys.stderr)
        return 1

    print("\nSmoke test completed successfully.")
    return 0


if __name__ == "__main__":  # pragma: no cover - manual diagnostic utility
    raise SystemExit(main())
