import asyncio
import os
import sys
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest
from pydantic import ValidationError as PydanticValidationError

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from gst_billing.schemas.billing import (
    GenerateInvoiceRequest,
    InvoiceListRequest,
    InvoiceStatusRequest,
    PriceConvention,
)
from gst_billing.schemas.catalog import ItemCreate, ItemPatch
from gst_billing.schemas.receiver import (
    Address,
    AddressPatch,
    Receiver,
    ReceiverCreate,
    ReceiverPatch,
)
from gst_billing.services.bill import CurrentBill
from gst_billing.services.billing import BillingService
from gst_billing.services.catalog import CatalogService
from gst_billing.services.exceptions import (
    EmptyBillError,
    MissingReceiverError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from gst_billing.services.invoice import InvoiceService
from gst_billing.services.mock_store import get_mock_store, reset_mock_store
from gst_billing.services.receivers import ReceiverService


HONEY_500G = "ITEM-00001"
GHEE_500ML = "ITEM-00003"
JAGGERY_1KG = "ITEM-00006"


@pytest.fixture(autouse=True)
def _reset_store() -> None:
    reset_mock_store()
    yield
    reset_mock_store()


class MockLatencyClient:
    """Client stub that records simulate_latency calls."""

    def __init__(self) -> None:
        self.use_mock_data = True
        self.latency_called = False

    async def simulate_latency(self) -> None:
        self.latency_called = True


class LiveClient:
    """Client stub for live mode; the store is injected as an AsyncMock."""

    use_mock_data = False


class TickingClock:
    """Returns a strictly increasing time on every call."""

    def __init__(self) -> None:
        self._now = datetime(2024, 6, 1, 9, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        self._now += timedelta(seconds=1)
        return self._now


def _walk_in(name: str = "Walk-in Buyer") -> Receiver:
    return Receiver(display_name=name, billing_address=Address(city="Mysuru"))


# --------------------------
# Catalog
# --------------------------
def test_mock_catalog_lists_seed_items() -> None:
    client = MockLatencyClient()
    service = CatalogService(client)

    response = asyncio.run(service.list())

    assert client.latency_called is True
    assert response.total == 6
    assert response.items[0].id == HONEY_500G
    assert response.items[0].price == Decimal("240.00")


def test_mock_catalog_filters_by_name() -> None:
    service = CatalogService(MockLatencyClient())

    response = asyncio.run(service.list("HONEY"))

    assert [item.weight_unit for item in response.items] == ["g", "kg"]


def test_mock_catalog_groups_variants_by_name() -> None:
    service = CatalogService(MockLatencyClient())

    groups = asyncio.run(service.grouped())

    assert len(groups["wild forest honey"]) == 2
    assert len(groups["cow ghee"]) == 1


def test_mock_catalog_create_update_delete() -> None:
    service = CatalogService(MockLatencyClient())

    created = asyncio.run(
        service.create(
            ItemCreate(name="  Turmeric Powder ", weight=200, weight_unit="g", price=Decimal("85"), gst_rate=Decimal("5"))
        )
    )
    assert created.id == "ITEM-00007"
    assert created.name == "Turmeric Powder"

    updated = asyncio.run(service.update(created.id, ItemPatch(price=Decimal("90"))))
    assert updated.price == Decimal("90")
    assert updated.gst_rate == Decimal("5")

    asyncio.run(service.delete(created.id))
    with pytest.raises(NotFoundError):
        asyncio.run(service.get(created.id))


def test_item_patch_rejects_null_for_required_fields() -> None:
    for field in ("name", "price", "weight_unit"):
        with pytest.raises(PydanticValidationError):
            ItemPatch.model_validate({field: None})

    assert ItemPatch.model_validate({"mrp": None, "hsn_code": None}).mrp is None


def test_mock_catalog_update_leaving_item_invalid_is_rejected() -> None:
    service = CatalogService(MockLatencyClient())
    patch = ItemPatch.model_construct(price=None)

    with pytest.raises(ValidationError):
        asyncio.run(service.update(HONEY_500G, patch))

    assert get_mock_store().items.get(HONEY_500G)["price"] == "240.00"
    assert asyncio.run(service.list()).total == 6


def test_mock_catalog_update_can_clear_optional_fields() -> None:
    service = CatalogService(MockLatencyClient())

    updated = asyncio.run(service.update(HONEY_500G, ItemPatch(mrp=None)))

    assert updated.mrp is None
    assert updated.price == Decimal("240.00")


def test_mock_catalog_update_of_unknown_item_raises() -> None:
    service = CatalogService(MockLatencyClient())

    with pytest.raises(NotFoundError):
        asyncio.run(service.update("ITEM-99999", ItemPatch(price=Decimal("1"))))


def test_live_catalog_uses_injected_store() -> None:
    store = AsyncMock()
    store.fetch_all.return_value = [
        {"id": "sku-1", "name": "Almond Butter", "price": "410", "gst_rate": "12"},
    ]
    service = CatalogService(LiveClient(), store=store)

    response = asyncio.run(service.list())

    store.fetch_all.assert_awaited_once_with("items")
    assert response.items[0].id == "sku-1"


def test_live_catalog_wraps_unexpected_errors() -> None:
    store = AsyncMock()
    store.fetch_all.side_effect = RuntimeError("socket closed")
    service = CatalogService(LiveClient(), store=store)

    with pytest.raises(PersistenceError):
        asyncio.run(service.list())


# --------------------------
# Receivers
# --------------------------
def test_receiver_create_copies_billing_to_shipping() -> None:
    service = ReceiverService(MockLatencyClient())

    receiver = asyncio.run(
        service.create(
            ReceiverCreate(
                display_name="Green Basket Stores",
                gstin="29ABCDE1234F1Z5",
                billing_address=Address(address_line1="12 Market Road", city="Mysuru"),
            )
        )
    )

    assert receiver.id == "RCV-00001"
    assert receiver.customer_type == "business"
    assert receiver.shipping_address.address_line1 == "12 Market Road"
    assert receiver.shipping_address.country_region == "India"


def test_receiver_read_fills_legacy_defaults() -> None:
    store = get_mock_store()
    store.receivers.insert({"gstin": "29AAAAA0000A1Z5"})
    service = ReceiverService(MockLatencyClient())

    receiver = asyncio.run(service.get("RCV-00001"))

    assert receiver.display_name == "N/A"
    assert receiver.customer_type == "business"
    assert receiver.billing_address.country_region == "India"


def test_receiver_update_merges_address_fields() -> None:
    service = ReceiverService(MockLatencyClient())
    created = asyncio.run(
        service.create(
            ReceiverCreate(
                display_name="Hill Top Cafe",
                billing_address=Address(address_line1="4 Lake View", city="Ooty"),
            )
        )
    )

    updated = asyncio.run(
        service.update(
            created.id,
            ReceiverPatch(mobile="9876543210", billing_address=AddressPatch(pin_code="643001")),
        )
    )

    assert updated.mobile == "9876543210"
    assert updated.billing_address.address_line1 == "4 Lake View"
    assert updated.billing_address.pin_code == "643001"
    stored = asyncio.run(service.get(created.id))
    assert stored.billing_address.pin_code == "643001"


def test_receiver_list_matches_name_or_gstin() -> None:
    service = ReceiverService(MockLatencyClient())
    asyncio.run(service.create(ReceiverCreate(display_name="Hill Top Cafe")))
    asyncio.run(service.create(ReceiverCreate(display_name="Green Basket", gstin="29XYZ")))

    assert asyncio.run(service.list("cafe")).total == 1
    assert asyncio.run(service.list("29xyz")).items[0].display_name == "Green Basket"


# --------------------------
# Billing
# --------------------------
def test_billing_service_keeps_injected_empty_bill() -> None:
    bill = CurrentBill(PriceConvention.INCLUSIVE)
    service = BillingService(MockLatencyClient(), bill=bill)

    assert service.bill is bill
    asyncio.run(service.add_item(HONEY_500G))

    assert len(bill) == 1
    assert service.view().price_convention is PriceConvention.INCLUSIVE


def test_billing_services_sharing_a_bill_accumulate_lines() -> None:
    bill = CurrentBill()

    asyncio.run(BillingService(MockLatencyClient(), bill=bill).add_item(HONEY_500G))
    asyncio.run(BillingService(MockLatencyClient(), bill=bill).add_item(GHEE_500ML))

    assert [line.id for line in bill] == [HONEY_500G, GHEE_500ML]


def test_billing_add_items_from_catalog_and_view_totals() -> None:
    service = BillingService(MockLatencyClient())

    asyncio.run(service.add_item(HONEY_500G, 2))
    asyncio.run(service.add_item(JAGGERY_1KG))
    asyncio.run(service.add_item(HONEY_500G))
    view = service.view()

    assert [line.id for line in view.lines] == [HONEY_500G, JAGGERY_1KG]
    assert view.lines[0].quantity == 3
    # honey 720 + 36 tax; jaggery 95 untaxed
    assert view.totals.subtotal == Decimal("815")
    assert view.totals.cgst == view.totals.sgst == Decimal("18")
    assert view.totals.total == Decimal("851")


def test_billing_add_unknown_item_raises_not_found() -> None:
    service = BillingService(MockLatencyClient())

    with pytest.raises(NotFoundError):
        asyncio.run(service.add_item("ITEM-99999"))

    assert service.bill.is_empty


def test_billing_add_rejects_non_positive_quantity() -> None:
    service = BillingService(MockLatencyClient())

    with pytest.raises(ValidationError):
        asyncio.run(service.add_item(HONEY_500G, 0))


def test_generate_invoice_stores_and_clears_bill() -> None:
    service = BillingService(MockLatencyClient(), clock=TickingClock())
    asyncio.run(service.add_item(GHEE_500ML, 2))

    invoice = asyncio.run(
        service.generate_invoice(GenerateInvoiceRequest(receiver=_walk_in()))
    )

    assert invoice.id == "INV-00001"
    assert invoice.total == Decimal("851.20")
    assert service.bill.is_empty
    assert len(get_mock_store().invoices) == 1


def test_generate_invoice_with_saved_receiver_id() -> None:
    client = MockLatencyClient()
    receivers = ReceiverService(client)
    saved = asyncio.run(receivers.create(ReceiverCreate(display_name="Hill Top Cafe")))
    service = BillingService(client)
    asyncio.run(service.add_item(HONEY_500G))

    invoice = asyncio.run(
        service.generate_invoice(GenerateInvoiceRequest(receiver_id=saved.id))
    )

    assert invoice.receiver.id == saved.id
    assert invoice.receiver.display_name == "Hill Top Cafe"


def test_generate_invoice_saves_inline_receiver_when_requested() -> None:
    service = BillingService(MockLatencyClient())
    asyncio.run(service.add_item(HONEY_500G))

    invoice = asyncio.run(
        service.generate_invoice(
            GenerateInvoiceRequest(receiver=_walk_in("New Buyer"), save_receiver=True)
        )
    )

    assert invoice.receiver.id == "RCV-00001"
    assert get_mock_store().receivers.get("RCV-00001")["display_name"] == "New Buyer"


def test_generate_invoice_on_empty_bill_raises() -> None:
    service = BillingService(MockLatencyClient())

    with pytest.raises(EmptyBillError):
        asyncio.run(
            service.generate_invoice(
                GenerateInvoiceRequest(receiver=_walk_in(), save_receiver=True)
            )
        )

    assert len(get_mock_store().receivers) == 0
    assert len(get_mock_store().invoices) == 0


def test_generate_invoice_without_receiver_keeps_bill() -> None:
    service = BillingService(MockLatencyClient())
    asyncio.run(service.add_item(HONEY_500G))

    with pytest.raises(MissingReceiverError):
        asyncio.run(service.generate_invoice(GenerateInvoiceRequest()))
    with pytest.raises(MissingReceiverError):
        asyncio.run(service.generate_invoice(GenerateInvoiceRequest(receiver_id="RCV-404")))

    assert len(service.bill) == 1


def test_generate_invoice_store_failure_keeps_bill_for_retry() -> None:
    store = AsyncMock()
    store.get.return_value = {"id": HONEY_500G, "name": "Wild Forest Honey", "price": "240", "gst_rate": "5"}
    store.save.side_effect = PersistenceError("store unavailable", status_code=503)
    service = BillingService(LiveClient(), store=store)
    asyncio.run(service.add_item(HONEY_500G))

    with pytest.raises(PersistenceError) as exc_info:
        asyncio.run(service.generate_invoice(GenerateInvoiceRequest(receiver=_walk_in())))

    assert exc_info.value.status_code == 503
    assert len(service.bill) == 1

    store.save.side_effect = None
    store.save.return_value = "remote-inv-1"
    invoice = asyncio.run(service.generate_invoice(GenerateInvoiceRequest(receiver=_walk_in())))
    assert invoice.id == "remote-inv-1"
    assert service.bill.is_empty


def test_generate_invoice_receiver_save_failure_does_not_block_invoice() -> None:
    store = AsyncMock()
    store.get.return_value = {"id": HONEY_500G, "name": "Wild Forest Honey", "price": "240", "gst_rate": "5"}

    async def save(collection, record):
        if collection == "receivers":
            raise PersistenceError("receivers collection is read-only")
        return "remote-inv-2"

    store.save.side_effect = save
    service = BillingService(LiveClient(), store=store)
    asyncio.run(service.add_item(HONEY_500G))

    invoice = asyncio.run(
        service.generate_invoice(
            GenerateInvoiceRequest(receiver=_walk_in(), save_receiver=True)
        )
    )

    assert invoice.id == "remote-inv-2"
    assert invoice.receiver.id is None


# --------------------------
# Invoices
# --------------------------
def _issue_invoices(statuses) -> BillingService:
    service = BillingService(MockLatencyClient(), clock=TickingClock())
    for status in statuses:
        asyncio.run(service.add_item(HONEY_500G))
        asyncio.run(
            service.generate_invoice(
                GenerateInvoiceRequest(receiver=_walk_in(), payment_status=status)
            )
        )
    return service


def test_invoice_list_newest_first_with_sales_total() -> None:
    _issue_invoices(["paid", "unpaid", "paid"])
    service = InvoiceService(MockLatencyClient())

    response = asyncio.run(service.list(InvoiceListRequest()))

    assert [item.id for item in response.items] == ["INV-00003", "INV-00002", "INV-00001"]
    assert response.total_sales == Decimal("756")


def test_invoice_list_filters_by_status_and_treats_missing_as_unpaid() -> None:
    _issue_invoices(["paid", "unpaid"])
    get_mock_store().invoices.merge("INV-00001", {"payment_status": None})
    service = InvoiceService(MockLatencyClient())

    unpaid = asyncio.run(service.list(InvoiceListRequest(status="unpaid")))
    paid = asyncio.run(service.list(InvoiceListRequest(status="paid")))

    assert {item.id for item in unpaid.items} == {"INV-00001", "INV-00002"}
    assert paid.total == 0


def test_invoice_status_update_and_delete() -> None:
    _issue_invoices(["unpaid"])
    service = InvoiceService(MockLatencyClient())

    updated = asyncio.run(
        service.update_status(InvoiceStatusRequest(invoice_id="INV-00001", payment_status="paid"))
    )
    assert updated.payment_status == "paid"

    asyncio.run(service.delete("INV-00001"))
    with pytest.raises(NotFoundError):
        asyncio.run(service.get("INV-00001"))
    with pytest.raises(NotFoundError):
        asyncio.run(service.delete("INV-00001"))


def test_invoice_verify_reports_no_discrepancy_for_untouched_invoice() -> None:
    _issue_invoices(["unpaid"])
    service = InvoiceService(MockLatencyClient())

    verification = asyncio.run(service.verify("INV-00001"))

    assert verification.matches is True
    assert verification.discrepancy == 0


def test_invoice_verify_flags_tampered_total_without_rewriting() -> None:
    _issue_invoices(["unpaid"])
    get_mock_store().invoices.merge("INV-00001", {"total": "300.00"})
    service = InvoiceService(MockLatencyClient())

    verification = asyncio.run(service.verify("INV-00001"))

    assert verification.matches is False
    assert verification.discrepancy == Decimal("48.00")
    assert get_mock_store().invoices.get("INV-00001")["total"] == "300.00"
