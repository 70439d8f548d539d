from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Optional

from gst_billing.clients.document_store import DocumentStoreClient
from gst_billing.schemas.billing import (
    BillLine,
    BillView,
    GenerateInvoiceRequest,
    Invoice,
)
from gst_billing.schemas.receiver import Receiver
from gst_billing.services.base import StoreBackedService
from gst_billing.services.bill import CurrentBill
from gst_billing.services.catalog import CatalogService
from gst_billing.services.exceptions import (
    EmptyBillError,
    MissingReceiverError,
    NotFoundError,
    ServiceError,
)
from gst_billing.services.materializer import InvoiceMaterializer, utc_now
from gst_billing.services.receivers import ReceiverService
from gst_billing.services.store import DocumentStore

logger = logging.getLogger(__name__)


class BillingService(StoreBackedService):
    """Drives one billing session: the current bill and its conversion to an invoice."""

    def __init__(
        self,
        client: DocumentStoreClient,
        *,
        bill: CurrentBill | None = None,
        store: DocumentStore | None = None,
        catalog: CatalogService | None = None,
        receivers: ReceiverService | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        super().__init__(client, store=store)
        self.bill = bill if bill is not None else CurrentBill()
        self._catalog = catalog or CatalogService(client, store=self._store)
        self._receivers = receivers or ReceiverService(client, store=self._store)
        self._clock = clock

    def view(self) -> BillView:
        return BillView(
            lines=list(self.bill.lines),
            totals=self.bill.totals(),
            price_convention=self.bill.convention,
        )

    async def add_item(self, item_id: str, quantity: int = 1) -> BillLine:
        logger.info("Adding %s x %s to the current bill", quantity, item_id)
        item = await self._catalog.get(item_id)
        return self.bill.add_item(item, quantity)

    def remove_item(self, item_id: str) -> BillView:
        logger.info("Removing %s from the current bill", item_id)
        self.bill.remove_item(item_id)
        return self.view()

    def update_quantity(self, item_id: str, quantity: int) -> BillView:
        logger.info("Setting quantity of %s to %s", item_id, quantity)
        self.bill.update_quantity(item_id, quantity)
        return self.view()

    def clear(self) -> BillView:
        logger.info("Clearing the current bill")
        self.bill.clear()
        return self.view()

    async def _resolve_receiver(self, request: GenerateInvoiceRequest) -> Optional[Receiver]:
        if request.receiver_id:
            try:
                return await self._receivers.get(request.receiver_id)
            except NotFoundError as exc:
                raise MissingReceiverError(
                    f"Receiver '{request.receiver_id}' does not exist", cause=exc
                ) from exc

        receiver = request.receiver
        if receiver is None or not receiver.display_name.strip():
            return receiver
        if request.save_receiver and not receiver.is_persisted:
            try:
                receiver = await self._receivers.save_transient(receiver)
            except ServiceError:
                # the invoice still carries the inline receiver
                logger.exception("Error saving new receiver %s", receiver.display_name)
        return receiver

    async def generate_invoice(self, request: GenerateInvoiceRequest) -> Invoice:
        """Materialize the current bill and clear it once the invoice is stored.

        Precondition failures and store failures leave the bill untouched.
        """
        # checked here as well so an inline receiver is not saved for an empty bill
        if self.bill.is_empty:
            raise EmptyBillError("Cannot generate an invoice with no items.")
        receiver = await self._resolve_receiver(request)

        store = await self._documents()
        materializer = InvoiceMaterializer(
            store, clock=self._clock, convention=self.bill.convention
        )
        invoice = await materializer.materialize(
            self.bill.lines,
            receiver,
            request.extras,
            request.payment_status,
        )
        self.bill.clear()
        logger.info("Invoice %s stored as %s", invoice.invoice_number, invoice.id)
        return invoice
