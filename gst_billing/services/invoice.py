from __future__ import annotations

import logging
from decimal import Decimal
from typing import List

from gst_billing.schemas.billing import (
    Invoice,
    InvoiceListRequest,
    InvoiceListResponse,
    InvoiceStatusRequest,
    InvoiceSummary,
    InvoiceVerification,
)
from gst_billing.services.base import StoreBackedService
from gst_billing.services.exceptions import NotFoundError
from gst_billing.services.store import INVOICES
from gst_billing.services.tax import compute_totals

logger = logging.getLogger(__name__)


class InvoiceService(StoreBackedService):
    """Read and maintain persisted invoices."""

    async def _all(self) -> List[Invoice]:
        store = await self._documents()
        with self._store_errors("list invoices"):
            records = await store.fetch_all(INVOICES)
            return [Invoice.from_record(record) for record in records]

    async def list(self, request: InvoiceListRequest) -> InvoiceListResponse:
        logger.info("Listing %s invoices", request.status)
        invoices = await self._all()
        invoices.sort(key=lambda invoice: invoice.created_at, reverse=True)
        if request.status != "all":
            invoices = [
                invoice for invoice in invoices if invoice.payment_status == request.status
            ]

        items = [
            InvoiceSummary(
                id=invoice.id,
                invoice_number=invoice.invoice_number,
                receiver_name=invoice.receiver.display_name if invoice.receiver else None,
                total=invoice.total,
                created_at=invoice.created_at,
                payment_status=invoice.payment_status,
            )
            for invoice in invoices
        ]
        total_sales = sum((item.total for item in items), Decimal("0"))
        return InvoiceListResponse(total=len(items), total_sales=total_sales, items=items)

    async def get(self, invoice_id: str) -> Invoice:
        store = await self._documents()
        with self._store_errors("fetch invoice"):
            record = await store.get(INVOICES, invoice_id)
            if record is None:
                raise NotFoundError(f"Invoice '{invoice_id}' not found")
            return Invoice.from_record(record, invoice_id)

    async def update_status(self, request: InvoiceStatusRequest) -> Invoice:
        logger.info(
            "Marking invoice %s as %s", request.invoice_id, request.payment_status
        )
        store = await self._documents()
        with self._store_errors("update invoice status"):
            await store.update(
                INVOICES, request.invoice_id, {"payment_status": request.payment_status}
            )
        return await self.get(request.invoice_id)

    async def delete(self, invoice_id: str) -> None:
        logger.info("Deleting invoice %s", invoice_id)
        store = await self._documents()
        with self._store_errors("delete invoice"):
            await store.delete(INVOICES, invoice_id)

    async def verify(self, invoice_id: str) -> InvoiceVerification:
        """Recompute totals from the stored lines without touching the record."""
        invoice = await self.get(invoice_id)
        computed = compute_totals(invoice.items, invoice.price_convention)
        discrepancy = invoice.total - computed.total
        if discrepancy:
            logger.warning(
                "Invoice %s total differs from its lines by %s", invoice_id, discrepancy
            )
        return InvoiceVerification(
            invoice_id=invoice_id,
            stored=invoice.totals,
            computed=computed,
            discrepancy=discrepancy,
            matches=(
                computed.subtotal == invoice.subtotal
                and computed.cgst == invoice.cgst
                and computed.sgst == invoice.sgst
                and computed.total == invoice.total
            ),
        )
