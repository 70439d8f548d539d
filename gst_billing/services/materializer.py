"""Turn the current bill into an immutable, persisted invoice.

The materializer owns the precondition checks, invoice numbering and the
single totals computation an invoice ever receives. Clearing the bill after a
successful save is left to the caller.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional, Sequence

from gst_billing.schemas.billing import (
    BillLine,
    Invoice,
    InvoiceDraft,
    InvoiceExtras,
    PaymentStatus,
    PriceConvention,
)
from gst_billing.schemas.receiver import Receiver
from gst_billing.services.exceptions import (
    EmptyBillError,
    MissingReceiverError,
    PersistenceError,
    ServiceError,
)
from gst_billing.services.store import INVOICES, DocumentStore
from gst_billing.services.tax import compute_totals

logger = logging.getLogger(__name__)

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(now: datetime) -> datetime:
    if now.tzinfo is None:
        return now.replace(tzinfo=timezone.utc)
    return now.astimezone(timezone.utc)


def invoice_number_for(now: datetime) -> str:
    """Milliseconds since the epoch as a decimal string.

    Not unique across concurrent writers or clock skew.
    """
    return str((_as_utc(now) - _EPOCH) // timedelta(milliseconds=1))


def iso_timestamp(now: datetime) -> str:
    return _as_utc(now).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def build_invoice_draft(
    lines: Sequence[BillLine],
    receiver: Optional[Receiver],
    extras: Optional[InvoiceExtras],
    payment_status: PaymentStatus,
    now: datetime,
    convention: PriceConvention = PriceConvention.EXCLUSIVE,
) -> InvoiceDraft:
    if not lines:
        raise EmptyBillError("Cannot generate an invoice with no items.")
    if receiver is None or not receiver.display_name.strip():
        raise MissingReceiverError("Please select or enter a recipient name.")

    extras = extras or InvoiceExtras()
    totals = compute_totals(lines, convention)
    return InvoiceDraft(
        invoice_number=invoice_number_for(now),
        receiver=receiver,
        items=tuple(lines),
        subtotal=totals.subtotal,
        cgst=totals.cgst,
        sgst=totals.sgst,
        total=totals.total,
        created_at=iso_timestamp(now),
        payment_status=payment_status,
        buyers_order_no=extras.buyers_order_no,
        dispatched_through=extras.dispatched_through,
        destination=extras.destination,
        price_convention=convention,
    )


class InvoiceMaterializer:
    def __init__(
        self,
        sink: DocumentStore,
        *,
        collection: str = INVOICES,
        clock: Callable[[], datetime] = utc_now,
        convention: PriceConvention = PriceConvention.EXCLUSIVE,
    ) -> None:
        self._sink = sink
        self._collection = collection
        self._clock = clock
        self._convention = PriceConvention(convention)

    async def materialize(
        self,
        lines: Sequence[BillLine],
        receiver: Optional[Receiver],
        extras: Optional[InvoiceExtras] = None,
        payment_status: PaymentStatus = "unpaid",
        now: Optional[datetime] = None,
    ) -> Invoice:
        draft = build_invoice_draft(
            lines,
            receiver,
            extras,
            payment_status,
            now or self._clock(),
            self._convention,
        )
        logger.info(
            "Saving invoice %s for %s (total=%s)",
            draft.invoice_number,
            receiver.display_name,
            draft.total,
        )
        try:
            invoice_id = await self._sink.save(
                self._collection, draft.model_dump(mode="json")
            )
        except PersistenceError:
            raise
        except ServiceError as exc:
            raise PersistenceError(str(exc), cause=exc) from exc
        except Exception as exc:
            logger.exception("Unexpected error while saving invoice %s", draft.invoice_number)
            raise PersistenceError("Failed to save invoice", cause=exc) from exc

        return Invoice(id=invoice_id, **draft.model_dump())
