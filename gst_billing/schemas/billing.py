from __future__ import annotations

import enum
from decimal import Decimal
from typing import List, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from gst_billing.schemas.receiver import Receiver

PaymentStatus = Literal["paid", "unpaid"]

ZERO = Decimal("0")


class PriceConvention(str, enum.Enum):
    """How a line's stored price relates to GST."""

    EXCLUSIVE = "exclusive"  # price is the rate, GST is added on top
    INCLUSIVE = "inclusive"  # price already contains GST (MRP style)


class BillLine(BaseModel):
    """A line of the current bill.

    Lines are immutable; ``CurrentBill`` replaces a line whenever its
    quantity changes so that ``total`` is always derived from
    ``(price, quantity, gst_rate)``.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    weight: Optional[float] = None
    weight_unit: str = "pieces"
    price: Decimal
    mrp: Optional[Decimal] = None
    hsn_code: Optional[str] = None
    gst_rate: Optional[Decimal] = None
    quantity: int
    total: Decimal


class BillTotals(BaseModel):
    model_config = ConfigDict(frozen=True)

    subtotal: Decimal = ZERO
    cgst: Decimal = ZERO
    sgst: Decimal = ZERO
    total: Decimal = ZERO


class InvoiceExtras(BaseModel):
    buyers_order_no: Optional[str] = None
    dispatched_through: Optional[str] = None
    destination: Optional[str] = None


class InvoiceDraft(BaseModel):
    """A fully computed invoice that has not been given a store id yet."""

    model_config = ConfigDict(frozen=True)

    invoice_number: str
    receiver: Optional[Receiver] = None
    items: Tuple[BillLine, ...]
    subtotal: Decimal
    cgst: Decimal
    sgst: Decimal
    total: Decimal
    created_at: str
    payment_status: PaymentStatus = "unpaid"
    buyers_order_no: Optional[str] = None
    dispatched_through: Optional[str] = None
    destination: Optional[str] = None
    price_convention: PriceConvention = PriceConvention.EXCLUSIVE

    @property
    def totals(self) -> BillTotals:
        return BillTotals(
            subtotal=self.subtotal, cgst=self.cgst, sgst=self.sgst, total=self.total
        )


class Invoice(InvoiceDraft):
    id: str

    @classmethod
    def from_record(cls, record: dict, record_id: Optional[str] = None) -> "Invoice":
        data = dict(record)
        if not data.get("payment_status"):
            data["payment_status"] = "unpaid"
        if record_id is not None:
            data["id"] = record_id
        return cls.model_validate(data)


class BillView(BaseModel):
    lines: List[BillLine]
    totals: BillTotals
    price_convention: PriceConvention


class AddItemRequest(BaseModel):
    item_id: str
    quantity: int = Field(1, description="Units to add; must be positive")


class RemoveItemRequest(BaseModel):
    item_id: str


class UpdateQuantityRequest(BaseModel):
    item_id: str
    quantity: int = Field(..., description="New quantity; zero or less removes the line")


class GenerateInvoiceRequest(BaseModel):
    receiver_id: Optional[str] = Field(None, description="Id of a saved receiver")
    receiver: Optional[Receiver] = Field(None, description="Inline receiver when not saved")
    extras: InvoiceExtras = Field(default_factory=InvoiceExtras)
    payment_status: PaymentStatus = "unpaid"
    save_receiver: bool = Field(False, description="Persist an inline receiver for later use")


class InvoiceSummary(BaseModel):
    id: str
    invoice_number: str
    receiver_name: Optional[str] = None
    total: Decimal
    created_at: str
    payment_status: PaymentStatus


class InvoiceListRequest(BaseModel):
    status: Literal["all", "paid", "unpaid"] = "all"


class InvoiceListResponse(BaseModel):
    total: int
    total_sales: Decimal
    items: List[InvoiceSummary]


class InvoiceLookupRequest(BaseModel):
    invoice_id: str


class InvoiceStatusRequest(BaseModel):
    invoice_id: str
    payment_status: PaymentStatus


class InvoiceVerification(BaseModel):
    invoice_id: str
    stored: BillTotals
    computed: BillTotals
    discrepancy: Decimal
    matches: bool
