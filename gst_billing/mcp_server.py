# gst_billing/mcp_server.py
from __future__ import annotations

import logging
from typing import Literal, Optional

from mcp.server.fastmcp import Context, FastMCP
from pydantic import BaseModel, Field

from gst_billing.dependencies.services import (
    get_billing_service,
    get_catalog_service,
    get_document_client_cached,
    get_invoice_service,
)
from gst_billing.schemas.billing import (
    BillView,
    GenerateInvoiceRequest,
    Invoice,
    InvoiceExtras,
    InvoiceListRequest,
    InvoiceListResponse,
)
from gst_billing.schemas.catalog import ItemListResponse
from gst_billing.schemas.receiver import Receiver

log = logging.getLogger("gst_billing.mcp")

# Name shown to MCP clients
mcp = FastMCP("gst_billing_mcp")


# --------------------------
# Tool I/O models
# --------------------------
class CatalogSearchInput(BaseModel):
    query: Optional[str] = Field(None, description="Case-insensitive fragment of the item name, e.g. 'honey'")


class BillAddItemInput(BaseModel):
    item_id: str = Field(..., description="Catalog item id, e.g. 'ITEM-00001'")
    quantity: int = Field(1, description="Units to add; merged into an existing line for the same item")


class BillUpdateQuantityInput(BaseModel):
    item_id: str
    quantity: int = Field(..., description="New quantity; zero or less removes the line")


class BillRemoveItemInput(BaseModel):
    item_id: str


class InvoiceGenerateInput(BaseModel):
    receiver_id: Optional[str] = Field(None, description="Id of a saved receiver")
    receiver_name: Optional[str] = Field(None, description="Display name of a one-off receiver")
    gstin: Optional[str] = None
    save_receiver: bool = False
    payment_status: Literal["paid", "unpaid"] = "unpaid"
    buyers_order_no: Optional[str] = None
    dispatched_through: Optional[str] = None
    destination: Optional[str] = None


class InvoiceListInput(BaseModel):
    status: Literal["all", "paid", "unpaid"] = "all"


def _client():
    return get_document_client_cached()


# --------------------------
# Tools
# --------------------------
@mcp.tool(name="catalog_search", description="Search the item catalog by name")
async def catalog_search(input: CatalogSearchInput, ctx: Context) -> ItemListResponse:
    log.debug("catalog_search input=%s", input.model_dump())
    out = await get_catalog_service(_client()).list(input.query)
    log.debug("catalog_search output total=%s", out.total)
    return out


@mcp.tool(name="bill_add_item", description="Add a catalog item to the current bill")
async def bill_add_item(input: BillAddItemInput, ctx: Context) -> BillView:
    log.debug("bill_add_item input=%s", input.model_dump())
    service = get_billing_service(_client())
    await service.add_item(input.item_id, input.quantity)
    out = service.view()
    log.debug("bill_add_item output=%s", out.model_dump(mode="json"))
    return out


@mcp.tool(name="bill_update_quantity", description="Set the quantity of a line on the current bill")
async def bill_update_quantity(input: BillUpdateQuantityInput, ctx: Context) -> BillView:
    log.debug("bill_update_quantity input=%s", input.model_dump())
    out = get_billing_service(_client()).update_quantity(input.item_id, input.quantity)
    log.debug("bill_update_quantity output=%s", out.model_dump(mode="json"))
    return out


@mcp.tool(name="bill_remove_item", description="Remove a line from the current bill")
async def bill_remove_item(input: BillRemoveItemInput, ctx: Context) -> BillView:
    log.debug("bill_remove_item input=%s", input.model_dump())
    out = get_billing_service(_client()).remove_item(input.item_id)
    log.debug("bill_remove_item output=%s", out.model_dump(mode="json"))
    return out


@mcp.tool(name="bill_view", description="Show the current bill with its totals")
async def bill_view(ctx: Context) -> BillView:
    out = get_billing_service(_client()).view()
    log.debug("bill_view output=%s", out.model_dump(mode="json"))
    return out


@mcp.tool(name="invoice_generate", description="Turn the current bill into a stored invoice")
async def invoice_generate(input: InvoiceGenerateInput, ctx: Context) -> Invoice:
    log.debug("invoice_generate input=%s", input.model_dump())
    receiver = None
    if input.receiver_name:
        receiver = Receiver(display_name=input.receiver_name, gstin=input.gstin)
    request = GenerateInvoiceRequest(
        receiver_id=input.receiver_id,
        receiver=receiver,
        save_receiver=input.save_receiver,
        payment_status=input.payment_status,
        extras=InvoiceExtras(
            buyers_order_no=input.buyers_order_no,
            dispatched_through=input.dispatched_through,
            destination=input.destination,
        ),
    )
    out = await get_billing_service(_client()).generate_invoice(request)
    log.debug("invoice_generate output id=%s number=%s", out.id, out.invoice_number)
    return out


@mcp.tool(name="invoice_list", description="List stored invoices, newest first")
async def invoice_list(input: InvoiceListInput, ctx: Context) -> InvoiceListResponse:
    log.debug("invoice_list input=%s", input.model_dump())
    out = await get_invoice_service(_client()).list(InvoiceListRequest(status=input.status))
    log.debug("invoice_list output total=%s", out.total)
    return out


@mcp.tool(name="ping", description="Health check")
async def ping(message: str) -> str:
    log.debug("ping %s", message)
    return f"pong: {message}"
