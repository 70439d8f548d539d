"""Printable HTML rendition of a stored GST invoice."""
from __future__ import annotations

import html
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import HTMLResponse

from gst_billing.config import Settings, get_settings
from gst_billing.dependencies.services import get_invoice_service
from gst_billing.schemas.billing import BillLine, Invoice, PriceConvention
from gst_billing.schemas.catalog import variant_label
from gst_billing.schemas.receiver import Address
from gst_billing.services import InvoiceService
from gst_billing.services.exceptions import ServiceError
from gst_billing.services.tax import half_rate, line_amounts, money

router = APIRouter()


def _esc(value: Optional[object]) -> str:
    return html.escape("" if value is None else str(value))


def _amount(value: Optional[Decimal]) -> str:
    return f"{money(value):.2f}"


def _rate(value: Decimal) -> str:
    return f"{value.normalize():f}%"


def _display_date(created_at: str) -> str:
    try:
        parsed = datetime.fromisoformat(created_at.replace("Z", "+00:00"))
    except ValueError:
        return created_at
    return parsed.strftime("%d-%b-%Y")


def _address_block(title: str, name: str, address: Address, gstin: Optional[str]) -> str:
    lines = [f"<strong>{_esc(name)}</strong>"]
    lines.extend(_esc(line) for line in address.lines())
    if gstin:
        lines.append(f"GSTIN/UIN: {_esc(gstin)}")
    return f"<td><div class='label'>{_esc(title)}</div>{'<br>'.join(lines)}</td>"


def _line_row(index: int, line: BillLine, convention: PriceConvention) -> str:
    amounts = line_amounts(line, convention)
    half = half_rate(line.gst_rate)
    description = variant_label(line.name, line.weight, line.weight_unit)
    mrp = _amount(line.mrp) if line.mrp is not None else "N/A"
    cells = [
        str(index),
        _esc(description),
        _esc(line.hsn_code),
        str(line.quantity),
        mrp,
        _amount(amounts.base),
        f"{_rate(half)}<br>{_amount(amounts.cgst)}",
        f"{_rate(half)}<br>{_amount(amounts.sgst)}",
        _amount(amounts.total),
    ]
    return "<tr>" + "".join(f"<td>{cell}</td>" for cell in cells) + "</tr>"


def render_invoice(invoice: Invoice, settings: Settings) -> str:
    """Build the printable page; amounts are rounded half-up for display only."""
    receiver = invoice.receiver
    receiver_name = receiver.display_name if receiver else "N/A"
    shop_address = "<br>".join(_esc(line) for line in settings.shop_address.splitlines())

    rows: List[str] = [
        _line_row(index, line, invoice.price_convention)
        for index, line in enumerate(invoice.items, start=1)
    ]

    parties = ""
    if receiver is not None:
        parties = (
            "<table class='parties'><tr>"
            + _address_block(
                "Consignee (Ship to)", receiver_name, receiver.shipping_address, receiver.gstin
            )
            + _address_block(
                "Buyer (Bill to)", receiver_name, receiver.billing_address, receiver.gstin
            )
            + "</tr></table>"
        )

    return f"""
    <html>
        <head>
            <title>Tax Invoice {_esc(invoice.invoice_number)}</title>
            <style>
                body {{ font-family: Arial, sans-serif; margin: 2rem; font-size: 0.9rem; }}
                h1 {{ text-align: center; margin-bottom: 0.5rem; }}
                table {{ border-collapse: collapse; width: 100%; margin-bottom: 1rem; }}
                th, td {{ border: 1px solid #999; padding: 0.4rem; vertical-align: top; }}
                th {{ background-color: #f0f0f0; }}
                .label {{ font-size: 0.75rem; color: #555; }}
                .totals td {{ text-align: right; }}
                @media print {{ body {{ margin: 0; }} }}
            </style>
        </head>
        <body>
            <h1>Tax Invoice</h1>
            <table class='header'><tr>
                <td><strong>{_esc(settings.shop_name)}</strong><br>{shop_address}<br>
                    GSTIN/UIN: {_esc(settings.shop_gstin)}</td>
                <td>
                    <div class='label'>Invoice No.</div>{_esc(invoice.invoice_number)}
                    <div class='label'>Dated</div>{_esc(_display_date(invoice.created_at))}
                    <div class='label'>Buyer's Order No.</div>{_esc(invoice.buyers_order_no)}
                    <div class='label'>Dispatched through</div>{_esc(invoice.dispatched_through)}
                    <div class='label'>Destination</div>{_esc(invoice.destination)}
                </td>
            </tr></table>
            {parties}
            <table class='lines'>
                <thead><tr>
                    <th>Sl</th><th>Description of Goods</th><th>HSN/SAC</th>
                    <th>Quantity</th><th>MRP</th><th>Rate</th>
                    <th>CGST</th><th>SGST</th><th>Amount</th>
                </tr></thead>
                <tbody>{''.join(rows)}</tbody>
            </table>
            <table class='totals'>
                <tr><td>Sub Total</td><td>{_amount(invoice.subtotal)}</td></tr>
                <tr><td>Total CGST</td><td>{_amount(invoice.cgst)}</td></tr>
                <tr><td>Total SGST</td><td>{_amount(invoice.sgst)}</td></tr>
                <tr><td><strong>Grand Total</strong></td><td><strong>{_amount(invoice.total)}</strong></td></tr>
            </table>
            <p>Payment status: {_esc(invoice.payment_status)}</p>
        </body>
    </html>
    """


@router.get("/invoices/{invoice_id}/print", response_class=HTMLResponse)
async def print_invoice(
    invoice_id: str,
    service: InvoiceService = Depends(get_invoice_service),
    settings: Settings = Depends(get_settings),
) -> HTMLResponse:
    try:
        invoice = await service.get(invoice_id)
    except ServiceError as exc:
        raise HTTPException(status_code=exc.http_status, detail=str(exc)) from exc
    return HTMLResponse(content=render_invoice(invoice, settings))
