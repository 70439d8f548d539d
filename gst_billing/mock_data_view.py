"""Routes for browsing the documents held by the in-memory store."""
from __future__ import annotations

import html
import json
from typing import Any, Dict, Iterable, List, Mapping

from fastapi import APIRouter, HTTPException
from fastapi.responses import HTMLResponse

from gst_billing.services.exceptions import NotFoundError
from gst_billing.services.mock_store import get_mock_store
from gst_billing.services.store import INVOICES, ITEMS, RECEIVERS

router = APIRouter()

_COLLECTION_ALIASES = {
    "item": ITEMS,
    "items": ITEMS,
    "receiver": RECEIVERS,
    "receivers": RECEIVERS,
    "invoice": INVOICES,
    "invoices": INVOICES,
}


def _stringify(value: Any) -> str:
    """Return a JSON-friendly string representation for table cells."""
    if value is None:
        return ""
    if isinstance(value, (str, int, float, bool)):
        return str(value)
    return json.dumps(value, default=str)


def _build_table(title: str, rows: Iterable[Mapping[str, Any]]) -> str:
    row_list: List[Dict[str, Any]] = [dict(row) for row in rows]
    section_parts = [f"<section><h2>{html.escape(title)}</h2>"]
    if not row_list:
        section_parts.append("<p>No records found.</p></section>")
        return "".join(section_parts)

    columns: List[str] = []
    for row in row_list:
        for key in row.keys():
            if key not in columns:
                columns.append(key)

    header = "".join(f"<th>{html.escape(column)}</th>" for column in columns)
    body_rows = [
        "<tr>"
        + "".join(
            f"<td>{html.escape(_stringify(row.get(column)))}</td>" for column in columns
        )
        + "</tr>"
        for row in row_list
    ]
    section_parts.append(
        "<table><thead><tr>"
        + header
        + "</tr></thead><tbody>"
        + "".join(body_rows)
        + "</tbody></table></section>"
    )
    return "".join(section_parts)


def _invoice_rows(records: Iterable[Mapping[str, Any]]) -> List[Dict[str, Any]]:
    rows: List[Dict[str, Any]] = []
    for record in records:
        receiver = record.get("receiver") or {}
        rows.append(
            {
                "id": record.get("id"),
                "invoice_number": record.get("invoice_number"),
                "receiver": receiver.get("display_name"),
                "lines": len(record.get("items") or []),
                "subtotal": record.get("subtotal"),
                "cgst": record.get("cgst"),
                "sgst": record.get("sgst"),
                "total": record.get("total"),
                "payment_status": record.get("payment_status"),
                "created_at": record.get("created_at"),
            }
        )
    return rows


@router.get("/mock-data", response_class=HTMLResponse)
async def view_mock_data() -> HTMLResponse:
    """Render every collection of the shared in-memory store as HTML tables."""
    store = get_mock_store()

    sections = [
        _build_table("Items", store.items.all()),
        _build_table("Receivers", store.receivers.all()),
        _build_table("Invoices", _invoice_rows(store.invoices.all())),
    ]

    sections_html = "".join(sections)
    html_content = f"""
    <html>
        <head>
            <title>Billing Store Overview</title>
            <style>
                body {{ font-family: Arial, sans-serif; margin: 2rem; }}
                h1 {{ text-align: center; }}
                section {{ margin-bottom: 2rem; }}
                table {{ border-collapse: collapse; width: 100%; }}
                th, td {{ border: 1px solid #ccc; padding: 0.5rem; text-align: left; }}
                th {{ background-color: #f0f0f0; }}
                tbody tr:nth-child(even) {{ background-color: #fafafa; }}
            </style>
        </head>
        <body>
            <h1>Billing Store Overview</h1>
            {sections_html}
        </body>
    </html>
    """

    return HTMLResponse(content=html_content)


@router.delete("/mock-data/{collection}/{record_id}")
async def delete_mock_record(collection: str, record_id: str) -> Dict[str, str]:
    """Remove a document from one of the in-memory collections."""
    canonical_name = _COLLECTION_ALIASES.get(collection.strip().lower())
    if canonical_name is None:
        raise HTTPException(status_code=404, detail="Unsupported mock data collection")

    try:
        await get_mock_store().delete(canonical_name, record_id)
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail="Record not found") from exc

    return {"status": "deleted", "collection": canonical_name, "record_id": record_id}
