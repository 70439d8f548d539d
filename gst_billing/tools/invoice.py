from fastapi import APIRouter, Depends, HTTPException

from gst_billing.dependencies.services import get_invoice_service, require_api_key
from gst_billing.schemas.billing import (
    Invoice,
    InvoiceListRequest,
    InvoiceListResponse,
    InvoiceLookupRequest,
    InvoiceStatusRequest,
    InvoiceVerification,
)
from gst_billing.services import InvoiceService
from gst_billing.services.exceptions import ServiceError

router = APIRouter()


@router.post("/list", response_model=InvoiceListResponse)
async def list_invoices(
    req: InvoiceListRequest,
    service: InvoiceService = Depends(get_invoice_service),
):
    try:
        return await service.list(req)
    except ServiceError as exc:
        raise HTTPException(status_code=exc.http_status, detail=str(exc)) from exc


@router.post("/get", response_model=Invoice)
async def get_invoice(
    req: InvoiceLookupRequest,
    service: InvoiceService = Depends(get_invoice_service),
):
    try:
        return await service.get(req.invoice_id)
    except ServiceError as exc:
        raise HTTPException(status_code=exc.http_status, detail=str(exc)) from exc


@router.post("/set-status", response_model=Invoice, dependencies=[Depends(require_api_key)])
async def set_invoice_status(
    req: InvoiceStatusRequest,
    service: InvoiceService = Depends(get_invoice_service),
):
    try:
        return await service.update_status(req)
    except ServiceError as exc:
        raise HTTPException(status_code=exc.http_status, detail=str(exc)) from exc


@router.post("/delete", dependencies=[Depends(require_api_key)])
async def delete_invoice(
    req: InvoiceLookupRequest,
    service: InvoiceService = Depends(get_invoice_service),
):
    try:
        await service.delete(req.invoice_id)
    except ServiceError as exc:
        raise HTTPException(status_code=exc.http_status, detail=str(exc)) from exc
    return {"status": "deleted", "invoice_id": req.invoice_id}


@router.post("/verify", response_model=InvoiceVerification)
async def verify_invoice(
    req: InvoiceLookupRequest,
    service: InvoiceService = Depends(get_invoice_service),
):
    try:
        return await service.verify(req.invoice_id)
    except ServiceError as exc:
        raise HTTPException(status_code=exc.http_status, detail=str(exc)) from exc
