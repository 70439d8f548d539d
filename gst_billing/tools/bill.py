from fastapi import APIRouter, Depends, HTTPException

from gst_billing.dependencies.services import get_billing_service, require_api_key
from gst_billing.schemas.billing import (
    AddItemRequest,
    BillView,
    GenerateInvoiceRequest,
    Invoice,
    RemoveItemRequest,
    UpdateQuantityRequest,
)
from gst_billing.services import BillingService
from gst_billing.services.exceptions import ServiceError

router = APIRouter()


@router.post("/view", response_model=BillView)
async def view_bill(service: BillingService = Depends(get_billing_service)):
    return service.view()


@router.post("/add", response_model=BillView)
async def add_to_bill(
    req: AddItemRequest,
    service: BillingService = Depends(get_billing_service),
):
    try:
        await service.add_item(req.item_id, req.quantity)
    except ServiceError as exc:
        raise HTTPException(status_code=exc.http_status, detail=str(exc)) from exc
    return service.view()


@router.post("/remove", response_model=BillView)
async def remove_from_bill(
    req: RemoveItemRequest,
    service: BillingService = Depends(get_billing_service),
):
    return service.remove_item(req.item_id)


@router.post("/update-quantity", response_model=BillView)
async def update_quantity(
    req: UpdateQuantityRequest,
    service: BillingService = Depends(get_billing_service),
):
    try:
        return service.update_quantity(req.item_id, req.quantity)
    except ServiceError as exc:
        raise HTTPException(status_code=exc.http_status, detail=str(exc)) from exc


@router.post("/clear", response_model=BillView)
async def clear_bill(service: BillingService = Depends(get_billing_service)):
    return service.clear()


@router.post(
    "/generate-invoice",
    response_model=Invoice,
    dependencies=[Depends(require_api_key)],
)
async def generate_invoice(
    req: GenerateInvoiceRequest,
    service: BillingService = Depends(get_billing_service),
):
    try:
        return await service.generate_invoice(req)
    except ServiceError as exc:
        raise HTTPException(status_code=exc.http_status, detail=str(exc)) from exc
