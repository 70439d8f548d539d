from fastapi import APIRouter, Depends, HTTPException

from gst_billing.dependencies.services import get_receiver_service, require_api_key
from gst_billing.schemas.receiver import (
    Receiver,
    ReceiverCreate,
    ReceiverListRequest,
    ReceiverListResponse,
    ReceiverLookupRequest,
    ReceiverUpdateRequest,
)
from gst_billing.services import ReceiverService
from gst_billing.services.exceptions import ServiceError

router = APIRouter()


@router.post("/list", response_model=ReceiverListResponse)
async def list_receivers(
    req: ReceiverListRequest,
    service: ReceiverService = Depends(get_receiver_service),
):
    try:
        return await service.list(req.query)
    except ServiceError as exc:
        raise HTTPException(status_code=exc.http_status, detail=str(exc)) from exc


@router.post("/get", response_model=Receiver)
async def get_receiver(
    req: ReceiverLookupRequest,
    service: ReceiverService = Depends(get_receiver_service),
):
    try:
        return await service.get(req.receiver_id)
    except ServiceError as exc:
        raise HTTPException(status_code=exc.http_status, detail=str(exc)) from exc


@router.post("/create", response_model=Receiver, dependencies=[Depends(require_api_key)])
async def create_receiver(
    req: ReceiverCreate,
    service: ReceiverService = Depends(get_receiver_service),
):
    try:
        return await service.create(req)
    except ServiceError as exc:
        raise HTTPException(status_code=exc.http_status, detail=str(exc)) from exc


@router.post("/update", response_model=Receiver, dependencies=[Depends(require_api_key)])
async def update_receiver(
    req: ReceiverUpdateRequest,
    service: ReceiverService = Depends(get_receiver_service),
):
    try:
        return await service.update(req.receiver_id, req.patch)
    except ServiceError as exc:
        raise HTTPException(status_code=exc.http_status, detail=str(exc)) from exc


@router.post("/delete", dependencies=[Depends(require_api_key)])
async def delete_receiver(
    req: ReceiverLookupRequest,
    service: ReceiverService = Depends(get_receiver_service),
):
    try:
        await service.delete(req.receiver_id)
    except ServiceError as exc:
        raise HTTPException(status_code=exc.http_status, detail=str(exc)) from exc
    return {"status": "deleted", "receiver_id": req.receiver_id}
