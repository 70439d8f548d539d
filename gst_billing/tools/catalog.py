from fastapi import APIRouter, Depends, HTTPException

from gst_billing.dependencies.services import get_catalog_service, require_api_key
from gst_billing.schemas.catalog import (
    ItemCreate,
    ItemGroupsResponse,
    ItemListRequest,
    ItemListResponse,
    ItemLookupRequest,
    ItemUpdateRequest,
    ItemVariant,
)
from gst_billing.services import CatalogService
from gst_billing.services.exceptions import ServiceError

router = APIRouter()


@router.post("/list", response_model=ItemListResponse)
async def list_items(
    req: ItemListRequest,
    service: CatalogService = Depends(get_catalog_service),
):
    try:
        return await service.list(req.query)
    except ServiceError as exc:
        raise HTTPException(status_code=exc.http_status, detail=str(exc)) from exc


@router.post("/get", response_model=ItemVariant)
async def get_item(
    req: ItemLookupRequest,
    service: CatalogService = Depends(get_catalog_service),
):
    try:
        return await service.get(req.item_id)
    except ServiceError as exc:
        raise HTTPException(status_code=exc.http_status, detail=str(exc)) from exc


@router.post("/grouped", response_model=ItemGroupsResponse)
async def grouped_items(
    service: CatalogService = Depends(get_catalog_service),
):
    try:
        return ItemGroupsResponse(groups=await service.grouped())
    except ServiceError as exc:
        raise HTTPException(status_code=exc.http_status, detail=str(exc)) from exc


@router.post("/create", response_model=ItemVariant, dependencies=[Depends(require_api_key)])
async def create_item(
    req: ItemCreate,
    service: CatalogService = Depends(get_catalog_service),
):
    try:
        return await service.create(req)
    except ServiceError as exc:
        raise HTTPException(status_code=exc.http_status, detail=str(exc)) from exc


@router.post("/update", response_model=ItemVariant, dependencies=[Depends(require_api_key)])
async def update_item(
    req: ItemUpdateRequest,
    service: CatalogService = Depends(get_catalog_service),
):
    try:
        return await service.update(req.item_id, req.patch)
    except ServiceError as exc:
        raise HTTPException(status_code=exc.http_status, detail=str(exc)) from exc


@router.post("/delete", dependencies=[Depends(require_api_key)])
async def delete_item(
    req: ItemLookupRequest,
    service: CatalogService = Depends(get_catalog_service),
):
    try:
        await service.delete(req.item_id)
    except ServiceError as exc:
        raise HTTPException(status_code=exc.http_status, detail=str(exc)) from exc
    return {"status": "deleted", "item_id": req.item_id}
