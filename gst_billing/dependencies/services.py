from __future__ import annotations

from functools import lru_cache
from typing import Optional

from fastapi import Depends, Header, HTTPException

from gst_billing.clients.document_store import DocumentStoreClient
from gst_billing.config import Settings, get_settings
from gst_billing.services import (
    BillingService,
    CatalogService,
    InvoiceService,
    ReceiverService,
)
from gst_billing.services.bill import CurrentBill


@lru_cache(maxsize=1)
def get_document_client_cached() -> DocumentStoreClient:
    settings = get_settings()
    return DocumentStoreClient(
        settings.document_store_base_url,
        timeout=settings.document_store_timeout,
        use_mock_data=settings.use_mock_data,
        token=settings.document_store_token,
    )


def get_document_client(settings: Settings = Depends(get_settings)) -> DocumentStoreClient:
    return get_document_client_cached()


@lru_cache(maxsize=1)
def get_current_bill() -> CurrentBill:
    """The single bill owned by this process's billing session."""
    return CurrentBill(get_settings().price_convention)


def require_api_key(
    x_api_key: Optional[str] = Header(None),
    settings: Settings = Depends(get_settings),
) -> bool:
    expected = settings.api_key
    if expected and x_api_key != expected:
        raise HTTPException(status_code=401, detail="Invalid or missing API key")
    return True


def get_catalog_service(
    client: DocumentStoreClient = Depends(get_document_client),
) -> CatalogService:
    return CatalogService(client)


def get_receiver_service(
    client: DocumentStoreClient = Depends(get_document_client),
) -> ReceiverService:
    return ReceiverService(client)


def get_invoice_service(
    client: DocumentStoreClient = Depends(get_document_client),
) -> InvoiceService:
    return InvoiceService(client)


def get_billing_service(
    client: DocumentStoreClient = Depends(get_document_client),
) -> BillingService:
    return BillingService(client, bill=get_current_bill())
