from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from gst_billing.schemas.receiver import (
    Receiver,
    ReceiverCreate,
    ReceiverListResponse,
    ReceiverPatch,
)
from gst_billing.services.base import StoreBackedService
from gst_billing.services.exceptions import NotFoundError
from gst_billing.services.store import RECEIVERS

logger = logging.getLogger(__name__)

_ADDRESS_FIELDS = ("billing_address", "shipping_address")


class ReceiverService(StoreBackedService):
    """Service responsible for the receiver (customer) directory."""

    async def list(self, query: Optional[str] = None) -> ReceiverListResponse:
        logger.info("Listing receivers (query=%r)", query)
        store = await self._documents()
        with self._store_errors("list receivers"):
            records = await store.fetch_all(RECEIVERS)
            receivers = [Receiver.from_record(record) for record in records]

        if query:
            needle = query.strip().lower()
            receivers = [
                receiver
                for receiver in receivers
                if needle in receiver.display_name.lower()
                or (receiver.gstin and needle in receiver.gstin.lower())
            ]
        return ReceiverListResponse(total=len(receivers), items=receivers)

    async def get(self, receiver_id: str) -> Receiver:
        store = await self._documents()
        with self._store_errors("fetch receiver"):
            record = await store.get(RECEIVERS, receiver_id)
            if record is None:
                raise NotFoundError(f"Receiver '{receiver_id}' not found")
            return Receiver.from_record(record, receiver_id)

    async def create(self, request: ReceiverCreate) -> Receiver:
        logger.info("Creating receiver %s", request.display_name)
        record = request.model_dump(mode="json")
        store = await self._documents()
        with self._store_errors("create receiver"):
            receiver_id = await store.save(RECEIVERS, record)
        return Receiver.from_record(record, receiver_id)

    async def save_transient(self, receiver: Receiver) -> Receiver:
        """Persist a receiver entered inline at invoice time."""
        logger.info("Saving inline receiver %s", receiver.display_name)
        record = receiver.model_dump(mode="json", exclude={"id"})
        store = await self._documents()
        with self._store_errors("save receiver"):
            receiver_id = await store.save(RECEIVERS, record)
        return receiver.model_copy(update={"id": receiver_id})

    async def update(self, receiver_id: str, patch: ReceiverPatch) -> Receiver:
        current = await self.get(receiver_id)
        changes: Dict[str, Any] = patch.model_dump(
            mode="json", exclude_unset=True, exclude=set(_ADDRESS_FIELDS)
        )
        for field in _ADDRESS_FIELDS:
            address_patch = getattr(patch, field)
            if address_patch is None:
                continue
            merged = getattr(current, field).model_dump(mode="json")
            merged.update(address_patch.model_dump(mode="json", exclude_unset=True))
            changes[field] = merged

        logger.info("Updating receiver %s fields=%s", receiver_id, sorted(changes))
        if not changes:
            return current

        store = await self._documents()
        with self._store_errors("update receiver"):
            await store.update(RECEIVERS, receiver_id, changes)
        record = current.model_dump(mode="json", exclude={"id"})
        record.update(changes)
        return Receiver.from_record(record, receiver_id)

    async def delete(self, receiver_id: str) -> None:
        logger.info("Deleting receiver %s", receiver_id)
        store = await self._documents()
        with self._store_errors("delete receiver"):
            await store.delete(RECEIVERS, receiver_id)
