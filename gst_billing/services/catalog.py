from __future__ import annotations

import logging
from typing import Dict, List, Optional

from pydantic import ValidationError as PydanticValidationError

from gst_billing.schemas.catalog import ItemCreate, ItemListResponse, ItemPatch, ItemVariant
from gst_billing.services.base import StoreBackedService
from gst_billing.services.exceptions import NotFoundError, ValidationError
from gst_billing.services.store import ITEMS

logger = logging.getLogger(__name__)


class CatalogService(StoreBackedService):
    """Service responsible for the item catalog."""

    async def list(self, query: Optional[str] = None) -> ItemListResponse:
        logger.info("Listing catalog items (query=%r)", query)
        store = await self._documents()
        with self._store_errors("list catalog items"):
            records = await store.fetch_all(ITEMS)
            items = [ItemVariant.model_validate(record) for record in records]

        if query:
            needle = query.strip().lower()
            items = [item for item in items if needle in item.name.lower()]
        return ItemListResponse(total=len(items), items=items)

    async def get(self, item_id: str) -> ItemVariant:
        store = await self._documents()
        with self._store_errors("fetch catalog item"):
            record = await store.get(ITEMS, item_id)
            if record is None:
                raise NotFoundError(f"Item '{item_id}' not found in catalog")
            record.setdefault("id", item_id)
            return ItemVariant.model_validate(record)

    async def create(self, request: ItemCreate) -> ItemVariant:
        logger.info("Creating catalog item %s", request.name)
        store = await self._documents()
        with self._store_errors("create catalog item"):
            item_id = await store.save(ITEMS, request.model_dump(mode="json"))
        return ItemVariant(id=item_id, **request.model_dump())

    async def update(self, item_id: str, patch: ItemPatch) -> ItemVariant:
        changes = patch.model_dump(mode="json", exclude_unset=True)
        logger.info("Updating catalog item %s fields=%s", item_id, sorted(changes))
        if changes:
            current = await self.get(item_id)
            merged = current.model_dump(mode="json")
            merged.update(changes)
            try:
                ItemVariant.model_validate(merged)
            except PydanticValidationError as exc:
                raise ValidationError(
                    f"Update would leave item '{item_id}' invalid", cause=exc
                ) from exc
            store = await self._documents()
            with self._store_errors("update catalog item"):
                await store.update(ITEMS, item_id, changes)
        return await self.get(item_id)

    async def delete(self, item_id: str) -> None:
        logger.info("Deleting catalog item %s", item_id)
        store = await self._documents()
        with self._store_errors("delete catalog item"):
            await store.delete(ITEMS, item_id)

    async def grouped(self) -> Dict[str, List[ItemVariant]]:
        """Group variants (e.g. 500 g and 1 kg packs) under their product name."""
        response = await self.list()
        groups: Dict[str, List[ItemVariant]] = {}
        for item in response.items:
            groups.setdefault(item.name.lower(), []).append(item)
        return groups
