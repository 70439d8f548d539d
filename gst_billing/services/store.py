from __future__ import annotations

from typing import Any, Dict, List, Optional, Protocol

ITEMS = "items"
RECEIVERS = "receivers"
INVOICES = "invoices"


class DocumentStore(Protocol):
    """Persistence collaborator shared by the in-memory store and the HTTP client.

    Records are JSON-safe dictionaries that carry their id under ``"id"`` when
    read back. Implementations raise ``PersistenceError`` on I/O failure and
    ``NotFoundError`` when updating or deleting an unknown id.
    """

    async def fetch_all(self, collection: str) -> List[Dict[str, Any]]:
        ...

    async def get(self, collection: str, record_id: str) -> Optional[Dict[str, Any]]:
        ...

    async def save(self, collection: str, record: Dict[str, Any]) -> str:
        ...

    async def update(
        self, collection: str, record_id: str, partial: Dict[str, Any]
    ) -> None:
        ...

    async def delete(self, collection: str, record_id: str) -> None:
        ...
