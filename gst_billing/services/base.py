from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator

from gst_billing.clients.document_store import DocumentStoreClient
from gst_billing.services.exceptions import PersistenceError, ServiceError
from gst_billing.services.mock_store import get_mock_store
from gst_billing.services.store import DocumentStore

logger = logging.getLogger(__name__)


class StoreBackedService:
    """Resolves the document store a service reads from and writes to.

    In mock mode the shared in-memory store is used unless one is injected;
    otherwise the HTTP client itself is the store.
    """

    def __init__(
        self,
        client: DocumentStoreClient,
        *,
        store: DocumentStore | None = None,
    ) -> None:
        self._client = client
        self._store = store
        if self._store is None:
            self._store = get_mock_store() if self._client.use_mock_data else client

    async def _documents(self) -> DocumentStore:
        if self._client.use_mock_data:
            await self._client.simulate_latency()
        return self._store

    @contextmanager
    def _store_errors(self, action: str) -> Iterator[None]:
        try:
            yield
        except ServiceError:
            raise
        except Exception as exc:  # pragma: no cover
            logger.exception("Unexpected error while trying to %s", action)
            raise PersistenceError(f"Failed to {action}", cause=exc) from exc
