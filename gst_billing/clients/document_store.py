from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Optional

import httpx

from gst_billing.services.exceptions import NotFoundError, PersistenceError

logger = logging.getLogger(__name__)


class DocumentStoreClient:
    """Async HTTP client for the remote document store.

    Documents live under ``/collections/{collection}/documents``. When no base
    URL is configured the client runs in mock mode and services fall back to
    the in-memory store.
    """

    def __init__(
        self,
        base_url: str | None,
        *,
        timeout: float = 10.0,
        use_mock_data: bool = True,
        token: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = str(base_url).rstrip("/") if base_url else None
        self._timeout = timeout
        self.use_mock_data = use_mock_data or not self._base_url
        self._headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        if token:
            self._headers["Authorization"] = f"Bearer {token}"
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    def _build_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self._base_url,
            timeout=self._timeout,
            headers=self._headers,
            transport=self._transport,
        )

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _ensure_client(self) -> httpx.AsyncClient:
        if self.use_mock_data or not self._base_url:
            raise RuntimeError("HTTP client requested while running in mock mode")
        if self._client is None:
            self._client = self._build_client()
        return self._client

    async def _request(
        self, method: str, path: str, *, json: Dict[str, Any] | None = None
    ) -> httpx.Response:
        client = await self._ensure_client()
        try:
            response = await client.request(method, path, json=json)
            response.raise_for_status()
            return response
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            if status == 404:
                raise NotFoundError(f"Document not found at {path}", cause=exc) from exc
            logger.exception("Document store returned error %s", status)
            raise PersistenceError(
                "Document store returned an error response",
                status_code=status,
                cause=exc,
            ) from exc
        except httpx.RequestError as exc:
            logger.exception("Unable to reach document store: %s", exc)
            raise PersistenceError(
                "Unable to reach document store", status_code=None, cause=exc
            ) from exc

    @staticmethod
    def _path(collection: str, record_id: str | None = None) -> str:
        path = f"/collections/{collection}/documents"
        return f"{path}/{record_id}" if record_id else path

    async def fetch_all(self, collection: str) -> List[Dict[str, Any]]:
        response = await self._request("GET", self._path(collection))
        return list(response.json().get("documents", []))

    async def get(self, collection: str, record_id: str) -> Optional[Dict[str, Any]]:
        try:
            response = await self._request("GET", self._path(collection, record_id))
        except NotFoundError:
            return None
        return response.json()

    async def save(self, collection: str, record: Dict[str, Any]) -> str:
        response = await self._request("POST", self._path(collection), json=record)
        record_id = response.json().get("id")
        if not record_id:
            raise PersistenceError("Document store did not return a document id")
        return str(record_id)

    async def update(
        self, collection: str, record_id: str, partial: Dict[str, Any]
    ) -> None:
        await self._request("PATCH", self._path(collection, record_id), json=partial)

    async def delete(self, collection: str, record_id: str) -> None:
        await self._request("DELETE", self._path(collection, record_id))

    async def simulate_latency(self) -> None:
        """Allow services to await for latency even when mocking responses."""

        await asyncio.sleep(0)
