from __future__ import annotations

import copy
import itertools
from typing import Any, Dict, Iterable, List, Optional

from gst_billing.services.exceptions import NotFoundError
from gst_billing.services.store import INVOICES, ITEMS, RECEIVERS


class _BaseRepository:
    def __init__(self, prefix: str) -> None:
        self._prefix = prefix
        self._counter = itertools.count(1)

    def _next_id(self) -> str:
        return f"{self._prefix}-{next(self._counter):05d}"


class DocumentCollection(_BaseRepository):
    """Insertion-ordered records of one collection."""

    def __init__(self, name: str, prefix: str) -> None:
        super().__init__(prefix)
        self.name = name
        self._records: Dict[str, Dict[str, Any]] = {}

    def all(self) -> List[Dict[str, Any]]:
        return [self._with_id(record_id, record) for record_id, record in self._records.items()]

    def get(self, record_id: str) -> Optional[Dict[str, Any]]:
        record = self._records.get(record_id)
        return self._with_id(record_id, record) if record is not None else None

    def insert(self, record: Dict[str, Any]) -> str:
        record_id = self._next_id()
        stored = copy.deepcopy(dict(record))
        stored.pop("id", None)
        self._records[record_id] = stored
        return record_id

    def merge(self, record_id: str, partial: Dict[str, Any]) -> None:
        record = self._records.get(record_id)
        if record is None:
            raise NotFoundError(f"{self.name} record {record_id} not found")
        changes = copy.deepcopy(dict(partial))
        changes.pop("id", None)
        record.update(changes)

    def remove(self, record_id: str) -> None:
        if self._records.pop(record_id, None) is None:
            raise NotFoundError(f"{self.name} record {record_id} not found")

    def __len__(self) -> int:
        return len(self._records)

    @staticmethod
    def _with_id(record_id: str, record: Dict[str, Any]) -> Dict[str, Any]:
        data = copy.deepcopy(record)
        data["id"] = record_id
        return data


_SEED_ITEMS: List[Dict[str, Any]] = [
    {
        "name": "Wild Forest Honey",
        "weight": 500,
        "weight_unit": "g",
        "price": "240.00",
        "mrp": "260.00",
        "hsn_code": "0409",
        "gst_rate": "5",
    },
    {
        "name": "Wild Forest Honey",
        "weight": 1,
        "weight_unit": "kg",
        "price": "450.00",
        "mrp": "495.00",
        "hsn_code": "0409",
        "gst_rate": "5",
    },
    {
        "name": "Cow Ghee",
        "weight": 500,
        "weight_unit": "ml",
        "price": "380.00",
        "mrp": "425.00",
        "hsn_code": "0405",
        "gst_rate": "12",
    },
    {
        "name": "Cold Pressed Groundnut Oil",
        "weight": 1,
        "weight_unit": "l",
        "price": "310.00",
        "hsn_code": "1508",
        "gst_rate": "5",
    },
    {
        "name": "Mango Pickle",
        "weight": 250,
        "weight_unit": "g",
        "price": "120.00",
        "mrp": "135.00",
        "hsn_code": "2001",
        "gst_rate": "12",
    },
    {
        "name": "Jaggery Powder",
        "weight": 1,
        "weight_unit": "kg",
        "price": "95.00",
        "hsn_code": "1701",
        "gst_rate": None,
    },
]


class MockDocumentStore:
    """In-memory document store used when no remote store is configured."""

    def __init__(self, *, seed_catalog: bool = True) -> None:
        self._collections: Dict[str, DocumentCollection] = {
            ITEMS: DocumentCollection(ITEMS, "ITEM"),
            RECEIVERS: DocumentCollection(RECEIVERS, "RCV"),
            INVOICES: DocumentCollection(INVOICES, "INV"),
        }
        if seed_catalog:
            self._seed(ITEMS, _SEED_ITEMS)

    def _seed(self, collection: str, records: Iterable[Dict[str, Any]]) -> None:
        target = self.collection(collection)
        for record in records:
            target.insert(record)

    def collection(self, name: str) -> DocumentCollection:
        try:
            return self._collections[name]
        except KeyError:
            raise NotFoundError(f"Unknown collection '{name}'") from None

    @property
    def items(self) -> DocumentCollection:
        return self._collections[ITEMS]

    @property
    def receivers(self) -> DocumentCollection:
        return self._collections[RECEIVERS]

    @property
    def invoices(self) -> DocumentCollection:
        return self._collections[INVOICES]

    async def fetch_all(self, collection: str) -> List[Dict[str, Any]]:
        return self.collection(collection).all()

    async def get(self, collection: str, record_id: str) -> Optional[Dict[str, Any]]:
        return self.collection(collection).get(record_id)

    async def save(self, collection: str, record: Dict[str, Any]) -> str:
        return self.collection(collection).insert(record)

    async def update(
        self, collection: str, record_id: str, partial: Dict[str, Any]
    ) -> None:
        self.collection(collection).merge(record_id, partial)

    async def delete(self, collection: str, record_id: str) -> None:
        self.collection(collection).remove(record_id)


_mock_store: Optional[MockDocumentStore] = None


def get_mock_store() -> MockDocumentStore:
    global _mock_store
    if _mock_store is None:
        from gst_billing.config import get_settings

        _mock_store = MockDocumentStore(seed_catalog=get_settings().seed_catalog)
    return _mock_store


def reset_mock_store() -> None:
    global _mock_store
    _mock_store = None
