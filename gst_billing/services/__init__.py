"""Service package public API definitions.

Service implementations are imported lazily. ``gst_billing.clients`` imports
``gst_billing.services.exceptions``, which executes this module first; eager
imports here would pull the services (and therefore the client) back in and
trigger a circular import.
"""

from __future__ import annotations

from importlib import import_module
from typing import TYPE_CHECKING, Any

__all__ = [
    "BillingService",
    "CatalogService",
    "InvoiceService",
    "ReceiverService",
]

_SERVICE_MODULES = {
    "BillingService": "billing",
    "CatalogService": "catalog",
    "InvoiceService": "invoice",
    "ReceiverService": "receivers",
}


def __getattr__(name: str) -> Any:
    if name not in _SERVICE_MODULES:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")

    module = import_module(f".{_SERVICE_MODULES[name]}", __name__)
    attr = getattr(module, name)
    globals()[name] = attr
    return attr


if TYPE_CHECKING:  # pragma: no cover - import for static analysis only
    from .billing import BillingService as BillingService
    from .catalog import CatalogService as CatalogService
    from .invoice import InvoiceService as InvoiceService
    from .receivers import ReceiverService as ReceiverService
