from __future__ import annotations

import logging
from decimal import InvalidOperation
from typing import Dict, Iterator, Optional, Tuple

from gst_billing.schemas.billing import BillLine, BillTotals, PriceConvention
from gst_billing.schemas.catalog import ItemVariant
from gst_billing.services.exceptions import ValidationError
from gst_billing.services.tax import HUNDRED, ZERO, compute_line, compute_totals, to_decimal

logger = logging.getLogger(__name__)


def _check_quantity(quantity) -> int:
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        raise ValidationError(f"Quantity must be a whole number, got {quantity!r}")
    return quantity


def _check_pricing(item: ItemVariant) -> None:
    try:
        negative_price = to_decimal(item.price) < ZERO
        rate = None if item.gst_rate is None else to_decimal(item.gst_rate)
        rate_out_of_range = rate is not None and (rate < ZERO or rate > HUNDRED)
    except (InvalidOperation, ValueError) as exc:
        raise ValidationError(f"Item {item.id} has malformed pricing", cause=exc) from exc
    if negative_price:
        raise ValidationError(f"Item {item.id} has a negative price")
    if rate_out_of_range:
        raise ValidationError(
            f"Item {item.id} has a GST rate outside 0-100: {item.gst_rate}"
        )


class CurrentBill:
    """The in-progress bill: an insertion-ordered set of lines keyed by item id.

    Every method that changes a quantity rebuilds the affected line through
    :func:`compute_line`, so a line's ``total`` can never drift from its
    ``(price, quantity, gst_rate)``.
    """

    def __init__(self, convention: PriceConvention = PriceConvention.EXCLUSIVE) -> None:
        self.convention = PriceConvention(convention)
        self._lines: Dict[str, BillLine] = {}

    def _build_line(self, source, quantity: int) -> BillLine:
        amounts = compute_line(source.price, quantity, source.gst_rate, self.convention)
        return BillLine(
            id=source.id,
            name=source.name,
            weight=source.weight,
            weight_unit=source.weight_unit,
            price=source.price,
            mrp=source.mrp,
            hsn_code=source.hsn_code,
            gst_rate=source.gst_rate,
            quantity=quantity,
            total=amounts.total,
        )

    def add_item(self, item: ItemVariant, quantity: int = 1) -> BillLine:
        quantity = _check_quantity(quantity)
        if quantity <= 0:
            raise ValidationError(f"Quantity to add must be positive, got {quantity}")
        _check_pricing(item)

        existing = self._lines.get(item.id)
        if existing is not None:
            line = self._build_line(existing, existing.quantity + quantity)
        else:
            line = self._build_line(item, quantity)
        # dict assignment keeps the original position of an existing key
        self._lines[item.id] = line
        logger.debug("Bill line %s now has quantity %s", item.id, line.quantity)
        return line

    def remove_item(self, item_id: str) -> None:
        if self._lines.pop(item_id, None) is not None:
            logger.debug("Removed bill line %s", item_id)

    def update_quantity(self, item_id: str, new_quantity: int) -> Optional[BillLine]:
        new_quantity = _check_quantity(new_quantity)
        if new_quantity <= 0:
            self.remove_item(item_id)
            return None
        existing = self._lines.get(item_id)
        if existing is None:
            return None
        line = self._build_line(existing, new_quantity)
        self._lines[item_id] = line
        return line

    def clear(self) -> None:
        self._lines.clear()

    def get(self, item_id: str) -> Optional[BillLine]:
        return self._lines.get(item_id)

    @property
    def lines(self) -> Tuple[BillLine, ...]:
        return tuple(self._lines.values())

    @property
    def is_empty(self) -> bool:
        return not self._lines

    def totals(self) -> BillTotals:
        return compute_totals(self._lines.values(), self.convention)

    def __len__(self) -> int:
        return len(self._lines)

    def __iter__(self) -> Iterator[BillLine]:
        return iter(self.lines)

    def __contains__(self, item_id: object) -> bool:
        return item_id in self._lines
