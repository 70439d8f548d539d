"""GST arithmetic for bill lines and bill totals.

Amounts are ``Decimal`` and are never rounded here; rounding to paise is a
presentation concern (see :func:`money`).
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional

from gst_billing.schemas.billing import BillLine, BillTotals, PriceConvention

ZERO = Decimal("0")
HUNDRED = Decimal("100")
TWO = Decimal("2")
PAISA = Decimal("0.01")


@dataclass(frozen=True)
class LineAmounts:
    base: Decimal
    tax: Decimal
    total: Decimal
    cgst: Decimal
    sgst: Decimal


def to_decimal(value) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def effective_rate(gst_rate) -> Decimal:
    """Return the GST percentage, treating a missing rate as zero."""
    if gst_rate is None:
        return ZERO
    return to_decimal(gst_rate)


def half_rate(gst_rate) -> Decimal:
    """CGST (and SGST) percentage for a combined GST rate."""
    return effective_rate(gst_rate) / TWO


def compute_line(
    price,
    quantity: int,
    gst_rate=None,
    convention: PriceConvention = PriceConvention.EXCLUSIVE,
) -> LineAmounts:
    """Split a line into base, tax and total under ``convention``.

    Exclusive: ``base = price * quantity`` and tax is added on top.
    Inclusive: ``total = price * quantity`` and the base is backed out of it.
    Quantities and prices are not validated.
    """
    rate = effective_rate(gst_rate)
    gross = to_decimal(price) * to_decimal(quantity)

    if PriceConvention(convention) is PriceConvention.INCLUSIVE:
        total = gross
        if rate == ZERO:
            base = gross
        else:
            base = total / (1 + rate / HUNDRED)
        tax = total - base
    else:
        base = gross
        tax = base * rate / HUNDRED
        total = base + tax

    half = tax / TWO
    return LineAmounts(base=base, tax=tax, total=total, cgst=half, sgst=half)


def line_amounts(
    line: BillLine, convention: PriceConvention = PriceConvention.EXCLUSIVE
) -> LineAmounts:
    return compute_line(line.price, line.quantity, line.gst_rate, convention)


def compute_totals(
    lines: Iterable[BillLine],
    convention: PriceConvention = PriceConvention.EXCLUSIVE,
) -> BillTotals:
    """Fold bill lines into subtotal, CGST, SGST and grand total.

    Lines are summed in bill order so repeated calls give identical results.
    """
    subtotal = ZERO
    cgst = ZERO
    sgst = ZERO
    for line in lines:
        amounts = line_amounts(line, convention)
        subtotal += amounts.base
        cgst += amounts.cgst
        sgst += amounts.sgst
    return BillTotals(
        subtotal=subtotal, cgst=cgst, sgst=sgst, total=subtotal + cgst + sgst
    )


def money(value: Optional[Decimal]) -> Decimal:
    """Round an amount half-up to two decimal places for display."""
    return to_decimal(value or ZERO).quantize(PAISA, rounding=ROUND_HALF_UP)
