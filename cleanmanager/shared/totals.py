"""Line item totals shared by quotes and invoices"""

from collections.abc import Iterable
from typing import Optional


def round_money(value: Optional[float]) -> float:
    return round(float(value or 0), 2)


def line_amount(quantity: Optional[float], unit_price: Optional[float]) -> float:
    return round_money((quantity if quantity is not None else 1) * (unit_price or 0))


def calculate_totals(
    items: Iterable[dict],
    tax_rate: Optional[float] = 0,
    discount_amount: Optional[float] = 0,
) -> dict[str, float]:
    """
    subtotal = sum of item amounts
    tax      = taxable amount * tax_rate / 100
    total    = subtotal + tax - discount

    Each item needs an ``amount``; items with ``taxable`` False are left out of
    the taxable amount.
    """
    items = list(items)
    subtotal = sum(item["amount"] for item in items)
    taxable = sum(item["amount"] for item in items if item.get("taxable", True))
    tax_amount = taxable * (tax_rate or 0) / 100
    total = subtotal + tax_amount - (discount_amount or 0)
    return {
        "subtotal": round_money(subtotal),
        "tax_amount": round_money(tax_amount),
        "total": round_money(total),
    }
