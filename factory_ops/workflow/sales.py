"""
Sales order totals.

Line items are stored as a JSON array on the order. The stored total wins when it is
positive; older orders without one are totalled from their lines.
"""
from __future__ import annotations

from typing import Any, Iterable, Mapping, Optional


def line_amount(item: Mapping[str, Any]) -> float:
    """Stored line amount, or quantity x price per piece."""
    amount = item.get("line_amount")
    if amount is not None:
        return float(amount)
    return float(item.get("quantity") or 0) * float(item.get("price_per_pc") or 0)


# PUBLIC_INTERFACE
def order_total(total_amount: Optional[float], items: Optional[Iterable[Mapping[str, Any]]]) -> float:
    if total_amount and float(total_amount) > 0:
        return float(total_amount)
    return round(sum(line_amount(i) for i in items or () if isinstance(i, Mapping)), 2)


def ordered_pieces(items: Optional[Iterable[Mapping[str, Any]]]) -> int:
    return sum(int(i.get("quantity") or 0) for i in items or () if isinstance(i, Mapping))
