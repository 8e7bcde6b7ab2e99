"""Display formatting shared by views and exports."""
from __future__ import annotations

import math
from typing import Mapping, Optional, Union

EMPTY = "—"

Number = Union[int, float]


# PUBLIC_INTERFACE
def format_count(value: Optional[Number], show_zero: bool = False) -> str:
    """
    Format a piece count for display.

    None renders as an em dash; zero renders as an em dash unless show_zero is set.
    Other values are rounded to integers with thousands separators.
    """
    if value is None or (isinstance(value, float) and math.isnan(value)):
        return EMPTY
    if value == 0 and not show_zero:
        return EMPTY
    return f"{int(round(value)):,}"


def format_percent(value: Optional[Number], digits: int = 1) -> str:
    if value is None:
        return EMPTY
    return f"{value:.{digits}f}%"


def format_external_wip(wip: Optional[Mapping[str, Number]]) -> str:
    """'plating: 40 / buffing: 10' style summary of pieces at external partners."""
    if not wip:
        return "-"
    parts = [f"{proc}: {qty}" for proc, qty in wip.items() if qty]
    return " / ".join(parts) if parts else "-"


# PUBLIC_INTERFACE
def format_compact_inr(value: Optional[Number]) -> str:
    """Compact rupee amount: crore (Cr), lakh (L) and thousand (K) units."""
    v = float(value or 0)
    if v >= 10_000_000:
        return f"₹{v / 10_000_000:.1f}Cr"
    if v >= 100_000:
        return f"₹{v / 100_000:.1f}L"
    if v >= 1_000:
        return f"₹{v / 1_000:.0f}K"
    return f"₹{v:.0f}"


def humanize_key(key: Optional[str]) -> str:
    if not key:
        return ""
    return key.replace("_", " ").title()
