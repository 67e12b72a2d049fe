# src/ostrich/domain/formatting.py
from __future__ import annotations

from typing import Any, Literal

PLACEHOLDER = "N/A"

ValueKind = Literal["text", "money", "count", "percent"]


def _money(v: float) -> str:
    s = f"{v:,.2f}"
    if s.endswith(".00"):
        s = s[:-3]
    return f"${s}"


def _count(v: float) -> str:
    f = float(v)
    return str(int(f)) if f.is_integer() else f"{f:g}"


def format_optional(value: Any, kind: ValueKind = "text") -> str:
    """
    Render an optional value for the digest, or the shared placeholder.

    money   -> "$290,000" / "$157.08"
    count   -> "3" / "2.5"
    percent -> "6.08%"
    text    -> str(value); blank strings count as missing
    """
    if value is None:
        return PLACEHOLDER
    if kind == "text":
        s = str(value).strip()
        return s or PLACEHOLDER
    try:
        f = float(value)
    except (TypeError, ValueError):
        return PLACEHOLDER
    if kind == "money":
        return _money(f)
    if kind == "count":
        return _count(f)
    if kind == "percent":
        return f"{f:.2f}%"
    raise ValueError(f"unknown value kind: {kind}")
