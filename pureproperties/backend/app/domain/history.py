# app/domain/history.py
"""
historytransactional rows -> price history entries for the detail page.

Only rows whose PreviousValue reads like a money amount ('$1,250,000') carry a
price; status-only changes are dropped.
"""
from __future__ import annotations

import re
from collections.abc import Iterable
from typing import Any

_LEADING_NUMBER = re.compile(r"^\s*[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?")

DEFAULT_EVENT = "Status Change"


def parse_history_price(previous_value: Any) -> float | None:
    if not isinstance(previous_value, str) or "$" not in previous_value:
        return None
    m = _LEADING_NUMBER.match(previous_value.replace("$", "").replace(",", ""))
    if not m:
        return None
    return float(m.group(0))


def shape_history(rows: Iterable[dict[str, Any]]) -> list[dict[str, Any]]:
    out: list[dict[str, Any]] = []
    for row in rows:
        price = parse_history_price(row.get("PreviousValue"))
        if price is None:
            continue
        out.append(
            {
                "dateStart": row.get("OriginalEntryTimestamp"),
                "dateEnd": row.get("ModificationTimestamp"),
                "price": price,
                "event": row.get("PreviousLabel") or DEFAULT_EVENT,
                "listingId": row.get("ResourceRecordKey"),
            }
        )
    return out
