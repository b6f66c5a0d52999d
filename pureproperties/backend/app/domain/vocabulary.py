# app/domain/vocabulary.py
"""Filter dropdown values (types, subtypes per type, municipalities) from raw Property rows."""
from __future__ import annotations

from collections.abc import Iterable
from typing import Any

ANY = "Any"


def build_filter_vocabulary(
    type_rows: Iterable[dict[str, Any]],
    city_rows: Iterable[dict[str, Any]],
) -> dict[str, Any]:
    # Types and subtypes are kept byte-exact ("Semi-Detached " has a real
    # trailing space upstream); only city names are trimmed.
    subtypes: dict[str, set[str]] = {}
    for row in type_rows:
        ptype = row.get("PropertyType")
        if not isinstance(ptype, str) or not ptype:
            continue
        bucket = subtypes.setdefault(ptype, set())
        sub = row.get("PropertySubType")
        if isinstance(sub, str) and sub:
            bucket.add(sub)

    cities: set[str] = set()
    for row in city_rows:
        city = row.get("City")
        if isinstance(city, str) and city.strip():
            cities.add(city.strip())
    cities.discard(ANY)

    return {
        "property_types": [ANY, *sorted(subtypes)],
        "property_sub_types": {t: [ANY, *sorted(subs)] for t, subs in sorted(subtypes.items())},
        "municipalities": [ANY, *sorted(cities, key=str.casefold)],
    }
