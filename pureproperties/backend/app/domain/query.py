# app/domain/query.py
from __future__ import annotations

import logging
import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from .parsing import get_first, to_float, to_int

log = logging.getLogger(__name__)

DEFAULT_SORT = "ModificationTimestamp desc,ListingKey desc"
DEFAULT_PAGE_SIZE = 50


@dataclass(frozen=True)
class BoundingBox:
    north: float
    south: float
    east: float
    west: float


@dataclass(frozen=True)
class ListingQuery:
    """One inbound search, normalised. Postal-code and bbox modes never coexist."""

    page: int = 1
    limit: int = DEFAULT_PAGE_SIZE
    sort_by: str = DEFAULT_SORT
    postal_code: str | None = None
    bbox: BoundingBox | None = None
    params: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.bbox is not None and self.postal_code is not None:
            raise ValueError("postal_code and bbox are mutually exclusive")

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.limit

    @property
    def geo_mode(self) -> str | None:
        if self.bbox is not None:
            return "bbox"
        if self.postal_code is not None:
            return "postal"
        return None

    @classmethod
    def from_params(cls, params: Mapping[str, str], *, default_limit: int = DEFAULT_PAGE_SIZE) -> "ListingQuery":
        page = to_int(params.get("page"))
        if page is None or page < 1:
            page = 1

        limit = to_int(params.get("limit"))
        if limit is None or limit < 1:
            limit = default_limit

        sort_by = (params.get("sortBy") or "").strip() or DEFAULT_SORT

        bbox = _parse_bbox(params)
        postal_code = None
        if bbox is None:
            raw = get_first(params, "postalCode", "PostalCode")
            postal_code = raw.strip() if raw else None

        return cls(
            page=page,
            limit=limit,
            sort_by=sort_by,
            postal_code=postal_code,
            bbox=bbox,
            params=MappingProxyType(dict(params)),
        )


def _parse_bbox(params: Mapping[str, str]) -> BoundingBox | None:
    raw = {k: params.get(k) for k in ("north", "south", "east", "west")}
    if not all(v is not None and str(v).strip() for v in raw.values()):
        return None

    coords = {k: to_float(v) for k, v in raw.items()}
    if any(v is None or not math.isfinite(v) for v in coords.values()):
        log.warning("Ignoring malformed bounding box: %s", raw)
        return None
    return BoundingBox(**coords)  # type: ignore[arg-type]
