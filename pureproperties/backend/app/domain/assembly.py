# app/domain/assembly.py
from __future__ import annotations

import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class Pagination:
    current_page: int
    total_pages: int
    total_count: int
    items_per_page: int
    has_more: bool


def shape_images(media: Sequence[Any]) -> list[dict[str, Any]]:
    return [{"MediaURL": m.get("MediaURL"), "Order": m.get("Order")} for m in media if isinstance(m, dict)]


def enrich_listings(
    listings: Sequence[dict[str, Any]],
    images: Sequence[Sequence[Any]],
    office_logos: Mapping[str, str],
) -> list[dict[str, Any]]:
    """
    Attach images (joined by index, never by arrival order), the office logo
    and the `address` alias to each raw listing.
    """
    out: list[dict[str, Any]] = []
    for i, listing in enumerate(listings):
        media = images[i] if i < len(images) else []
        office_key = listing.get("ListOfficeKey")
        out.append(
            {
                **listing,
                "images": shape_images(media or []),
                "officeLogo": office_logos.get(office_key) if office_key else None,
                "address": listing.get("UnparsedAddress"),
            }
        )
    return out


def dedupe_by_listing_key(listings: Sequence[dict[str, Any]]) -> list[dict[str, Any]]:
    """
    Last occurrence wins: a repeated ListingKey replaces the earlier record in
    the earlier record's slot. Records without a key are passed through.
    """
    out: list[dict[str, Any]] = []
    slot_by_key: dict[str, int] = {}
    for listing in listings:
        key = listing.get("ListingKey")
        if key is None or key == "":
            out.append(listing)
            continue
        key = str(key)
        if key in slot_by_key:
            out[slot_by_key[key]] = listing
            continue
        slot_by_key[key] = len(out)
        out.append(listing)
    return out


def paginate(page: int, limit: int, total_count: int) -> Pagination:
    total_pages = math.ceil(total_count / limit) if limit > 0 else 0
    return Pagination(
        current_page=page,
        total_pages=total_pages,
        total_count=total_count,
        items_per_page=limit,
        has_more=page < total_pages,
    )


def listings_with_images(listings: Sequence[dict[str, Any]]) -> list[dict[str, Any]]:
    """Payload rows for the image warm-cache service."""
    return [
        {
            "ListingKey": listing.get("ListingKey"),
            "images": listing.get("images") or [],
            "MediaChangeTimestamp": listing.get("MediaChangeTimestamp"),
        }
        for listing in listings
        if listing.get("images")
    ]
