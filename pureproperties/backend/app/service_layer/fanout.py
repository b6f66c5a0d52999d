# app/service_layer/fanout.py
"""
Concurrent per-listing lookups against the Media resource.

Every sub-fetch goes through `settle`, so a timeout or upstream error turns
into that item's default value and never cancels its siblings. No retries.
"""
from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Sequence
from typing import Any, TypeVar

from ..adapters.clients.reso_web_api import ResoWebApiClient

log = logging.getLogger(__name__)

T = TypeVar("T")


async def settle(aw: Awaitable[T], *, timeout: float, default: T, label: str) -> T:
    try:
        return await asyncio.wait_for(aw, timeout)
    except asyncio.TimeoutError:
        log.debug("%s timed out after %.2fs", label, timeout)
        return default
    except Exception as e:
        log.debug("%s failed: %r", label, e)
        return default


async def _no_media() -> list[dict[str, Any]]:
    return []


async def fetch_listing_images(
    client: ResoWebApiClient,
    listings: Sequence[dict[str, Any]],
    *,
    timeout: float,
    per_listing: int = 3,
) -> list[list[dict[str, Any]]]:
    """One media lookup per listing; result[i] belongs to listings[i]."""
    jobs = []
    for listing in listings:
        key = listing.get("ListingKey")
        if not key:
            jobs.append(_no_media())
            continue
        jobs.append(
            settle(
                client.fetch_listing_media(str(key), top=per_listing, timeout=timeout),
                timeout=timeout,
                default=[],
                label=f"media[{key}]",
            )
        )
    results = await asyncio.gather(*jobs)

    failed = sum(1 for listing, media in zip(listings, results) if listing.get("ListingKey") and not media)
    if failed:
        log.info("No media for %d of %d listings", failed, len(listings))
    return list(results)


def distinct_office_keys(listings: Sequence[dict[str, Any]]) -> list[str]:
    keys: dict[str, None] = {}
    for listing in listings:
        key = str(listing.get("ListOfficeKey") or "").strip()
        if key:
            keys.setdefault(key, None)
    return list(keys)


async def fetch_office_logos(
    client: ResoWebApiClient,
    listings: Sequence[dict[str, Any]],
    *,
    timeout: float,
    max_listings: int = 100,
) -> dict[str, str]:
    """office key -> logo URL; offices whose lookup failed are simply absent."""
    if len(listings) > max_listings:
        log.info("Skipping office logos: %d listings > %d", len(listings), max_listings)
        return {}

    office_keys = distinct_office_keys(listings)
    results = await asyncio.gather(
        *(
            settle(
                client.fetch_office_logo(key, timeout=timeout),
                timeout=timeout,
                default=None,
                label=f"office_logo[{key}]",
            )
            for key in office_keys
        )
    )
    return {key: url for key, url in zip(office_keys, results) if url}
