# app/service_layer/use_cases/listing_detail.py
from __future__ import annotations

import asyncio
import logging
from typing import Any

from ...adapters.clients.reso_web_api import ResoWebApiClient, UpstreamError
from ...config import settings
from ...domain.history import shape_history
from ...schemas import ListingDetail
from ..fanout import settle

log = logging.getLogger(__name__)


class NotConfiguredError(RuntimeError):
    pass


def unique_media(media: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """First row per MediaURL, order preserved."""
    seen: set[str] = set()
    out: list[dict[str, Any]] = []
    for m in media:
        url = m.get("MediaURL")
        if not url or url in seen:
            continue
        seen.add(url)
        out.append(m)
    return out


async def fetch_listing_history(
    client: ResoWebApiClient,
    listing_key: str,
    *,
    vow_token: str | None,
    dla_token: str | None,
) -> list[dict[str, Any]]:
    """
    Price history for one listing.

    The VOW feed is asked first; when it refuses (non-2xx), the DLA feed gets
    one try. A refused or missing feed is not an error for the caller.
    """
    for feed, token in (("VOW", vow_token), ("DLA", dla_token)):
        if not token:
            continue
        try:
            rows = await client.fetch_history(listing_key, token=token)
        except UpstreamError as e:
            log.warning("History via %s refused for %s: %s", feed, listing_key, e.status_code)
            continue
        return shape_history(rows)
    return []


async def get_listing_detail(client: ResoWebApiClient, listing_key: str) -> ListingDetail:
    if not client.configured:
        raise NotConfiguredError("PropTx API token not configured")

    prop = await client.fetch_property(listing_key)

    media, history = await asyncio.gather(
        settle(
            client.fetch_all_media(listing_key),
            timeout=settings.PROPTX_TIMEOUT_S,
            default=[],
            label=f"media[{listing_key}]",
        ),
        settle(
            fetch_listing_history(
                client,
                listing_key,
                vow_token=settings.PROPTX_VOW_TOKEN,
                dla_token=settings.PROPTX_DLA_TOKEN,
            ),
            timeout=settings.PROPTX_TIMEOUT_S,
            default=[],
            label=f"history[{listing_key}]",
        ),
    )
    deduped = unique_media(media)
    if len(deduped) != len(media):
        log.debug("Listing %s: %d media rows, %d unique", listing_key, len(media), len(deduped))

    return ListingDetail(property={**prop, "media": deduped, "listingHistory": history})
