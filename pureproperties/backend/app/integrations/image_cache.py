# app/integrations/image_cache.py
"""
Best-effort warm-up of the image processing service.

The POST runs on a detached task with its own HTTP client; the search request
never awaits it and its outcome is only ever logged.
"""
from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from typing import Any

import httpx

from ..config import settings
from ..domain.assembly import listings_with_images
from .base import ImageSink, SinkDeliveryResult

log = logging.getLogger(__name__)

# strong refs so pending tasks are not garbage collected mid-flight
_BACKGROUND: set[asyncio.Task[None]] = set()


class ImageServiceSink:
    def __init__(
        self,
        base_url: str,
        timeout_s: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.url = base_url.rstrip("/") + "/batch-process"
        self.timeout_s = timeout_s if timeout_s is not None else settings.IMAGE_SERVICE_TIMEOUT_S
        self.transport = transport

    async def deliver(self, properties: list[dict[str, Any]]) -> SinkDeliveryResult:
        try:
            async with httpx.AsyncClient(timeout=self.timeout_s, transport=self.transport) as client:
                r = await client.post(self.url, json={"properties": properties})
                if 200 <= r.status_code < 300:
                    return SinkDeliveryResult(ok=True)
                return SinkDeliveryResult(ok=False, error=f"HTTP {r.status_code}: {r.text[:500]}")
        except Exception as e:
            return SinkDeliveryResult(ok=False, error=str(e) or repr(e))


async def _warm(sink: ImageSink, rows: list[dict[str, Any]]) -> None:
    try:
        result = await sink.deliver(rows)
    except Exception:
        log.exception("Image warm-cache call crashed (%d properties)", len(rows))
        return
    if result.ok:
        log.info("Queued image processing for %d properties", len(rows))
    else:
        log.warning("Image warm-cache call failed: %s", result.error)


def trigger_image_warm_cache(
    listings: Sequence[dict[str, Any]],
    *,
    sink: ImageSink | None = None,
) -> asyncio.Task[None] | None:
    """Fire and forget. Returns the task (tests await it), or None when nothing was sent."""
    rows = listings_with_images(listings)
    if not rows:
        return None

    if sink is None:
        if not settings.IMAGE_SERVICE_URL:
            log.debug("IMAGE_SERVICE_URL not set; skipping image warm-cache")
            return None
        sink = ImageServiceSink(settings.IMAGE_SERVICE_URL)

    task = asyncio.create_task(_warm(sink, rows))
    _BACKGROUND.add(task)
    task.add_done_callback(_BACKGROUND.discard)
    return task
