from __future__ import annotations
from dataclasses import dataclass
from typing import Protocol, Any


@dataclass(frozen=True)
class SinkDeliveryResult:
    ok: bool
    error: str | None = None


class ImageSink(Protocol):
    async def deliver(self, properties: list[dict[str, Any]]) -> SinkDeliveryResult:
        ...
