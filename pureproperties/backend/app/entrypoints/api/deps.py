# app/entrypoints/api/deps.py
from __future__ import annotations

from collections.abc import AsyncIterator

import httpx
from fastapi import Header, HTTPException

from ...adapters.clients.reso_web_api import ResoWebApiClient
from ...config import settings


def require_api_key(x_api_key: str | None = Header(default=None, alias="X-API-Key")) -> None:
    if settings.API_KEY:
        if not x_api_key or x_api_key != settings.API_KEY:
            raise HTTPException(status_code=401, detail="Invalid API key")


async def get_reso_client() -> AsyncIterator[ResoWebApiClient]:
    # One HTTP client per inbound request; closed once the response is built.
    async with httpx.AsyncClient(timeout=settings.PROPTX_TIMEOUT_S) as http:
        yield ResoWebApiClient(http)
