# tests/conftest.py
from __future__ import annotations

import asyncio
import re
from typing import Any

import httpx
import pytest

from app.adapters.clients.reso_web_api import ResoWebApiClient
from app.config import settings

BASE_URL = "https://mls.test/odata"
TOKEN = "test-token"

_KEY_RE = re.compile(r"ResourceRecordKey eq '((?:[^']|'')*)'")


class FakeMls:
    """In-process stand-in for the PropTx OData API."""

    def __init__(self) -> None:
        self.listings: list[dict[str, Any]] = []
        self.total_count: int | None = None
        self.page_status = 200
        self.page_body: str | None = None
        self.count_status = 200
        self.media: dict[str, list[dict[str, Any]]] = {}
        self.logos: dict[str, str] = {}
        self.properties: dict[str, dict[str, Any]] = {}
        self.slow_keys: set[str] = set()
        self.failing_keys: set[str] = set()
        self.type_rows: list[dict[str, Any]] = []
        self.city_rows: list[dict[str, Any]] = []
        self.select_status = 200
        # listing key -> historytransactional rows; served only to accepted tokens
        self.history: dict[str, list[dict[str, Any]]] = {}
        self.history_tokens: set[str] = set()
        self.requests: list[httpx.Request] = []

    def requests_for(self, resource: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path.endswith("/" + resource)]

    def page_requests(self) -> list[httpx.Request]:
        return [
            r
            for r in self.requests_for("Property")
            if "$count" not in r.url.params and "$select" not in r.url.params
        ]

    def count_requests(self) -> list[httpx.Request]:
        return [r for r in self.requests_for("Property") if r.url.params.get("$count") == "true"]

    def history_requests(self) -> list[httpx.Request]:
        return self.requests_for("historytransactional")

    def office_requests(self) -> list[httpx.Request]:
        return [r for r in self.requests_for("Media") if "ResourceName eq 'Office'" in r.url.params["$filter"]]

    async def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        params = request.url.params

        if path.endswith("/Property"):
            if "$select" in params:
                if self.select_status != 200:
                    return httpx.Response(self.select_status, text="select unavailable")
                rows = self.city_rows if params["$select"] == "City" else self.type_rows
                return httpx.Response(200, json={"value": rows})
            if params.get("$count") == "true":
                if self.count_status != 200:
                    return httpx.Response(self.count_status, text="count unavailable")
                total = self.total_count if self.total_count is not None else len(self.listings)
                return httpx.Response(200, json={"@odata.count": total, "value": []})
            if self.page_status != 200:
                return httpx.Response(self.page_status, text=self.page_body or "upstream down")
            return httpx.Response(200, json={"value": self.listings})

        m = re.search(r"/Property\('(.*)'\)$", path)
        if m:
            key = m.group(1)
            if key not in self.properties:
                return httpx.Response(404, text="not found")
            return httpx.Response(200, json=self.properties[key])

        if path.endswith("/Media"):
            flt = params["$filter"]
            key = _KEY_RE.search(flt).group(1).replace("''", "'")
            if key in self.slow_keys:
                await asyncio.sleep(5)
            if key in self.failing_keys:
                return httpx.Response(500, text="media error")
            if "ResourceName eq 'Office'" in flt:
                url = self.logos.get(key)
                return httpx.Response(200, json={"value": [{"MediaURL": url}] if url else []})
            rows = self.media.get(key, [])
            top = params.get("$top")
            if top is not None:
                rows = rows[: int(top)]
            return httpx.Response(200, json={"value": rows})

        if path.endswith("/historytransactional"):
            token = request.headers["Authorization"].removeprefix("Bearer ")
            if token not in self.history_tokens:
                return httpx.Response(403, text="feed not licensed")
            key = _KEY_RE.search(params["$filter"]).group(1).replace("''", "'")
            return httpx.Response(200, json={"value": self.history.get(key, [])})

        return httpx.Response(404, text=f"unexpected path {path}")


def make_listing(key: str, **extra: Any) -> dict[str, Any]:
    listing = {
        "ListingKey": key,
        "UnparsedAddress": f"{key} Main St, Toronto, ON",
        "ListPrice": 750000,
        "ListOfficeKey": "OFF1",
        "MediaChangeTimestamp": "2024-05-01T12:00:00Z",
    }
    listing.update(extra)
    return listing


def make_media(key: str, n: int = 3) -> list[dict[str, Any]]:
    return [{"MediaURL": f"https://cdn.test/{key}/{i}.jpg", "Order": i, "MediaKey": f"{key}-{i}"} for i in range(n)]


@pytest.fixture(autouse=True)
def _gateway_settings(monkeypatch):
    monkeypatch.setattr(settings, "PROPTX_IDX_TOKEN", TOKEN)
    monkeypatch.setattr(settings, "PROPTX_BASE_URL", BASE_URL)
    monkeypatch.setattr(settings, "PROPTX_VOW_TOKEN", None)
    monkeypatch.setattr(settings, "PROPTX_DLA_TOKEN", None)
    monkeypatch.setattr(settings, "MEDIA_TIMEOUT_S", 0.2)
    monkeypatch.setattr(settings, "LOGO_TIMEOUT_S", 0.1)
    monkeypatch.setattr(settings, "IMAGE_SERVICE_URL", None)
    monkeypatch.setattr(settings, "API_KEY", None)
    yield


@pytest.fixture
def fake_mls() -> FakeMls:
    return FakeMls()


@pytest.fixture
async def reso_client(fake_mls):
    async with httpx.AsyncClient(transport=httpx.MockTransport(fake_mls.handler)) as http:
        yield ResoWebApiClient(http, base_url=BASE_URL, access_token=TOKEN)
