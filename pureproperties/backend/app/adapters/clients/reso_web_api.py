# app/adapters/clients/reso_web_api.py
from __future__ import annotations

from typing import Any

import httpx

from ...config import settings
from ...domain.filters import Comparison, encode_component, encode_filter, quote_literal


class UpstreamError(Exception):
    """Non-2xx answer from the MLS API on a call the request cannot live without."""

    def __init__(self, resource: str, status_code: int, body: str) -> None:
        self.resource = resource
        self.status_code = status_code
        self.body = body
        super().__init__(f"Failed to fetch {resource}: {status_code} {body[:500]}".rstrip())


def _values(data: Any) -> list[dict[str, Any]]:
    items = data.get("value") if isinstance(data, dict) else data
    if isinstance(items, list):
        return [x for x in items if isinstance(x, dict)]
    return []


class ResoWebApiClient:
    """
    PropTx / AMPRE RESO Web API client (OData v4, static bearer token).

    The caller owns the `httpx.AsyncClient`; one per inbound request.
    """

    def __init__(
        self,
        http: httpx.AsyncClient,
        *,
        base_url: str | None = None,
        access_token: str | None = None,
    ) -> None:
        self.http = http
        self.base_url = ((base_url if base_url is not None else settings.PROPTX_BASE_URL) or "").rstrip("/")
        self.access_token = access_token if access_token is not None else settings.PROPTX_IDX_TOKEN

    @property
    def configured(self) -> bool:
        return bool(self.access_token)

    def _headers(self, token: str | None = None) -> dict[str, str]:
        return {
            "Accept": "application/json",
            "Authorization": f"Bearer {token or self.access_token}",
            "Cache-Control": "no-cache",
        }

    async def _get(
        self,
        resource: str,
        query: str,
        *,
        timeout: float | None = None,
        token: str | None = None,
    ) -> httpx.Response:
        # Query strings are built by hand: OData wants %20 for spaces, and
        # httpx `params=` would form-encode them as '+'.
        url = f"{self.base_url}/{resource}"
        if query:
            url = f"{url}?{query}"
        t = timeout if timeout is not None else settings.PROPTX_TIMEOUT_S
        return await self.http.get(url, headers=self._headers(token), timeout=t)

    # ---------- Property ----------

    async def fetch_property_page(
        self,
        *,
        skip: int,
        top: int,
        orderby: str,
        filter_param: str | None,
    ) -> list[dict[str, Any]]:
        query = f"$skip={int(skip)}&$top={int(top)}&$orderby={encode_component(orderby)}"
        if filter_param:
            query += f"&$filter={filter_param}"

        resp = await self._get("Property", query)
        if not resp.is_success:
            raise UpstreamError("properties", resp.status_code, resp.text)
        return _values(resp.json())

    async def fetch_total_count(self, filter_param: str | None) -> int:
        query = "$count=true&$top=0"
        if filter_param:
            query += f"&$filter={filter_param}"

        resp = await self._get("Property", query)
        if not resp.is_success:
            raise UpstreamError("listing count", resp.status_code, resp.text)
        data = resp.json()
        return int(data["@odata.count"])

    async def fetch_property(self, listing_key: str) -> dict[str, Any]:
        resp = await self._get(f"Property({encode_component(quote_literal(listing_key))})", "")
        if not resp.is_success:
            raise UpstreamError("property", resp.status_code, resp.text)
        data = resp.json()
        if not isinstance(data, dict):
            raise ValueError("Property payload is not an object")
        return data

    # ---------- Media ----------

    @staticmethod
    def media_filter(record_key: str, resource_name: str, size: str | None = "Large") -> str:
        clauses = [
            Comparison("ResourceRecordKey", "eq", record_key),
            Comparison("ResourceName", "eq", resource_name),
        ]
        if size:
            clauses.append(Comparison("ImageSizeDescription", "eq", size))
        return encode_filter(clauses) or ""

    async def fetch_listing_media(
        self,
        listing_key: str,
        *,
        top: int = 3,
        timeout: float | None = None,
    ) -> list[dict[str, Any]]:
        query = f"$filter={self.media_filter(listing_key, 'Property')}&$orderby=Order&$top={int(top)}"
        resp = await self._get("Media", query, timeout=timeout)
        resp.raise_for_status()
        return _values(resp.json())[:top]

    async def fetch_office_logo(self, office_key: str, *, timeout: float | None = None) -> str | None:
        query = f"$filter={self.media_filter(office_key, 'Office')}&$top=1"
        resp = await self._get("Media", query, timeout=timeout)
        resp.raise_for_status()
        items = _values(resp.json())
        if not items:
            return None
        return items[0].get("MediaURL") or None

    async def fetch_all_media(self, listing_key: str, *, timeout: float | None = None) -> list[dict[str, Any]]:
        """Every Property media row for one listing, all sizes, by Order."""
        query = f"$filter={self.media_filter(listing_key, 'Property', size=None)}&$orderby=Order"
        resp = await self._get("Media", query, timeout=timeout)
        resp.raise_for_status()
        return _values(resp.json())

    # ---------- History ----------

    async def fetch_history(self, listing_key: str, *, token: str) -> list[dict[str, Any]]:
        """Transactional history rows for one listing, newest change first."""
        flt = encode_filter(
            [
                Comparison("ResourceRecordKey", "eq", listing_key),
                Comparison("ResourceName", "eq", "Property"),
            ]
        )
        query = f"$filter={flt}&$orderby={encode_component('ModificationTimestamp desc')}"
        resp = await self._get("historytransactional", query, token=token)
        if not resp.is_success:
            raise UpstreamError("history", resp.status_code, resp.text)
        return _values(resp.json())

    # ---------- Filter vocabulary ----------

    async def fetch_property_types(self) -> list[dict[str, Any]]:
        query = f"$select=PropertyType,PropertySubType&$orderby={encode_component('PropertyType,PropertySubType')}"
        resp = await self._get("Property", query)
        if not resp.is_success:
            raise UpstreamError("property types", resp.status_code, resp.text)
        return _values(resp.json())

    async def fetch_cities(self, *, top: int = 1000) -> list[dict[str, Any]]:
        query = f"$select=City&$filter={encode_component('City ne null')}&$orderby=City&$top={int(top)}"
        resp = await self._get("Property", query)
        if not resp.is_success:
            raise UpstreamError("cities", resp.status_code, resp.text)
        return _values(resp.json())
