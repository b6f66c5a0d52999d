# app/entrypoints/api/routers/listings.py
from __future__ import annotations

import logging
from typing import Any

import httpx
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from ..deps import get_reso_client
from ....adapters.clients.reso_web_api import ResoWebApiClient, UpstreamError
from ....schemas import ErrorOut
from ....service_layer.use_cases.listing_detail import NotConfiguredError, get_listing_detail
from ....service_layer.use_cases.listing_types import get_filter_vocabulary
from ....service_layer.use_cases.search_listings import search_listings

log = logging.getLogger(__name__)

router = APIRouter(tags=["listings"])

# httpx.InvalidURL is not an HTTPError subclass; a bad PROPTX_BASE_URL raises it.
TRANSPORT_ERRORS = (httpx.HTTPError, httpx.InvalidURL)


def _error(status_code: int, error: str, exc: Exception) -> JSONResponse:
    body = ErrorOut(error=error, details=str(exc) or repr(exc))
    return JSONResponse(status_code=status_code, content=body.model_dump())


@router.get("/listings", response_model=None)
async def list_listings(
    request: Request,
    client: ResoWebApiClient = Depends(get_reso_client),
) -> dict[str, Any] | JSONResponse:
    # Params stay loosely typed strings here: a malformed filter must drop
    # that filter, not fail validation for the whole request.
    params = dict(request.query_params)
    try:
        result = await search_listings(client, params)
    except (UpstreamError, *TRANSPORT_ERRORS, ValueError) as e:
        log.exception("Listing search failed")
        return _error(500, "Failed to fetch listings", e)
    return result.model_dump(by_alias=True)


@router.get("/listings/types", response_model=None)
async def listing_types(
    client: ResoWebApiClient = Depends(get_reso_client),
) -> dict[str, Any] | JSONResponse:
    try:
        result = await get_filter_vocabulary(client)
    except (NotConfiguredError, UpstreamError, *TRANSPORT_ERRORS, ValueError) as e:
        log.exception("Filter vocabulary failed")
        return _error(500, "Failed to fetch property data", e)
    return result.model_dump(by_alias=True)


# Declared after /listings/types so that path is not taken as a listing key.
@router.get("/listings/{listing_key}", response_model=None)
async def listing_detail(
    listing_key: str,
    client: ResoWebApiClient = Depends(get_reso_client),
) -> dict[str, Any] | JSONResponse:
    try:
        result = await get_listing_detail(client, listing_key)
    except NotConfiguredError as e:
        return _error(503, "Failed to fetch property details", e)
    except UpstreamError as e:
        if e.status_code == 404:
            return _error(404, "Property not found", e)
        log.exception("Listing detail failed for %s", listing_key)
        return _error(500, "Failed to fetch property details", e)
    except (*TRANSPORT_ERRORS, ValueError) as e:
        log.exception("Listing detail failed for %s", listing_key)
        return _error(500, "Failed to fetch property details", e)
    return result.model_dump()
