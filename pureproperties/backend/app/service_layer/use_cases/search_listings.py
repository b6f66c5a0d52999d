# app/service_layer/use_cases/search_listings.py
from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from dataclasses import asdict

from ...adapters.clients.reso_web_api import ResoWebApiClient
from ...config import settings
from ...domain.assembly import dedupe_by_listing_key, enrich_listings, paginate
from ...domain.filters import build_filter_clauses, encode_filter, render_filter, title_case_city
from ...domain.query import ListingQuery
from ...integrations.image_cache import trigger_image_warm_cache
from ...schemas import DegradedListingsPage, FiltersOut, ListingsPage, PaginationOut
from ..fanout import fetch_listing_images, fetch_office_logos

log = logging.getLogger(__name__)

MISSING_TOKEN_MESSAGE = "PropTx API token not configured; returning no listings"


def _echo_filters(query: ListingQuery) -> FiltersOut:
    p = query.params
    city = p.get("city")
    return FiltersOut(
        city=title_case_city(city) if city and city.strip() else None,
        min_price=p.get("minPrice") or None,
        max_price=p.get("maxPrice") or None,
        property_type=p.get("PropertyType") or None,
        sort_by=query.sort_by,
        postal_code=query.postal_code,
    )


async def search_listings(
    client: ResoWebApiClient,
    params: Mapping[str, str],
) -> ListingsPage | DegradedListingsPage:
    """
    One /listings request end to end.

    Raises UpstreamError (or httpx/JSON errors) only when the Property page
    query itself fails; every other upstream failure is absorbed.
    """
    query = ListingQuery.from_params(params, default_limit=settings.DEFAULT_PAGE_SIZE)

    if not client.configured:
        log.warning("PROPTX_IDX_TOKEN missing; skipping upstream calls")
        return DegradedListingsPage(message=MISSING_TOKEN_MESSAGE)

    clauses = build_filter_clauses(query.params, postal_code=query.postal_code)
    filter_param = encode_filter(clauses)
    log.debug("Property $filter: %s (geo_mode=%s)", render_filter(clauses), query.geo_mode)

    page_res, count_res = await asyncio.gather(
        client.fetch_property_page(
            skip=query.skip,
            top=query.limit,
            orderby=query.sort_by,
            filter_param=filter_param,
        ),
        client.fetch_total_count(filter_param),
        return_exceptions=True,
    )
    if isinstance(page_res, BaseException):
        raise page_res
    listings = page_res

    if isinstance(count_res, BaseException):
        total_count = query.skip + len(listings)
        log.warning("Count query failed (%r); falling back to total_count=%d", count_res, total_count)
    else:
        total_count = count_res

    images, office_logos = await asyncio.gather(
        fetch_listing_images(
            client,
            listings,
            timeout=settings.MEDIA_TIMEOUT_S,
            per_listing=settings.MEDIA_PER_LISTING,
        ),
        fetch_office_logos(
            client,
            listings,
            timeout=settings.LOGO_TIMEOUT_S,
            max_listings=settings.LOGO_MAX_LISTINGS,
        ),
    )

    assembled = dedupe_by_listing_key(enrich_listings(listings, images, office_logos))
    if len(assembled) != len(listings):
        log.info("Dropped %d duplicate listings", len(listings) - len(assembled))

    pagination = paginate(query.page, query.limit, total_count)

    trigger_image_warm_cache(assembled)

    return ListingsPage(
        listings=assembled,
        pagination=PaginationOut(**asdict(pagination)),
        filters=_echo_filters(query),
    )
