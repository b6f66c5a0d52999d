# app/service_layer/use_cases/listing_types.py
from __future__ import annotations

import asyncio
import logging

from ...adapters.clients.reso_web_api import ResoWebApiClient
from ...domain.vocabulary import build_filter_vocabulary
from ...schemas import FilterVocabulary
from .listing_detail import NotConfiguredError

log = logging.getLogger(__name__)


async def get_filter_vocabulary(client: ResoWebApiClient) -> FilterVocabulary:
    """Dropdown values for the search form. Both upstream queries must succeed."""
    if not client.configured:
        raise NotConfiguredError("PropTx API token not configured")

    type_rows, city_rows = await asyncio.gather(client.fetch_property_types(), client.fetch_cities())
    vocab = build_filter_vocabulary(type_rows, city_rows)
    log.info(
        "Filter vocabulary: %d property types, %d municipalities",
        len(vocab["property_types"]),
        len(vocab["municipalities"]),
    )
    return FilterVocabulary(**vocab)
