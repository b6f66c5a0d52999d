# scripts/smoke_listings.py
# Usage: python scripts/smoke_listings.py city=Toronto BedroomsTotal=3+ limit=10
import asyncio
import sys

import httpx

from app.adapters.clients.reso_web_api import ResoWebApiClient
from app.logging_setup import configure_logging
from app.service_layer.use_cases.search_listings import search_listings


async def main(argv: list[str]) -> None:
    params = dict(a.split("=", 1) for a in argv if "=" in a)
    async with httpx.AsyncClient() as http:
        result = await search_listings(ResoWebApiClient(http), params)

    out = result.model_dump(by_alias=True)
    if "pagination" not in out:
        print(out["message"])
        return

    print(out["pagination"])
    for l in out["listings"]:
        print(l.get("ListingKey"), l.get("address"), l.get("ListPrice"), len(l["images"]), l["officeLogo"])


if __name__ == "__main__":
    configure_logging()
    asyncio.run(main(sys.argv[1:]))
