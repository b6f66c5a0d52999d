import httpx
import pytest
from fastapi.testclient import TestClient

from app.adapters.clients.reso_web_api import ResoWebApiClient
from app.config import settings
from app.entrypoints.api.deps import get_reso_client
from app.entrypoints.fastapi_app import create_app
from conftest import BASE_URL, TOKEN, make_listing, make_media


@pytest.fixture
def api(fake_mls):
    app = create_app()

    async def _client():
        async with httpx.AsyncClient(transport=httpx.MockTransport(fake_mls.handler)) as http:
            yield ResoWebApiClient(http, base_url=BASE_URL, access_token=settings.PROPTX_IDX_TOKEN)

    app.dependency_overrides[get_reso_client] = _client
    with TestClient(app) as c:
        yield c


def test_health(api):
    r = api.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}


def test_listings_ok(api, fake_mls):
    fake_mls.listings = [make_listing("A"), make_listing("A", ListPrice=1)]
    fake_mls.media["A"] = make_media("A")
    fake_mls.total_count = 1

    r = api.get("/listings", params={"city": "toronto", "BedroomsTotal": "2+"})

    assert r.status_code == 200
    body = r.json()
    assert set(body) == {"listings", "pagination", "filters"}
    assert len(body["listings"]) == 1
    assert body["listings"][0]["ListPrice"] == 1
    assert body["pagination"]["totalPages"] == 1
    assert body["filters"]["city"] == "Toronto"


def test_listings_without_token_is_degraded_not_an_error(api, fake_mls, monkeypatch):
    monkeypatch.setattr(settings, "PROPTX_IDX_TOKEN", None)

    r = api.get("/listings", params={"page": "4"})

    assert r.status_code == 200
    body = r.json()
    assert body["properties"] == []
    assert body["totalCount"] == 0
    assert body["page"] == 1
    assert body["limit"] == 10000
    assert body["message"]
    assert "listings" not in body
    assert fake_mls.requests == []


def test_upstream_failure_is_500(api, fake_mls):
    fake_mls.page_status = 503
    fake_mls.page_body = "try again later"

    r = api.get("/listings")

    assert r.status_code == 500
    body = r.json()
    assert body["error"] == "Failed to fetch listings"
    assert "503" in body["details"]
    assert "try again later" in body["details"]


def test_malformed_filters_do_not_fail_the_request(api, fake_mls):
    fake_mls.listings = [make_listing("A")]

    r = api.get("/listings", params={"BedroomsTotal": "lots", "basementFeatures": "[oops", "page": "x"})

    assert r.status_code == 200
    [page_req] = fake_mls.page_requests()
    assert "Bedrooms" not in page_req.url.params["$filter"]
    assert "Basement" not in page_req.url.params["$filter"]
    assert page_req.url.params["$skip"] == "0"


def test_listing_detail_dedupes_media(api, fake_mls):
    fake_mls.properties["X1"] = {"ListingKey": "X1", "ListPrice": 10}
    fake_mls.media["X1"] = [
        {"MediaURL": "https://cdn.test/1.jpg", "Order": 0},
        {"MediaURL": "https://cdn.test/1.jpg", "Order": 0},
        {"MediaURL": "https://cdn.test/2.jpg", "Order": 1},
    ]

    r = api.get("/listings/X1")

    assert r.status_code == 200
    prop = r.json()["property"]
    assert prop["ListPrice"] == 10
    assert [m["MediaURL"] for m in prop["media"]] == ["https://cdn.test/1.jpg", "https://cdn.test/2.jpg"]


def test_listing_detail_not_found(api):
    r = api.get("/listings/NOPE")
    assert r.status_code == 404
    assert r.json()["error"] == "Property not found"


def test_listing_detail_without_token(api, fake_mls, monkeypatch):
    monkeypatch.setattr(settings, "PROPTX_IDX_TOKEN", None)
    r = api.get("/listings/X1")
    assert r.status_code == 503
    assert fake_mls.requests == []


def test_debug_config_requires_api_key(api, monkeypatch):
    monkeypatch.setattr(settings, "API_KEY", "secret-key")

    assert api.get("/debug/config").status_code == 401

    r = api.get("/debug/config", headers={"X-API-Key": "secret-key"})
    assert r.status_code == 200
    body = r.json()
    assert body["PROPTX_IDX_TOKEN"] == {"set": True, "length": len(TOKEN), "tail": "oken"}
    assert body["PROPTX_VOW_TOKEN"] == {"set": False}
    assert TOKEN not in r.text


def test_unencoded_plus_in_bedrooms_means_at_least(api, fake_mls):
    fake_mls.listings = [make_listing("A")]

    r = api.get("/listings?page=2&limit=50&minPrice=500000&BedroomsTotal=3+")

    assert r.status_code == 200
    [page_req] = fake_mls.page_requests()
    assert "BedroomsTotal ge 3" in page_req.url.params["$filter"]


def test_debug_routes_is_not_mounted(api):
    assert api.get("/debug/routes").status_code == 404


def test_listing_types(api, fake_mls):
    fake_mls.type_rows = [
        {"PropertyType": "Residential Freehold", "PropertySubType": "Detached"},
        {"PropertyType": "Commercial", "PropertySubType": "Retail"},
    ]
    fake_mls.city_rows = [{"City": "Toronto"}, {"City": "Brampton"}]

    r = api.get("/listings/types")

    assert r.status_code == 200
    assert r.json() == {
        "propertyTypes": ["Any", "Commercial", "Residential Freehold"],
        "propertySubTypes": {"Commercial": ["Any", "Retail"], "Residential Freehold": ["Any", "Detached"]},
        "municipalities": ["Any", "Brampton", "Toronto"],
    }
    assert fake_mls.page_requests() == []
    assert not any("('types')" in r.url.path for r in fake_mls.requests)


def test_listing_types_upstream_failure_is_500(api, fake_mls):
    fake_mls.select_status = 500

    r = api.get("/listings/types")

    assert r.status_code == 500
    assert r.json()["error"] == "Failed to fetch property data"
    assert "500" in r.json()["details"]


def test_listing_types_without_token_is_500(api, fake_mls, monkeypatch):
    monkeypatch.setattr(settings, "PROPTX_IDX_TOKEN", None)

    r = api.get("/listings/types")

    assert r.status_code == 500
    assert r.json()["error"] == "Failed to fetch property data"
    assert fake_mls.requests == []


def test_listing_detail_includes_history(api, fake_mls, monkeypatch):
    monkeypatch.setattr(settings, "PROPTX_VOW_TOKEN", "vow-token")
    fake_mls.history_tokens = {"vow-token"}
    fake_mls.properties["X1"] = {"ListingKey": "X1"}
    fake_mls.history["X1"] = [
        {"ResourceRecordKey": "X1", "PreviousValue": "$640,000", "PreviousLabel": "Price Change"},
    ]

    r = api.get("/listings/X1")

    assert r.status_code == 200
    [entry] = r.json()["property"]["listingHistory"]
    assert entry["price"] == 640000.0
    assert entry["event"] == "Price Change"


@pytest.fixture
def bad_url_api(fake_mls):
    app = create_app()

    async def _client():
        async with httpx.AsyncClient(transport=httpx.MockTransport(fake_mls.handler)) as http:
            yield ResoWebApiClient(http, base_url="https://mls.test:notaport/odata", access_token=TOKEN)

    app.dependency_overrides[get_reso_client] = _client
    with TestClient(app) as c:
        yield c


@pytest.mark.parametrize(
    "path,error",
    [
        ("/listings", "Failed to fetch listings"),
        ("/listings/X1", "Failed to fetch property details"),
        ("/listings/types", "Failed to fetch property data"),
    ],
)
def test_malformed_base_url_gets_json_error(bad_url_api, fake_mls, path, error):
    r = bad_url_api.get(path)

    assert r.status_code == 500
    body = r.json()
    assert body["error"] == error
    assert body["details"]
    assert fake_mls.requests == []
