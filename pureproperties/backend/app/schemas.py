from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PaginationOut(CamelModel):
    current_page: int = Field(..., ge=1)
    total_pages: int = Field(..., ge=0)
    total_count: int = Field(..., ge=0)
    items_per_page: int = Field(..., ge=1)
    has_more: bool


class FiltersOut(CamelModel):
    city: str | None = None
    min_price: str | None = None
    max_price: str | None = None
    property_type: str | None = None
    sort_by: str
    postal_code: str | None = None


class ListingsPage(CamelModel):
    # upstream records are passed through as-is, plus images/officeLogo/address
    listings: list[dict[str, Any]]
    pagination: PaginationOut
    filters: FiltersOut


class DegradedListingsPage(CamelModel):
    """Answer when the MLS token is missing. Deliberately not ListingsPage-shaped."""

    properties: list[dict[str, Any]] = Field(default_factory=list)
    total_count: int = 0
    page: int = 1
    limit: int = 10000
    message: str


class ListingDetail(BaseModel):
    property: dict[str, Any]


class ErrorOut(BaseModel):
    error: str
    details: str


class FilterVocabulary(CamelModel):
    property_types: list[str]
    property_sub_types: dict[str, list[str]]
    municipalities: list[str]
