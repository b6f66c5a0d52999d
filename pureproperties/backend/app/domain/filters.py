# app/domain/filters.py
"""
UI query params -> OData `$filter` clauses for the PropTx Property resource.

Each clause builder looks at one concern only and raises `FilterError` on
malformed input. `build_filter_clauses` catches that per builder, so one bad
param drops one clause and never the whole query.
"""
from __future__ import annotations

import json
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from types import MappingProxyType
from typing import Union
from urllib.parse import quote, unquote

log = logging.getLogger(__name__)


# UI label -> exact string stored upstream
SUBTYPE_REMAP: Mapping[str, str] = MappingProxyType(
    {
        "Semi-Detached": "Semi-Detached ",  # trailing space is real
        "Attached/Row/Street Townhouse": "Att/Row/Townhouse",
    }
)

TRANSACTION_TYPES = ("For Sale", "For Lease")
DEFAULT_TRANSACTION_TYPE = "For Sale"


class FilterError(ValueError):
    """A single filter param could not be turned into a clause."""


def quote_literal(value: str) -> str:
    """OData string literal: single quotes are escaped by doubling."""
    return "'" + str(value).replace("'", "''") + "'"


def _render_value(value: str | int | Decimal) -> str:
    if isinstance(value, Decimal):
        return format(value.normalize(), "f")
    if isinstance(value, int):
        return str(value)
    return quote_literal(value)


@dataclass(frozen=True)
class Comparison:
    field: str
    op: str  # eq|ge|le
    value: str | int | Decimal

    def render(self) -> str:
        return f"{self.field} {self.op} {_render_value(self.value)}"


@dataclass(frozen=True)
class Contains:
    field: str
    value: str

    def render(self) -> str:
        return f"contains({self.field}, {quote_literal(self.value)})"


@dataclass(frozen=True)
class StartsWith:
    field: str
    value: str

    def render(self) -> str:
        return f"startswith({self.field}, {quote_literal(self.value)})"


@dataclass(frozen=True)
class AnyOf:
    terms: tuple[Comparison, ...]
    parenthesize: bool = True

    def render(self) -> str:
        body = " or ".join(t.render() for t in self.terms)
        return f"({body})" if self.parenthesize else body


Clause = Union[Comparison, Contains, StartsWith, AnyOf]


# ---------- value parsing ----------

def _json_list(raw: str, name: str) -> list[str]:
    try:
        data = json.loads(raw)
    except ValueError as e:
        raise FilterError(f"{name}: invalid JSON ({e})") from e
    if isinstance(data, str):
        data = [data]
    if not isinstance(data, list):
        raise FilterError(f"{name}: expected a JSON array, got {type(data).__name__}")
    return [str(v).strip() for v in data if v is not None and str(v).strip()]


def _split_values(raw: str, name: str) -> list[str]:
    """JSON array, comma separated list, or a single bare value."""
    raw = raw.strip()
    if raw.startswith("["):
        return _json_list(raw, name)
    return [v.strip() for v in raw.split(",") if v.strip()]


def _number(raw: str, name: str) -> Decimal:
    try:
        value = Decimal(raw.strip())
    except InvalidOperation as e:
        raise FilterError(f"{name}: not a number: {raw!r}") from e
    if not value.is_finite():
        raise FilterError(f"{name}: not a finite number: {raw!r}")
    return value


def title_case_city(city: str) -> str:
    return " ".join(w[:1].upper() + w[1:].lower() for w in city.split())


def postal_prefix(postal_code: str) -> str | None:
    prefix = postal_code.strip()[:3].upper().strip()
    if len(prefix) != 3:
        return None
    return prefix


def resolve_transaction_type(raw: str | None) -> str:
    if raw and raw.strip() in TRANSACTION_TYPES:
        return raw.strip()
    return DEFAULT_TRANSACTION_TYPE


# ---------- clause builders ----------

def status_clause() -> Clause:
    return Comparison("StandardStatus", "eq", "Active")


def postal_code_clause(postal_code: str | None) -> Clause | None:
    if not postal_code:
        return None
    prefix = postal_prefix(postal_code)
    if prefix is None:
        return None
    return StartsWith("PostalCode", prefix)


def property_type_clause(property_types: str | None, property_type: str | None) -> Clause | None:
    if property_types:
        values = _split_values(property_types, "PropertyTypes")
        if not values:
            return None
        return AnyOf(tuple(Comparison("PropertyType", "eq", v) for v in values))

    if not property_type:
        return None
    values = [v.strip() for v in property_type.split(",") if v.strip()]
    if not values:
        return None
    if len(values) == 1:
        return Comparison("PropertyType", "eq", values[0])
    return AnyOf(tuple(Comparison("PropertyType", "eq", v) for v in values))


def property_subtype_clause(raw: str | None, remap: Mapping[str, str] = SUBTYPE_REMAP) -> Clause | None:
    if not raw:
        return None
    raw = raw.strip()
    values = _json_list(raw, "PropertySubType") if raw.startswith("[") else [raw]

    terms: list[Comparison] = []
    for value in values:
        decoded = unquote(value)
        mapped = remap.get(decoded, decoded)
        if mapped != decoded:
            log.debug("PropertySubType remapped %r -> %r", decoded, mapped)
        terms.append(Comparison("PropertySubType", "eq", mapped))

    if not terms:
        return None
    return AnyOf(tuple(terms))


def city_clause(city: str | None) -> Clause | None:
    if not city or not city.strip():
        return None
    return Contains("City", title_case_city(city))


def address_clause(address: str | None) -> Clause | None:
    if not address:
        return None
    return Contains("UnparsedAddress", address)


def listing_key_clause(mls: str | None) -> Clause | None:
    if not mls or not mls.strip():
        return None
    return Comparison("ListingKey", "eq", mls.strip())


def price_clause(raw: str | None, op: str, name: str) -> Clause | None:
    if not raw or not raw.strip():
        return None
    return Comparison("ListPrice", op, _number(raw, name))


def threshold_clause(field: str, raw: str | None) -> Clause | None:
    """
    '3+' -> `field ge 3`, '3' -> `field eq 3`.

    An unencoded '+' in the query string is form-decoded to a space, so a
    trailing space ('3 ') also means "at least".
    """
    if not raw or not raw.strip():
        return None
    value = raw.strip()
    op = "eq"
    if value.endswith("+"):
        op = "ge"
        value = value[:-1].strip()
    elif raw.endswith(" "):
        op = "ge"
    try:
        n = int(value)
    except ValueError as e:
        raise FilterError(f"{field}: not an integer: {raw!r}") from e
    return Comparison(field, op, n)


def basement_clause(raw: str | None) -> Clause | None:
    if not raw or not raw.strip():
        return None
    features = _json_list(raw.strip(), "basementFeatures")
    if not features:
        return None
    terms = tuple(Comparison("Basement", "eq", f) for f in features)
    if len(terms) == 1:
        return terms[0]
    return AnyOf(terms)


def transaction_type_clause(raw: str | None) -> Clause:
    return Comparison("TransactionType", "eq", resolve_transaction_type(raw))


# ---------- assembly ----------

def build_filter_clauses(
    params: Mapping[str, str],
    *,
    postal_code: str | None,
    remap: Mapping[str, str] = SUBTYPE_REMAP,
) -> list[Clause]:
    """
    Ordered AND-list of clauses for one search.

    `postal_code` is passed in already resolved (None in bounding-box mode),
    everything else is read from the raw params.
    """
    p = params
    builders: list[tuple[str, Callable[[], Clause | None]]] = [
        ("StandardStatus", status_clause),
        ("PostalCode", lambda: postal_code_clause(postal_code)),
        ("PropertyType", lambda: property_type_clause(p.get("PropertyTypes"), p.get("PropertyType"))),
        ("PropertySubType", lambda: property_subtype_clause(p.get("PropertySubType"), remap)),
        ("city", lambda: city_clause(p.get("city"))),
        ("address", lambda: address_clause(p.get("address"))),
        ("mls", lambda: listing_key_clause(p.get("mls"))),
        ("minPrice", lambda: price_clause(p.get("minPrice"), "ge", "minPrice")),
        ("maxPrice", lambda: price_clause(p.get("maxPrice"), "le", "maxPrice")),
        ("BedroomsTotal", lambda: threshold_clause("BedroomsTotal", p.get("BedroomsTotal"))),
        ("BathroomsTotalInteger", lambda: threshold_clause("BathroomsTotalInteger", p.get("BathroomsTotalInteger"))),
        ("basementFeatures", lambda: basement_clause(p.get("basementFeatures"))),
        ("TransactionType", lambda: transaction_type_clause(p.get("TransactionType"))),
    ]

    clauses: list[Clause] = []
    for name, build in builders:
        try:
            clause = build()
        except FilterError as e:
            log.warning("Dropping filter %s: %s", name, e)
            continue
        if clause is not None:
            clauses.append(clause)
    return clauses


def render_filter(clauses: list[Clause]) -> str:
    return " and ".join(c.render() for c in clauses)


def encode_component(value: str) -> str:
    """Percent-encode like JavaScript's encodeURIComponent."""
    return quote(value, safe="-_.!~*'()")


def encode_filter(clauses: list[Clause]) -> str | None:
    """Encoded `$filter` value, or None when there is nothing to filter on."""
    if not clauses:
        return None
    return encode_component(render_filter(clauses))
