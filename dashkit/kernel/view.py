"""
dashkit Kernel — Collection View Engine

Pure function: (collection, schema, params, aggregates) → DerivedView
No side effects. No IO. No clock reads. Deterministic: same input → same output.

Pipeline, in this order:
  1. query filter     — OR across searchable fields, case-folded substring
  2. field predicates — AND across params.filters
  3. sort             — stable; descending flips the primary comparison only
  4. paginate         — out-of-range page → empty slice
  5. aggregate        — over the filtered + sorted sequence (pre-pagination)

Unknown sort/filter/aggregate fields raise before any work is done. Records
are shared with the input collection, never copied or modified.
"""

from __future__ import annotations

import math
from collections.abc import Callable, Mapping
from datetime import datetime
from typing import Any

from dashkit.kernel.aggregates import Aggregate, check_aggregates, compute_aggregates
from dashkit.kernel.params import PageSpec, SortSpec, ViewParameters
from dashkit.kernel.predicates import Predicate, as_predicate, is_unconstrained
from dashkit.kernel.types import (
    NUMERIC_TYPES,
    TEMPORAL_TYPES,
    CollectionSchema,
    DerivedView,
    UnknownFieldError,
    ViewError,
    base_type,
    list_item_type,
    parse_instant,
)

Record = dict[str, Any]

# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def derive_view(
    collection: list[Record],
    schema: CollectionSchema,
    params: ViewParameters | None = None,
    aggregates: Mapping[str, Aggregate] | None = None,
) -> DerivedView:
    """
    Derive the visible records, the requested page and the aggregates.
    Pure function. The collection and its records are never modified.
    """
    params = params or ViewParameters()
    aggregates = aggregates or {}

    predicates = compile_filters(schema, params.filters)
    if params.sort is not None:
        _require_field(schema, params.sort.field, "sort")
    check_aggregates(schema, aggregates)
    if params.now is None:
        for field_name, predicate in predicates:
            if predicate.needs_clock:
                raise ViewError(f"Filter on {field_name!r} is relative to now; pass params.now")

    visible = apply_query(collection, schema, params.query)
    visible = _apply_predicates(visible, predicates, params.now)
    visible = apply_sort(visible, schema, params.sort)
    page, total_pages = paginate(visible, params.page)

    return DerivedView(
        visible=visible,
        page=page,
        aggregates=compute_aggregates(visible, schema, aggregates),
        page_index=params.page.index if params.page else 1,
        page_size=params.page.size if params.page else None,
        total_pages=total_pages,
    )


def apply_query(records: list[Record], schema: CollectionSchema, query: str) -> list[Record]:
    """Keep records where any searchable field contains the query (case-folded)."""
    if not query:
        return list(records)
    needle = query.casefold()
    return [r for r in records if _record_contains(r, schema.searchable or (), needle)]


def compile_filters(schema: CollectionSchema, filters: Mapping[str, Any]) -> list[tuple[str, Predicate]]:
    """Validate filter fields and normalize their values. Unconstrained entries are dropped."""
    compiled: list[tuple[str, Predicate]] = []
    for field_name, spec in filters.items():
        _require_field(schema, field_name, "filter")
        if is_unconstrained(spec):
            continue
        compiled.append((field_name, as_predicate(spec)))
    return compiled


def apply_filters(
    records: list[Record],
    schema: CollectionSchema,
    filters: Mapping[str, Any],
    now: datetime | None = None,
) -> list[Record]:
    """Keep records satisfying every filter (AND)."""
    return _apply_predicates(records, compile_filters(schema, filters), now)


def apply_sort(records: list[Record], schema: CollectionSchema, sort: SortSpec | None) -> list[Record]:
    """
    Stable sort by one field. Null/unparseable values go last in both
    directions, in their input order. No sort → input order.
    """
    if sort is None:
        return list(records)
    _require_field(schema, sort.field, "sort")

    key_of = sort_key_function(schema, sort.field)
    keyed: list[tuple[Any, Record]] = []
    nulls: list[Record] = []
    for record in records:
        key = key_of(record.get(sort.field))
        if key is None:
            nulls.append(record)
        else:
            keyed.append((key, record))

    # sorted() keeps equal keys in input order even with reverse=True
    keyed.sort(key=lambda pair: pair[0], reverse=sort.direction == "desc")
    return [record for _, record in keyed] + nulls


def paginate(records: list[Record], page: PageSpec | None) -> tuple[list[Record], int]:
    """Return (page slice, total pages). No page spec → one page with everything."""
    if page is None:
        return list(records), 1 if records else 0
    total_pages = math.ceil(len(records) / page.size)
    start = (page.index - 1) * page.size
    return records[start : start + page.size], total_pages


def distinct_values(collection: list[Record], schema: CollectionSchema, field: str) -> list[Any]:
    """
    Sorted unique non-null values of a field across the whole collection.
    Feeds filter dropdowns. List fields contribute each element.
    """
    _require_field(schema, field, "distinct")
    field_type = schema.type_of(field)
    item_type = list_item_type(field_type)
    key_of = _scalar_key_function(item_type if item_type else field_type, field in schema.case_insensitive)

    seen: dict[Any, Any] = {}
    for record in collection:
        value = record.get(field)
        if value is None:
            continue
        for item in value if isinstance(value, list) else (value,):
            if item not in seen:
                seen[item] = key_of(item)
    ordered = [item for item, key in seen.items() if key is not None]
    ordered.sort(key=lambda item: seen[item])
    return ordered


def sort_key_function(schema: CollectionSchema, field: str) -> Callable[[Any], Any]:
    """Map a raw field value to a comparable key, or None for "sorts last"."""
    field_type = schema.type_of(field)
    item_type = list_item_type(field_type)
    if item_type is not None:
        item_key = _scalar_key_function(item_type, False)

        def list_key(value: Any) -> Any:
            if not isinstance(value, list):
                return None
            keys = tuple(item_key(v) for v in value)
            return None if any(k is None for k in keys) else keys

        return list_key
    return _scalar_key_function(field_type, field in schema.case_insensitive)


# ---------------------------------------------------------------------------
# Internals
# ---------------------------------------------------------------------------


def _require_field(schema: CollectionSchema, field: str, role: str) -> None:
    if not schema.has_field(field):
        raise UnknownFieldError(field, role, schema)


def _record_contains(record: Record, fields: tuple[str, ...], needle: str) -> bool:
    for field in fields:
        value = record.get(field)
        if value is None:
            continue
        if isinstance(value, list):
            if any(needle in str(v).casefold() for v in value):
                return True
        elif needle in str(value).casefold():
            return True
    return False


def _apply_predicates(
    records: list[Record],
    predicates: list[tuple[str, Predicate]],
    now: datetime | None,
) -> list[Record]:
    if not predicates:
        return list(records)
    return [
        record
        for record in records
        if all(predicate.matches(record.get(field), record, now) for field, predicate in predicates)
    ]


def _scalar_key_function(field_type: Any, fold_case: bool) -> Callable[[Any], Any]:
    bt = base_type(field_type)

    if bt in TEMPORAL_TYPES:
        return parse_instant

    if bt in NUMERIC_TYPES:

        def numeric_key(value: Any) -> Any:
            if isinstance(value, bool) or not isinstance(value, int | float):
                return None
            if isinstance(value, float) and math.isnan(value):
                return None
            return value

        return numeric_key

    if bt == "bool":
        return lambda value: value if isinstance(value, bool) else None

    if fold_case:
        return lambda value: value.casefold() if isinstance(value, str) else None
    return lambda value: value if isinstance(value, str) else None
