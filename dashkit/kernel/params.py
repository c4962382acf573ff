"""
dashkit Kernel — View Parameters

The user-controlled input to derive_view: query, filters, sort, page and the
explicit clock used by relative date filters. Owned by the presentation
layer, created with defaults on mount, never persisted.

Models are frozen. Use the with_* helpers (or model_copy) to change them.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

from dashkit.kernel.predicates import is_unconstrained


class SortSpec(BaseModel):
    """Sort by one field."""

    model_config = {"extra": "forbid", "frozen": True}

    field: str = Field(min_length=1)
    direction: Literal["asc", "desc"] = "asc"


class PageSpec(BaseModel):
    """1-based page index and a positive page size."""

    model_config = {"extra": "forbid", "frozen": True}

    index: int = Field(default=1, ge=1)
    size: int = Field(ge=1)


class ViewParameters(BaseModel):
    """Everything derive_view needs besides the collection and its schema."""

    model_config = {"extra": "forbid", "frozen": True}

    query: str = ""
    filters: dict[str, Any] = Field(default_factory=dict)
    sort: SortSpec | None = None
    page: PageSpec | None = None
    now: datetime | None = None


# ---------------------------------------------------------------------------
# Transitions
# ---------------------------------------------------------------------------


def next_sort(params: ViewParameters, field: str) -> ViewParameters:
    """
    Header-click cycle: asc → desc → unsorted.
    Clicking a different field always starts at asc.
    """
    current = params.sort
    if current is None or current.field != field:
        sort: SortSpec | None = SortSpec(field=field, direction="asc")
    elif current.direction == "asc":
        sort = SortSpec(field=field, direction="desc")
    else:
        sort = None
    return params.model_copy(update={"sort": sort})


def with_query(params: ViewParameters, query: str) -> ViewParameters:
    """New query; the page index goes back to 1."""
    return params.model_copy(update={"query": query, "page": _first_page(params.page)})


def with_filter(params: ViewParameters, field: str, value: Any) -> ViewParameters:
    """
    Set (or clear, for None/ANY/empty) one field filter.
    The page index goes back to 1.
    """
    filters = dict(params.filters)
    if is_unconstrained(value):
        filters.pop(field, None)
    else:
        filters[field] = value
    return params.model_copy(update={"filters": filters, "page": _first_page(params.page)})


def with_page(params: ViewParameters, index: int, size: int | None = None) -> ViewParameters:
    if size is None:
        if params.page is None:
            raise ValueError("Page size is required when the parameters have no page yet")
        size = params.page.size
    return params.model_copy(update={"page": PageSpec(index=index, size=size)})


def _first_page(page: PageSpec | None) -> PageSpec | None:
    if page is None:
        return None
    return PageSpec(index=1, size=page.size)
