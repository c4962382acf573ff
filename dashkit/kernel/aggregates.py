"""
dashkit Kernel — Aggregates

Named summary values for dashboard cards and charts, computed over the
filtered + sorted sequence (never the full collection, never only the page).

  Count()                  → int
  Sum("cost")              → number, 0 when nothing is visible
  Average("cost")          → float, 0.0 when nothing is visible
  CountBy("status")        → {value: count}
  SumBy("cost", "region")  → {group: sum}

Null values are ignored by every aggregate except Count.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from dashkit.kernel.types import (
    NUMERIC_TYPES,
    CollectionSchema,
    UnknownFieldError,
    ViewError,
    base_type,
    enum_options,
)


class Aggregate:
    """Base class. check() runs before the pipeline so bad specs fail fast."""

    def check(self, schema: CollectionSchema) -> None:
        pass

    def compute(self, records: list[dict[str, Any]], schema: CollectionSchema) -> Any:
        raise NotImplementedError


class Count(Aggregate):
    def compute(self, records: list[dict[str, Any]], schema: CollectionSchema) -> int:
        return len(records)

    def __repr__(self) -> str:
        return "Count()"


class Sum(Aggregate):
    def __init__(self, field: str) -> None:
        self.field = field

    def check(self, schema: CollectionSchema) -> None:
        _require_numeric(self.field, schema)

    def compute(self, records: list[dict[str, Any]], schema: CollectionSchema) -> int | float:
        total: int | float = 0
        for record in records:
            value = record.get(self.field)
            if value is not None:
                total += value
        return total

    def __repr__(self) -> str:
        return f"Sum({self.field!r})"


class Average(Aggregate):
    def __init__(self, field: str) -> None:
        self.field = field

    def check(self, schema: CollectionSchema) -> None:
        _require_numeric(self.field, schema)

    def compute(self, records: list[dict[str, Any]], schema: CollectionSchema) -> float:
        values = [r[self.field] for r in records if r.get(self.field) is not None]
        if not values:
            return 0.0
        return sum(values) / len(values)

    def __repr__(self) -> str:
        return f"Average({self.field!r})"


class CountBy(Aggregate):
    """
    Occurrences per value. Enum fields start with every option at zero, in
    schema order; list fields count each element.
    """

    def __init__(self, field: str) -> None:
        self.field = field

    def check(self, schema: CollectionSchema) -> None:
        _require_field(self.field, schema)

    def compute(self, records: list[dict[str, Any]], schema: CollectionSchema) -> dict[Any, int]:
        counts: dict[Any, int] = {option: 0 for option in enum_options(schema.type_of(self.field))}
        for record in records:
            value = record.get(self.field)
            if value is None:
                continue
            for key in value if isinstance(value, list) else (value,):
                counts[key] = counts.get(key, 0) + 1
        return counts

    def __repr__(self) -> str:
        return f"CountBy({self.field!r})"


class SumBy(Aggregate):
    """Sum of a numeric field per group. Groups appear in first-seen order."""

    def __init__(self, field: str, group_by: str) -> None:
        self.field = field
        self.group_by = group_by

    def check(self, schema: CollectionSchema) -> None:
        _require_numeric(self.field, schema)
        _require_field(self.group_by, schema)
        if base_type(schema.type_of(self.group_by)) == "list":
            raise ViewError(f"Cannot group sums by list field {self.group_by!r}")

    def compute(self, records: list[dict[str, Any]], schema: CollectionSchema) -> dict[Any, int | float]:
        sums: dict[Any, int | float] = {option: 0 for option in enum_options(schema.type_of(self.group_by))}
        for record in records:
            group = record.get(self.group_by)
            if group is None:
                continue
            value = record.get(self.field)
            sums[group] = sums.get(group, 0) + (value if value is not None else 0)
        return sums

    def __repr__(self) -> str:
        return f"SumBy({self.field!r}, {self.group_by!r})"


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def check_aggregates(schema: CollectionSchema, aggregates: Mapping[str, Aggregate]) -> None:
    for name, aggregate in aggregates.items():
        if not isinstance(aggregate, Aggregate):
            raise ViewError(f"Aggregate {name!r} must be an Aggregate, got {type(aggregate).__name__}")
        aggregate.check(schema)


def compute_aggregates(
    records: list[dict[str, Any]],
    schema: CollectionSchema,
    aggregates: Mapping[str, Aggregate],
) -> dict[str, Any]:
    return {name: aggregate.compute(records, schema) for name, aggregate in aggregates.items()}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _require_field(field: str, schema: CollectionSchema) -> None:
    if not schema.has_field(field):
        raise UnknownFieldError(field, "aggregate", schema)


def _require_numeric(field: str, schema: CollectionSchema) -> None:
    _require_field(field, schema)
    if base_type(schema.type_of(field)) not in NUMERIC_TYPES:
        raise ViewError(f"Aggregate field {field!r} is not numeric")
