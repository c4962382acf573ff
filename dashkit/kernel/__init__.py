"""
dashkit Kernel — the pure collection view engine.

Components:
  types       — field types, CollectionSchema, DerivedView, exceptions
  params      — ViewParameters (query, filters, sort, page, now)
  predicates  — filter constraints (Equals, OneOf, Range, DateWindow, ...)
  aggregates  — Count, Sum, Average, CountBy, SumBy
  view        — (collection, schema, params) → DerivedView  (pure, deterministic)
  validation  — record vs schema checks
"""

from dashkit.kernel.aggregates import Aggregate, Average, Count, CountBy, Sum, SumBy
from dashkit.kernel.params import PageSpec, SortSpec, ViewParameters, next_sort, with_filter, with_page, with_query
from dashkit.kernel.predicates import ANY, Contains, DateWindow, Equals, OneOf, Predicate, Range, Where
from dashkit.kernel.types import CollectionSchema, DerivedView, SchemaError, UnknownFieldError, ViewError
from dashkit.kernel.validation import validate_record
from dashkit.kernel.view import apply_filters, apply_query, apply_sort, derive_view, distinct_values, paginate

__all__ = [
    "derive_view",
    "apply_query",
    "apply_filters",
    "apply_sort",
    "paginate",
    "distinct_values",
    "validate_record",
    "CollectionSchema",
    "DerivedView",
    "ViewParameters",
    "SortSpec",
    "PageSpec",
    "next_sort",
    "with_query",
    "with_filter",
    "with_page",
    "ANY",
    "Predicate",
    "Equals",
    "OneOf",
    "Contains",
    "Range",
    "DateWindow",
    "Where",
    "Aggregate",
    "Count",
    "Sum",
    "Average",
    "CountBy",
    "SumBy",
    "SchemaError",
    "ViewError",
    "UnknownFieldError",
]
