"""
dashkit Kernel — Shared Types

Field-type vocabulary, collection schemas, the derived view and the kernel
exceptions. These are the contracts that bind the kernel together.

Field types:
- scalars: "string", "int", "float", "bool", "date", "datetime"
- nullable scalars: the same with a trailing "?" (e.g. "float?")
- enums: {"enum": ["open", "closed"]}
- lists: {"list": "string"}
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, date, datetime, time
from typing import Any

# ---------------------------------------------------------------------------
# Field types
# ---------------------------------------------------------------------------

SCALAR_TYPES: set[str] = {"string", "int", "float", "bool", "date", "datetime"}
NULLABLE_TYPES: set[str] = {f"{t}?" for t in SCALAR_TYPES}
ALL_SIMPLE_TYPES: set[str] = SCALAR_TYPES | NULLABLE_TYPES

NUMERIC_TYPES: set[str] = {"int", "float"}
TEMPORAL_TYPES: set[str] = {"date", "datetime"}


def base_type(field_type: Any) -> str:
    """Strip nullability and collapse enum/list dicts to "enum"/"list"."""
    if isinstance(field_type, str):
        return field_type.rstrip("?")
    if isinstance(field_type, dict):
        if "enum" in field_type:
            return "enum"
        if "list" in field_type:
            return "list"
    return "unknown"


def is_nullable_type(field_type: Any) -> bool:
    return isinstance(field_type, str) and field_type.endswith("?")


def is_valid_field_type(field_type: Any) -> bool:
    if isinstance(field_type, str):
        return field_type in ALL_SIMPLE_TYPES
    if isinstance(field_type, dict):
        if "enum" in field_type:
            options = field_type["enum"]
            return isinstance(options, list) and len(options) > 0 and all(isinstance(o, str) for o in options)
        if "list" in field_type:
            return field_type["list"] in SCALAR_TYPES
    return False


def enum_options(field_type: Any) -> list[str]:
    if isinstance(field_type, dict) and "enum" in field_type:
        return list(field_type["enum"])
    return []


def list_item_type(field_type: Any) -> str | None:
    if isinstance(field_type, dict) and "list" in field_type:
        return field_type["list"]
    return None


def parse_instant(value: Any) -> datetime | None:
    """
    Parse a date or datetime value into an aware UTC-comparable datetime.

    "2024-03-01" → midnight UTC; "2024-03-01T10:00:00Z" → that instant.
    Naive datetimes are treated as UTC. Returns None if unparseable.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime.combine(value, time.min)
    elif isinstance(value, str) and value:
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class SchemaError(Exception):
    """Collection schema is malformed."""

    pass


class ViewError(Exception):
    """View parameters cannot be applied to this collection."""

    pass


class UnknownFieldError(ViewError):
    """Sort, filter or aggregate names a field the schema does not have."""

    def __init__(self, field_name: str, role: str, schema: CollectionSchema) -> None:
        self.field_name = field_name
        self.role = role
        known = ", ".join(schema.fields)
        super().__init__(f"Unknown {role} field {field_name!r} (known fields: {known})")


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CollectionSchema:
    """
    Shape of every record in one collection.

    - fields: field name → field type, in display/export order
    - id_field: the stable unique identifier (must be in fields)
    - searchable: fields the free-text query looks at; None means every
      string, enum and list-of-string field
    - case_insensitive: string fields that sort with case folding
    """

    fields: dict[str, Any]
    id_field: str = "id"
    searchable: tuple[str, ...] | None = None
    case_insensitive: frozenset[str] = field(default_factory=frozenset)

    def __post_init__(self) -> None:
        for name, field_type in self.fields.items():
            if not is_valid_field_type(field_type):
                raise SchemaError(f"Field {name!r}: invalid type {field_type!r}")
        if self.id_field not in self.fields:
            raise SchemaError(f"Id field {self.id_field!r} is not declared in fields")

        if self.searchable is None:
            derived = tuple(
                name
                for name, field_type in self.fields.items()
                if base_type(field_type) in ("string", "enum") or list_item_type(field_type) == "string"
            )
            object.__setattr__(self, "searchable", derived)
        else:
            object.__setattr__(self, "searchable", tuple(self.searchable))
        object.__setattr__(self, "case_insensitive", frozenset(self.case_insensitive))

        for name in (*self.searchable, *self.case_insensitive):
            if name not in self.fields:
                raise SchemaError(f"Marker references unknown field {name!r}")
        for name in self.case_insensitive:
            if base_type(self.fields[name]) not in ("string", "enum"):
                raise SchemaError(f"Field {name!r}: case-insensitive sort needs a string field")

    def has_field(self, name: str) -> bool:
        return name in self.fields

    def type_of(self, name: str) -> Any:
        return self.fields[name]

    def to_dict(self) -> dict[str, Any]:
        return {
            "fields": self.fields,
            "id_field": self.id_field,
            "searchable": list(self.searchable or ()),
            "case_insensitive": sorted(self.case_insensitive),
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> CollectionSchema:
        return cls(
            fields=d["fields"],
            id_field=d.get("id_field", "id"),
            searchable=tuple(d["searchable"]) if d.get("searchable") is not None else None,
            case_insensitive=frozenset(d.get("case_insensitive", [])),
        )


@dataclass(frozen=True)
class DerivedView:
    """
    Pure output of derive_view. Recomputed on every change, never mutated.

    visible: filtered + sorted records (all pages)
    page: the requested slice of visible
    aggregates: name → number or name → {group: number}
    """

    visible: list[dict[str, Any]]
    page: list[dict[str, Any]]
    aggregates: dict[str, Any]
    page_index: int = 1
    page_size: int | None = None
    total_pages: int = 0

    @property
    def total(self) -> int:
        return len(self.visible)

    @property
    def has_previous(self) -> bool:
        return self.page_index > 1 and self.total_pages > 0

    @property
    def has_next(self) -> bool:
        return self.page_index < self.total_pages
