"""
dashkit Kernel — Record Validation

Checks a record against its collection schema.
Returns a list of error messages (empty = valid). Never raises.

Used at the store boundary (drop corrupt stored records) and by the import
adapter (skip malformed rows).
"""

from __future__ import annotations

import re
from datetime import datetime
from typing import Any

from dashkit.kernel.types import (
    CollectionSchema,
    base_type,
    enum_options,
    is_nullable_type,
    list_item_type,
)

_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def validate_record(record: Any, schema: CollectionSchema) -> list[str]:
    if not isinstance(record, dict):
        return [f"Record must be an object, got {type(record).__name__}"]

    errors: list[str] = []

    record_id = record.get(schema.id_field)
    if record_id is None or record_id == "":
        errors.append(f"Missing id field {schema.id_field!r}")

    for field_name, field_type in schema.fields.items():
        if field_name == schema.id_field:
            continue
        if field_name not in record:
            if not is_nullable_type(field_type):
                errors.append(f"Missing required field: {field_name!r}")
            continue
        if not validate_value(record[field_name], field_type):
            errors.append(f"Field {field_name!r}: {record[field_name]!r} is not a valid {_describe(field_type)}")

    for key in record:
        if key not in schema.fields:
            errors.append(f"Unknown field: {key!r}")

    return errors


def validate_value(value: Any, field_type: Any) -> bool:
    """True if value fits the field type (None only for nullable types)."""
    if value is None:
        return is_nullable_type(field_type)

    bt = base_type(field_type)
    if bt == "string":
        return isinstance(value, str)
    if bt == "int":
        return isinstance(value, int) and not isinstance(value, bool)
    if bt == "float":
        return isinstance(value, int | float) and not isinstance(value, bool)
    if bt == "bool":
        return isinstance(value, bool)
    if bt == "date":
        return isinstance(value, str) and is_iso_date(value)
    if bt == "datetime":
        return isinstance(value, str) and is_iso_datetime(value)
    if bt == "enum":
        return value in enum_options(field_type)
    if bt == "list":
        if not isinstance(value, list):
            return False
        inner = list_item_type(field_type) or "string"
        return all(validate_value(v, inner) for v in value)
    return False


def is_iso_date(value: str) -> bool:
    if not _DATE_RE.match(value):
        return False
    try:
        datetime.strptime(value, "%Y-%m-%d")
    except ValueError:
        return False
    return True


def is_iso_datetime(value: str) -> bool:
    text = value[:-1] + "+00:00" if value.endswith("Z") else value
    try:
        datetime.fromisoformat(text)
    except ValueError:
        return False
    return True


def _describe(field_type: Any) -> str:
    bt = base_type(field_type)
    if bt == "enum":
        return f"enum {enum_options(field_type)}"
    if bt == "list":
        return f"list of {list_item_type(field_type)}"
    return bt
