"""
dashkit Store — Import / Export

Converts a whole collection to and from CSV or JSON text.

Import is row-tolerant: a row that fails to parse or validate is skipped
with an error message, the rest still import. Identifier handling is an
explicit choice of the caller:

  id_policy="preserve"    keep incoming ids (generate one only when missing)
  id_policy="regenerate"  always assign fresh ids

Merging imported records into an existing collection is a separate step
(merge_records) with an explicit conflict policy.
"""

from __future__ import annotations

import csv
import io
import json
import logging
import re
import uuid
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Literal

from dashkit.kernel.types import (
    CollectionSchema,
    UnknownFieldError,
    base_type,
    is_nullable_type,
    list_item_type,
)
from dashkit.kernel.validation import validate_record

logger = logging.getLogger(__name__)

FORMATS = ("csv", "json")
ID_POLICIES = ("preserve", "regenerate")
CONFLICT_POLICIES = ("overwrite", "append", "skip")

LIST_SEPARATOR = ";"

_TRUE_WORDS = {"true", "1", "yes", "y"}
_FALSE_WORDS = {"false", "0", "no", "n"}


def new_id() -> str:
    return uuid.uuid4().hex


# ---------------------------------------------------------------------------
# Export
# ---------------------------------------------------------------------------


def export_text(collection: list[dict[str, Any]], schema: CollectionSchema, fmt: str) -> str:
    """Serialize the full collection. CSV columns follow schema field order."""
    _check_format(fmt)
    if fmt == "json":
        return json.dumps(collection, indent=2, ensure_ascii=False)

    out = io.StringIO()
    writer = csv.writer(out, lineterminator="\n")
    writer.writerow(list(schema.fields))
    for record in collection:
        writer.writerow([_format_cell(record.get(name)) for name in schema.fields])
    return out.getvalue()


def csv_template(schema: CollectionSchema) -> str:
    """Header-only CSV users can fill in and import."""
    return ",".join(schema.fields) + "\n"


def _format_cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, list):
        return LIST_SEPARATOR.join(_format_cell(v) for v in value)
    return str(value)


# ---------------------------------------------------------------------------
# Import
# ---------------------------------------------------------------------------


@dataclass
class ImportResult:
    """Rows that made it in, plus what was skipped and why."""

    records: list[dict[str, Any]] = field(default_factory=list)
    skipped: int = 0
    errors: list[str] = field(default_factory=list)

    @property
    def imported(self) -> int:
        return len(self.records)

    def summary(self) -> str:
        text = f"Imported {self.imported} record(s)"
        if self.skipped:
            text += f", skipped {self.skipped} malformed row(s)"
        return text + "."


def import_text(
    text: str,
    schema: CollectionSchema,
    fmt: str,
    id_policy: Literal["preserve", "regenerate"],
    id_factory: Callable[[], Any] | None = None,
) -> ImportResult:
    """
    Parse CSV or JSON text into records of this schema.
    Malformed rows are skipped individually and reported in the result.
    """
    _check_format(fmt)
    if id_policy not in ID_POLICIES:
        raise ValueError(f"Unknown id policy {id_policy!r} (expected one of {ID_POLICIES})")
    id_factory = _default_id_factory(schema, id_factory)

    result = ImportResult()
    if fmt == "json":
        rows = _json_rows(text, result)
    else:
        rows = _csv_rows(text, schema, result)

    seen_ids: set[Any] = set()
    for label, row in rows:
        if id_policy == "regenerate" or row.get(schema.id_field) in (None, ""):
            if id_factory is None:
                _skip(result, label, f"needs a new {schema.id_field!r} but no id_factory was given")
                continue
            row[schema.id_field] = id_factory()

        errors = validate_record(row, schema)
        if not errors and row[schema.id_field] in seen_ids:
            errors = [f"Duplicate id {row[schema.id_field]!r}"]
        if errors:
            _skip(result, label, "; ".join(errors))
            continue
        seen_ids.add(row[schema.id_field])
        result.records.append(row)

    logger.info("import: %s (%s)", result.summary(), fmt)
    return result


def _json_rows(text: str, result: ImportResult) -> list[tuple[str, dict[str, Any]]]:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        result.errors.append(f"Invalid JSON: {e}")
        return []
    if not isinstance(data, list):
        result.errors.append(f"Expected a JSON array of records, got {type(data).__name__}")
        return []

    rows: list[tuple[str, dict[str, Any]]] = []
    for index, item in enumerate(data):
        label = f"Item {index + 1}"
        if not isinstance(item, dict):
            _skip(result, label, f"expected an object, got {type(item).__name__}")
            continue
        rows.append((label, dict(item)))
    return rows


def _csv_rows(
    text: str,
    schema: CollectionSchema,
    result: ImportResult,
) -> list[tuple[str, dict[str, Any]]]:
    reader = csv.reader(io.StringIO(text))
    try:
        header = next(reader)
    except StopIteration:
        result.errors.append("CSV is empty")
        return []

    columns = [_match_column(name, schema) for name in header]
    unknown = [name for name, column in zip(header, columns, strict=True) if column is None]
    if unknown:
        logger.info("import: ignoring unknown CSV columns %s", unknown)

    rows: list[tuple[str, dict[str, Any]]] = []
    for line_no, cells in enumerate(reader, start=2):
        label = f"Row {line_no}"
        if not any(cell.strip() for cell in cells):
            continue
        if len(cells) > len(header):
            _skip(result, label, f"{len(cells) - len(header)} more cell(s) than the header")
            continue

        row: dict[str, Any] = {}
        problems: list[str] = []
        for column, cell in zip(columns, cells, strict=False):
            if column is None:
                continue
            try:
                value = _parse_cell(cell, schema.type_of(column))
            except ValueError as e:
                problems.append(f"{column!r}: {e}")
                continue
            if value is not None or is_nullable_type(schema.type_of(column)):
                row[column] = value
        if problems:
            _skip(result, label, "; ".join(problems))
            continue
        rows.append((label, row))
    return rows


def _match_column(header: str, schema: CollectionSchema) -> str | None:
    """Map a CSV header ("Reorder Level", "reorder_level") to a schema field."""
    if header in schema.fields:
        return header
    normalized = re.sub(r"[\s\-]+", "_", header.strip()).lower()
    for name in schema.fields:
        if name.lower() == normalized:
            return name
    return None


def _parse_cell(cell: str, field_type: Any) -> Any:
    raw = cell.strip()
    bt = base_type(field_type)

    if bt == "list":
        inner = list_item_type(field_type) or "string"
        return [_parse_cell(part, inner) for part in raw.split(LIST_SEPARATOR) if part.strip()]
    if raw == "":
        return "" if field_type == "string" else None
    if bt == "int":
        try:
            return int(raw)
        except ValueError:
            raise ValueError(f"{raw!r} is not an integer") from None
    if bt == "float":
        try:
            return float(raw)
        except ValueError:
            raise ValueError(f"{raw!r} is not a number") from None
    if bt == "bool":
        word = raw.lower()
        if word in _TRUE_WORDS:
            return True
        if word in _FALSE_WORDS:
            return False
        raise ValueError(f"{raw!r} is not a boolean")
    return raw


def _skip(result: ImportResult, label: str, reason: str) -> None:
    result.skipped += 1
    result.errors.append(f"{label}: {reason}")
    logger.warning("import: skipping %s: %s", label, reason)


def _check_format(fmt: str) -> None:
    if fmt not in FORMATS:
        raise ValueError(f"Unknown format {fmt!r} (expected one of {FORMATS})")


def _default_id_factory(schema: CollectionSchema, id_factory: Callable[[], Any] | None) -> Callable[[], Any] | None:
    """uuid4 hex for string ids; other id types have no default."""
    if id_factory is None and base_type(schema.type_of(schema.id_field)) == "string":
        return new_id
    return id_factory


# ---------------------------------------------------------------------------
# Merge
# ---------------------------------------------------------------------------


@dataclass
class MergeResult:
    records: list[dict[str, Any]]
    added: int = 0
    replaced: int = 0
    skipped: int = 0


def merge_records(
    existing: list[dict[str, Any]],
    incoming: list[dict[str, Any]],
    schema: CollectionSchema,
    on_conflict: Literal["overwrite", "append", "skip"],
    key: str | None = None,
    id_factory: Callable[[], Any] | None = None,
) -> MergeResult:
    """
    Merge imported records into a collection. Returns a new list.

    Conflicts are detected on `key` (default: the id field):
      overwrite — replace the existing record, keeping its id
      append    — add the incoming record under a fresh id
      skip      — keep the existing record, drop the incoming one
    Records added under an id that is already taken always get a fresh id;
    for non-string ids that needs an id_factory.
    """
    if on_conflict not in CONFLICT_POLICIES:
        raise ValueError(f"Unknown conflict policy {on_conflict!r} (expected one of {CONFLICT_POLICIES})")
    key = key or schema.id_field
    if not schema.has_field(key):
        raise UnknownFieldError(key, "merge key", schema)

    id_factory = _default_id_factory(schema, id_factory)
    id_field = schema.id_field
    merged = list(existing)
    position = {record.get(key): i for i, record in enumerate(merged) if record.get(key) is not None}
    taken_ids = {record[id_field] for record in merged}
    result = MergeResult(records=merged)

    for record in incoming:
        match = position.get(record.get(key))
        if match is not None and on_conflict == "skip":
            result.skipped += 1
            continue
        if match is not None and on_conflict == "overwrite":
            merged[match] = {**record, id_field: merged[match][id_field]}
            result.replaced += 1
            continue

        added = dict(record)
        if added.get(id_field) in taken_ids:
            if id_factory is None:
                raise ValueError(f"Id {added[id_field]!r} is taken; pass an id_factory for non-string ids")
            added[id_field] = id_factory()
        taken_ids.add(added[id_field])
        if added.get(key) is not None and added.get(key) not in position:
            position[added[key]] = len(merged)
        merged.append(added)
        result.added += 1

    return result
