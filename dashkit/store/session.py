"""
dashkit Store — Collection Session

Owns the authoritative in-memory collection for one dashboard and
coordinates store + kernel:

  open → (add | update | remove | replace_all | import_text)* → view

Every mutation replaces the collection list (records are never edited in
place) and is followed by a best-effort save. A failed save is logged and
surfaced in `notices`; the in-memory collection stays authoritative and the
save is not retried.

This is where IO happens. The kernel is pure.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Callable, Mapping
from typing import Any, Literal

from dashkit.config import settings
from dashkit.kernel.aggregates import Aggregate
from dashkit.kernel.params import PageSpec, ViewParameters
from dashkit.kernel.types import CollectionSchema, DerivedView, base_type
from dashkit.kernel.validation import validate_record
from dashkit.kernel.view import derive_view, distinct_values
from dashkit.store import transfer
from dashkit.store.storage import LoadResult, RecordStore, StoreError, load_collection

logger = logging.getLogger(__name__)


class RecordError(Exception):
    """A mutation was rejected: invalid record, duplicate id, unknown id or id change."""

    pass


class CollectionSession:
    """
    One collection, one store key.
    Records are loaded lazily on first use (or explicitly with open()).
    """

    def __init__(
        self,
        store: RecordStore,
        key: str,
        schema: CollectionSchema,
        seed: list[dict[str, Any]] | None = None,
    ) -> None:
        self.store = store
        self.key = key
        self.schema = schema
        self.seed = seed or []
        self.notices: list[str] = []
        self._records: list[dict[str, Any]] | None = None

    # -- load --

    def open(self) -> LoadResult:
        """(Re)load from the store. Data problems become notices, never exceptions."""
        loaded = load_collection(self.store, self.key, self.schema, self.seed)
        self._records = loaded.records
        if loaded.message:
            self.notices.append(loaded.message)
        return loaded

    @property
    def records(self) -> list[dict[str, Any]]:
        """Latest snapshot of the collection."""
        if self._records is None:
            self.open()
        return self._records  # type: ignore[return-value]

    def get(self, record_id: Any) -> dict[str, Any] | None:
        for record in self.records:
            if record[self.schema.id_field] == record_id:
                return record
        return None

    # -- mutate --

    def add(self, record: dict[str, Any]) -> dict[str, Any]:
        """Append a record. A missing id is generated for string id fields."""
        id_field = self.schema.id_field
        new = dict(record)
        if new.get(id_field) in (None, "") and base_type(self.schema.type_of(id_field)) == "string":
            new[id_field] = transfer.new_id()

        self._check(new)
        if self.get(new[id_field]) is not None:
            raise RecordError(f"Duplicate id {new[id_field]!r}")

        self._commit([*self.records, new])
        return new

    def update(self, record_id: Any, changes: dict[str, Any]) -> dict[str, Any]:
        """Apply field changes to one record. Ids are immutable."""
        id_field = self.schema.id_field
        if id_field in changes and changes[id_field] != record_id:
            raise RecordError(f"Cannot change id of {record_id!r}")

        index = self._index_of(record_id)
        updated = {**self.records[index], **changes}
        self._check(updated)

        records = list(self.records)
        records[index] = updated
        self._commit(records)
        return updated

    def remove(self, record_id: Any) -> dict[str, Any]:
        index = self._index_of(record_id)
        removed = self.records[index]
        self._commit(self.records[:index] + self.records[index + 1 :])
        return removed

    def replace_all(self, records: list[dict[str, Any]]) -> None:
        """Swap in a whole collection (e.g. reset to sample data)."""
        seen: set[Any] = set()
        for record in records:
            self._check(record)
            if record[self.schema.id_field] in seen:
                raise RecordError(f"Duplicate id {record[self.schema.id_field]!r}")
            seen.add(record[self.schema.id_field])
        self._commit(copy.deepcopy(records))

    def reset_to_sample(self) -> None:
        self.replace_all(self.seed)

    # -- import / export --

    def import_text(
        self,
        text: str,
        fmt: str,
        id_policy: Literal["preserve", "regenerate"],
        on_conflict: Literal["overwrite", "append", "skip"],
        key: str | None = None,
        id_factory: Callable[[], Any] | None = None,
    ) -> transfer.ImportResult:
        """
        Import CSV/JSON and merge it into the collection.
        Skipped rows are reported; the summary is added to notices.
        id_factory is required for new ids when the id field is not a string.
        """
        result = transfer.import_text(text, self.schema, fmt, id_policy, id_factory=id_factory)
        merged = transfer.merge_records(
            self.records, result.records, self.schema, on_conflict, key=key, id_factory=id_factory
        )
        if merged.added or merged.replaced:
            self._commit(merged.records)

        summary = result.summary()
        if merged.skipped:
            summary += f" {merged.skipped} record(s) already existed and were left unchanged."
        self.notices.append(summary)
        return result

    def export_text(self, fmt: str) -> str:
        return transfer.export_text(self.records, self.schema, fmt)

    # -- view --

    def default_params(self) -> ViewParameters:
        return ViewParameters(page=PageSpec(index=1, size=settings.PAGE_SIZE))

    def view(
        self,
        params: ViewParameters | None = None,
        aggregates: Mapping[str, Aggregate] | None = None,
    ) -> DerivedView:
        """Derive a view from the latest snapshot."""
        return derive_view(self.records, self.schema, params or self.default_params(), aggregates)

    def options_for(self, field: str) -> list[Any]:
        """Filter dropdown options for a field."""
        return distinct_values(self.records, self.schema, field)

    def take_notices(self) -> list[str]:
        """Return pending user-facing messages and clear them."""
        notices, self.notices = self.notices, []
        return notices

    # -- internals --

    def _index_of(self, record_id: Any) -> int:
        for i, record in enumerate(self.records):
            if record[self.schema.id_field] == record_id:
                return i
        raise RecordError(f"No record with id {record_id!r}")

    def _check(self, record: dict[str, Any]) -> None:
        errors = validate_record(record, self.schema)
        if errors:
            raise RecordError("; ".join(errors))

    def _commit(self, records: list[dict[str, Any]]) -> None:
        self._records = records
        try:
            self.store.save(self.key, records)
        except StoreError as e:
            logger.warning("session: failed to save %r (%d records): %s", self.key, len(records), e)
            self.notices.append(f"Changes could not be saved: {e}. They are kept for this session only.")
