"""
dashkit Store — Record Store

Key-value persistence for collections (the local-storage analogue).
Values are JSON; one key holds one whole collection.

  RecordStore        — abstract interface
  MemoryRecordStore  — in-memory, for tests
  FileRecordStore    — one <key>.json file per key

load_collection() is the data-error boundary: absent keys are seeded with
sample records, corrupt payloads fall back to the seed, invalid records are
dropped and counted. It never raises for bad data.
"""

from __future__ import annotations

import copy
import json
import logging
import os
import re
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Literal

from dashkit.config import settings
from dashkit.kernel.types import CollectionSchema
from dashkit.kernel.validation import validate_record

logger = logging.getLogger(__name__)

KEY_PATTERN = re.compile(r"^[A-Za-z0-9_.-]{1,128}$")


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class StoreError(Exception):
    """Reading or writing the store failed."""

    pass


class StoreCorrupted(StoreError):
    """A stored value exists but is not valid JSON."""

    pass


# ---------------------------------------------------------------------------
# Storage protocol
# ---------------------------------------------------------------------------


class RecordStore:
    """
    Abstract storage interface.
    Implement with files for local use, or in-memory for tests.
    """

    def load(self, key: str) -> Any | None:
        """Fetch the stored JSON value. Returns None if never written."""
        raise NotImplementedError

    def save(self, key: str, value: Any) -> None:
        """Persist a JSON-serializable value under key."""
        raise NotImplementedError

    def delete(self, key: str) -> None:
        raise NotImplementedError


class MemoryRecordStore(RecordStore):
    """In-memory storage for testing. Keeps serialized text, like local storage."""

    def __init__(self) -> None:
        self.items: dict[str, str] = {}

    def load(self, key: str) -> Any | None:
        raw = self.items.get(key)
        if raw is None:
            return None
        return _decode(key, raw)

    def save(self, key: str, value: Any) -> None:
        self.items[key] = _encode(key, value)

    def delete(self, key: str) -> None:
        self.items.pop(key, None)


class FileRecordStore(RecordStore):
    """
    Directory-backed storage: key "inventory" → <directory>/inventory.json.
    Writes go through a temp file + rename so a crash never leaves half a file.
    """

    def __init__(self, directory: Path | str | None = None) -> None:
        self.directory = Path(directory) if directory is not None else settings.STORE_DIR

    def path_for(self, key: str) -> Path:
        if not KEY_PATTERN.match(key):
            raise ValueError(f"Invalid store key: {key!r}")
        return self.directory / f"{key}.json"

    def load(self, key: str) -> Any | None:
        path = self.path_for(key)
        if not path.exists():
            return None
        try:
            raw = path.read_text(encoding="utf-8")
        except OSError as e:
            raise StoreError(f"Failed to read {path}: {e}") from e
        return _decode(key, raw)

    def save(self, key: str, value: Any) -> None:
        path = self.path_for(key)
        text = _encode(key, value)
        tmp_name = None
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self.directory, prefix=f".{key}.", suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(text)
            os.replace(tmp_name, path)
        except OSError as e:
            if tmp_name is not None:
                Path(tmp_name).unlink(missing_ok=True)
            raise StoreError(f"Failed to write {path}: {e}") from e

    def delete(self, key: str) -> None:
        path = self.path_for(key)
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            raise StoreError(f"Failed to delete {path}: {e}") from e


def _encode(key: str, value: Any) -> str:
    try:
        return json.dumps(value, indent=2, ensure_ascii=False)
    except (TypeError, ValueError) as e:
        raise StoreError(f"Value for {key!r} is not JSON-serializable: {e}") from e


def _decode(key: str, raw: str) -> Any:
    try:
        return json.loads(raw)
    except json.JSONDecodeError as e:
        raise StoreCorrupted(f"Stored value for {key!r} is not valid JSON: {e}") from e


# ---------------------------------------------------------------------------
# Loading with recovery
# ---------------------------------------------------------------------------


@dataclass
class LoadResult:
    """
    Outcome of loading one collection.

    source: "stored" (read back), "seeded" (first run) or "recovered"
    (stored value unusable, seed used instead).
    message: user-facing explanation when something was not loaded as-is.
    """

    records: list[dict[str, Any]]
    source: Literal["stored", "seeded", "recovered"]
    dropped: int = 0
    message: str | None = None


def load_collection(
    store: RecordStore,
    key: str,
    schema: CollectionSchema,
    seed: list[dict[str, Any]],
) -> LoadResult:
    """Load a collection, falling back to the seed records. Never raises for bad data."""
    try:
        raw = store.load(key)
    except StoreError as e:
        logger.warning("store: failed to load %r, using sample data: %s", key, e)
        return LoadResult(
            records=copy.deepcopy(seed),
            source="recovered",
            message=f"Saved data for {key!r} could not be read; {len(seed)} sample record(s) were loaded instead.",
        )

    if raw is None:
        logger.info("store: no saved data for %r, seeding %d sample records", key, len(seed))
        return LoadResult(records=copy.deepcopy(seed), source="seeded")

    if not isinstance(raw, list):
        logger.warning("store: saved data for %r is a %s, not a list", key, type(raw).__name__)
        return LoadResult(
            records=copy.deepcopy(seed),
            source="recovered",
            message=f"Saved data for {key!r} has the wrong shape; {len(seed)} sample record(s) were loaded instead.",
        )

    records: list[dict[str, Any]] = []
    seen_ids: set[Any] = set()
    dropped = 0
    for index, record in enumerate(raw):
        errors = validate_record(record, schema)
        if not errors and record[schema.id_field] in seen_ids:
            errors = [f"Duplicate id {record[schema.id_field]!r}"]
        if errors:
            dropped += 1
            logger.warning("store: dropping record %d of %r: %s", index, key, "; ".join(errors))
            continue
        seen_ids.add(record[schema.id_field])
        records.append(record)

    message = None
    if dropped:
        message = f"{dropped} saved record(s) in {key!r} were invalid and have been skipped."
    return LoadResult(records=records, source="stored", dropped=dropped, message=message)
