"""
dashkit Store — persistence and data exchange around the kernel.

  storage   — RecordStore protocol, memory/file stores, load_collection
  transfer  — CSV/JSON import and export, merge policies
  session   — CollectionSession (load → mutate → save → view)
  samples   — demo datasets used to seed empty stores
"""

from dashkit.store.session import CollectionSession, RecordError
from dashkit.store.storage import (
    FileRecordStore,
    LoadResult,
    MemoryRecordStore,
    RecordStore,
    StoreCorrupted,
    StoreError,
    load_collection,
)
from dashkit.store.transfer import ImportResult, MergeResult, csv_template, export_text, import_text, merge_records

__all__ = [
    "CollectionSession",
    "RecordError",
    "RecordStore",
    "MemoryRecordStore",
    "FileRecordStore",
    "StoreError",
    "StoreCorrupted",
    "LoadResult",
    "load_collection",
    "ImportResult",
    "MergeResult",
    "export_text",
    "import_text",
    "merge_records",
    "csv_template",
]
