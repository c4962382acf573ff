"""
Store test configuration.

Stores that misbehave on purpose, for exercising the recovery paths.
"""

import pytest

from dashkit.store.storage import MemoryRecordStore, StoreError


class FlakyStore(MemoryRecordStore):
    """Memory store whose reads and/or writes fail."""

    def __init__(self, fail_load: bool = False, fail_save: bool = False) -> None:
        super().__init__()
        self.fail_load = fail_load
        self.fail_save = fail_save
        self.save_attempts = 0

    def load(self, key):
        if self.fail_load:
            raise StoreError("disk unavailable")
        return super().load(key)

    def save(self, key, value):
        self.save_attempts += 1
        if self.fail_save:
            raise StoreError("quota exceeded")
        super().save(key, value)


@pytest.fixture
def store():
    return MemoryRecordStore()


@pytest.fixture
def unreadable_store():
    return FlakyStore(fail_load=True)


@pytest.fixture
def unwritable_store():
    return FlakyStore(fail_save=True)
